from __future__ import annotations

import re
from collections.abc import Iterator

from server.texcite.analysis.types import CitationExtractionResult, CitationOccurrence

CITATION_COMMANDS: tuple[str, ...] = (
    "cite",
    "parencite",
    "parencites",
    "textcite",
    "footcite",
    "autocite",
    "fullcite",
    "citeauthor",
    "citeyear",
    "citep",
    "citet",
    "footfullcite",
)

# \cmd, optional star, at most one [optional] argument, then one {key,key,...} group.
_CITATION_RE = re.compile(
    r"\\(?:" + "|".join(CITATION_COMMANDS) + r")\*?(?:\[[^\]]*\])?\{([^}]+)\}"
)


def iter_citation_occurrences(text: str) -> Iterator[CitationOccurrence]:
    if not text:
        return
    for m in _CITATION_RE.finditer(text):
        yield CitationOccurrence(keys=tuple(key.strip() for key in m.group(1).split(",")))


def extract_citations(text: str) -> CitationExtractionResult:
    """
    Collect citation keys from every citation command in `text`.

    Keys keep document order and duplicates; `unique_citation_commands` counts
    command invocations, so `\\cite{a,b}` adds two keys but one command.
    """
    citations: list[str] = []
    commands = 0
    for occurrence in iter_citation_occurrences(text):
        commands += 1
        citations.extend(occurrence.keys)
    return CitationExtractionResult(citations=citations, unique_citation_commands=commands)
