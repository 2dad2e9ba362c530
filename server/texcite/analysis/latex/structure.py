from __future__ import annotations

import re
from types import MappingProxyType

from server.texcite.analysis.latex.citations import extract_citations
from server.texcite.analysis.types import HeadingNode

HEADING_LEVELS = MappingProxyType(
    {
        "part": 0,
        "chapter": 1,
        "section": 2,
        "subsection": 3,
        "subsubsection": 4,
        "paragraph": 5,
        "subparagraph": 6,
    }
)
_DEEPEST_LEVEL = max(HEADING_LEVELS.values())

_HEADING_RE = re.compile(
    r"\\(" + "|".join(HEADING_LEVELS) + r")\*?(?:\[[^\]]*\])?\{([^}]+)\}"
)


def split_lines(text: str) -> list[str]:
    return (text or "").split("\n")


def extract_structure(text: str) -> list[HeadingNode]:
    """Return one HeadingNode per line that contains a sectioning command, in document order."""
    headings: list[HeadingNode] = []
    for idx, line in enumerate(split_lines(text)):
        m = _HEADING_RE.search(line)
        if not m:
            continue
        kind = m.group(1)
        headings.append(
            HeadingNode(
                level=HEADING_LEVELS[kind],
                type=kind,
                title=m.group(2),
                line_number=idx + 1,
            )
        )
    return headings


def _extent_end(lines: list[str], headings: list[HeadingNode], i: int) -> int:
    """Exclusive 0-based line index where heading i's section (children included) ends."""
    level = headings[i].level
    for nxt in headings[i + 1 :]:
        if nxt.level <= level:
            return nxt.line_number - 1
    return len(lines)


def _direct_content_end(lines: list[str], headings: list[HeadingNode], i: int) -> int:
    """Exclusive 0-based line index where heading i's own text stops and its first child begins."""
    if i + 1 < len(headings) and headings[i + 1].level > headings[i].level:
        return headings[i + 1].line_number - 1
    return _extent_end(lines, headings, i)


def _citations_between(lines: list[str], start: int, end: int) -> tuple[list[str], int]:
    result = extract_citations("\n".join(lines[start:end]))
    return result.citations, result.unique_citation_commands


def aggregate_citations(lines: list[str], headings: list[HeadingNode]) -> list[HeadingNode]:
    """
    Attach citations to each heading, cumulatively over its subtree.

    First every heading receives the citations of its direct content (the lines
    before its first child). Those values are then replaced level by level,
    deepest first, by re-scanning each heading's full extent, so a parent's
    numbers come from the same raw lines as its children's rather than from a
    sum that could drift at section boundaries.
    """
    for i, heading in enumerate(headings):
        start = heading.line_number - 1
        heading.citations, heading.unique_citation_commands = _citations_between(
            lines, start, _direct_content_end(lines, headings, i)
        )

    for level in range(_DEEPEST_LEVEL, -1, -1):
        for i in range(len(headings) - 1, -1, -1):
            heading = headings[i]
            if heading.level != level:
                continue
            start = heading.line_number - 1
            citations, commands = _citations_between(lines, start, _extent_end(lines, headings, i))
            heading.citations = citations
            heading.unique_citation_commands = min(commands, len(citations))
    return headings


def parse_document_structure(text: str) -> list[HeadingNode]:
    return aggregate_citations(split_lines(text), extract_structure(text))


def top_level_headings(headings: list[HeadingNode]) -> list[HeadingNode]:
    if not headings:
        return []
    min_level = min(h.level for h in headings)
    return [h for h in headings if h.level == min_level]
