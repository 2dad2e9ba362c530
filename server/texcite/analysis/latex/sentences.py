from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache

LIST_ENVIRONMENTS: tuple[str, ...] = ("itemize", "enumerate", "description")
TABLE_ENVIRONMENTS: tuple[str, ...] = ("tabular", "table", "longtable")

_COMMAND_RE = re.compile(r"\\[a-zA-Z]+\*?(?:\[[^\]]*\])?(?:\{[^}]*\})*")
_BRACE_GROUP_RE = re.compile(r"\{[^}]*\}")
_LINE_COMMENT_RE = re.compile(r"%.*$", re.MULTILINE)
_SENTENCE_SPLIT_RE = re.compile(r"\.\s+")
_ITEM_RE = re.compile(r"\\item(?![a-zA-Z])\s*(.*?)(?=\\item(?![a-zA-Z])|\\end|\Z)", re.DOTALL)
_ROW_SPLIT_RE = re.compile(r"\\\\")
_CELL_SPLIT_RE = re.compile(r"(?<!\\)&")

_MIN_MAIN_FRAGMENT_CHARS = 3


@dataclass(frozen=True)
class EnvironmentSpan:
    name: str
    start: int
    end: int
    body: str


@lru_cache(maxsize=8)
def _environment_re(names: tuple[str, ...]) -> re.Pattern[str]:
    alternation = "|".join(re.escape(n) for n in names)
    return re.compile(r"\\begin\{(" + alternation + r")\}(.*?)\\end\{\1\}", re.DOTALL)


def find_environments(text: str, names: tuple[str, ...]) -> list[EnvironmentSpan]:
    # Non-greedy: a span ends at the first matching \end, so a list nested in a list of the
    # same kind closes the outer span early and the outer tail is left in the main text.
    return [
        EnvironmentSpan(name=m.group(1), start=m.start(), end=m.end(), body=m.group(2))
        for m in _environment_re(names).finditer(text)
    ]


def outermost_environments(spans: list[EnvironmentSpan]) -> list[EnvironmentSpan]:
    """Drop spans that start inside an earlier span; the rest are disjoint and in text order."""
    kept: list[EnvironmentSpan] = []
    for span in sorted(spans, key=lambda s: (s.start, -s.end)):
        if kept and span.start < kept[-1].end:
            continue
        kept.append(span)
    return kept


def blank_environments(text: str, spans: list[EnvironmentSpan]) -> str:
    for span in sorted(outermost_environments(spans), key=lambda s: s.start, reverse=True):
        text = text[: span.start] + " " + text[span.end :]
    return text


def strip_commands(text: str, *, replacement: str = "") -> str:
    text = _COMMAND_RE.sub(replacement, text)
    return _BRACE_GROUP_RE.sub(replacement, text)


def _fragment_sentences(text: str) -> int:
    if "." not in text:
        return 1
    return len([s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()])


def count_item_sentences(body: str) -> int:
    total = 0
    for m in _ITEM_RE.finditer(body):
        item = strip_commands(m.group(1)).strip()
        if not item:
            continue
        total += _fragment_sentences(item)
    return total


def count_table_sentences(body: str) -> int:
    total = 0
    rows = [r for r in _ROW_SPLIT_RE.split(body) if r.strip()]
    for row in rows:
        for cell in _CELL_SPLIT_RE.split(row):
            cell = strip_commands(cell).strip()
            if cell:
                total += _fragment_sentences(cell)
    return total


def count_main_text_sentences(text: str) -> int:
    text = _COMMAND_RE.sub(" ", text)
    text = _LINE_COMMENT_RE.sub("", text)
    text = _BRACE_GROUP_RE.sub(" ", text)
    return len([s for s in _SENTENCE_SPLIT_RE.split(text) if len(s.strip()) > _MIN_MAIN_FRAGMENT_CHARS])


def count_sentences(text: str) -> int:
    """
    Estimate the number of sentences in a LaTeX document.

    List items and table cells count as one sentence each unless they contain
    periods. Environments nested inside another counted environment are not
    counted again. The outermost environments are blanked out before the
    remaining prose is split on ". ", so nothing is counted twice.
    """
    if not text:
        return 0

    lists = find_environments(text, LIST_ENVIRONMENTS)
    tables = find_environments(text, TABLE_ENVIRONMENTS)
    # A table inside a list (or a list inside a table) is already part of the outer body.
    spans = outermost_environments([*lists, *tables])

    count = 0
    for env in spans:
        if env.name in LIST_ENVIRONMENTS:
            count += count_item_sentences(env.body)
        else:
            count += count_table_sentences(env.body)

    return count + count_main_text_sentences(blank_environments(text, spans))
