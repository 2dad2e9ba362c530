from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace

from server.texcite.analysis.latex.citations import extract_citations
from server.texcite.analysis.latex.sentences import count_sentences
from server.texcite.analysis.latex.structure import parse_document_structure, top_level_headings
from server.texcite.analysis.types import (
    CatalogSource,
    FileAnalysis,
    ProjectCatalog,
    ProjectCitationReport,
)

logger = logging.getLogger(__name__)

FetchFn = Callable[[str], str]
ProgressCallback = Callable[[str, str | None, float | None], None]

LATEX_SUFFIX = ".tex"


def summarize_file(path: str, text: str, *, mismatch_tolerance: int = 5) -> FileAnalysis:
    whole = extract_citations(text)
    sentences = count_sentences(text)
    structure = parse_document_structure(text)

    top = top_level_headings(structure)
    if top:
        top_total = sum(len(h.citations) for h in top)
        if abs(top_total - len(whole.citations)) > mismatch_tolerance:
            logger.warning(
                "Citation count mismatch in %s: file has %s citations, top-level sections sum to %s",
                path,
                len(whole.citations),
                top_total,
            )

    return FileAnalysis(
        path=path,
        status="ok",
        citations=whole.citations,
        unique_citation_commands=whole.unique_citation_commands,
        sentences=sentences,
        structure=[replace(h, file_path=path) for h in structure],
    )


def _analyze_one(path: str, fetch: FetchFn, mismatch_tolerance: int) -> FileAnalysis:
    try:
        text = fetch(path)
    except Exception as e:
        logger.warning("Failed to fetch file %s: %s", path, e)
        return FileAnalysis(path=path, status="failed", error=str(e) or e.__class__.__name__)
    return summarize_file(path, text or "", mismatch_tolerance=mismatch_tolerance)


def _analyze_files(
    paths: list[str],
    *,
    fetch: FetchFn,
    max_workers: int,
    mismatch_tolerance: int,
    progress: Callable[[int], None],
) -> list[FileAnalysis]:
    if max_workers <= 1 or len(paths) <= 1:
        out: list[FileAnalysis] = []
        for idx, path in enumerate(paths, start=1):
            out.append(_analyze_one(path, fetch, mismatch_tolerance))
            progress(idx)
        return out

    # map() yields in submission order, which keeps the report in file-list order.
    with ThreadPoolExecutor(max_workers=min(max_workers, len(paths))) as pool:
        out = []
        for idx, analysis in enumerate(
            pool.map(lambda p: _analyze_one(p, fetch, mismatch_tolerance), paths), start=1
        ):
            out.append(analysis)
            progress(idx)
        return out


def resolve_source_usage(
    citations: Iterable[str], sources: Iterable[CatalogSource]
) -> dict[str, int]:
    by_abbreviation: dict[str, CatalogSource] = {}
    for source in sources:
        if source.abbreviation:
            by_abbreviation[source.abbreviation.lower()] = source

    usage: dict[str, int] = {}
    for key in citations:
        source = by_abbreviation.get(key.lower())
        if source is None:
            continue
        usage[source.id] = usage.get(source.id, 0) + 1
    return usage


def resolve_topic_usage(source_usage: dict[str, int], catalog: ProjectCatalog) -> dict[str, int]:
    """Credit each matched source's full count to every tag it carries (overlapping tags both count)."""
    tags = catalog.tag_by_id()
    usage: dict[str, int] = {}
    for source in catalog.sources:
        count = source_usage.get(source.id, 0)
        if not count:
            continue
        for tag_id in source.tag_ids:
            tag = tags.get(tag_id)
            if tag is None:
                continue
            usage[tag.name] = usage.get(tag.name, 0) + count
    return usage


def build_citation_report(
    catalog: ProjectCatalog,
    *,
    fetch: FetchFn,
    max_workers: int = 1,
    mismatch_tolerance: int = 5,
    progress_cb: ProgressCallback | None = None,
) -> ProjectCitationReport:
    report = ProjectCitationReport(sources=catalog.source_records())
    if not (catalog.repo_url or "").strip() or not catalog.selected_files:
        return report

    def _progress(stage: str, message: str | None = None, value: float | None = None) -> None:
        if progress_cb:
            progress_cb(stage, message, value)

    tex_files: list[str] = []
    skipped: list[FileAnalysis] = []
    for path in catalog.selected_files:
        if path.endswith(LATEX_SUFFIX):
            tex_files.append(path)
        else:
            skipped.append(FileAnalysis(path=path, status="skipped"))

    _progress("fetch", f"Analyzing {len(tex_files)} LaTeX file(s)", 0.0)
    analyses = _analyze_files(
        tex_files,
        fetch=fetch,
        max_workers=max_workers,
        mismatch_tolerance=mismatch_tolerance,
        progress=lambda done: _progress("fetch", None, done / max(1, len(tex_files))),
    )

    for analysis in analyses:
        if analysis.status != "ok":
            continue
        report.citations.extend(analysis.citations)
        report.total_unique_citations += analysis.unique_citation_commands
        report.total_sentences += analysis.sentences
        report.document_structure.extend(analysis.structure)

    report.total_citations = len(report.citations)
    if report.total_sentences > 0:
        report.average_citations_per_sentence = report.total_citations / report.total_sentences
        report.average_unique_citations_per_sentence = report.total_unique_citations / report.total_sentences

    report.source_usage = resolve_source_usage(report.citations, catalog.sources)
    report.unique_sources = len(report.source_usage)
    report.topic_usage = resolve_topic_usage(report.source_usage, catalog)

    by_path = {a.path: a for a in [*analyses, *skipped]}
    report.files = [by_path[p].summary() for p in catalog.selected_files if p in by_path]

    failed = sum(1 for a in analyses if a.status == "failed")
    if failed:
        logger.info("Citation report for project %s skipped %s unreadable file(s)", catalog.project_id, failed)
    _progress("done", "Citation report ready", 1.0)
    return report
