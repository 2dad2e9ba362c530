from __future__ import annotations

import logging
from collections.abc import Callable

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from server.texcite.analysis.report import FetchFn, build_citation_report
from server.texcite.core.catalog import load_project_catalog
from server.texcite.core.config import Settings
from server.texcite.core.db import db_session
from server.texcite.sources.github import GitHubClient

logger = logging.getLogger(__name__)

router = APIRouter()

FetcherFactory = Callable[[str], FetchFn]


def github_fetcher_factory(request: Request) -> FetcherFactory:
    settings: Settings = request.app.state.settings
    client = GitHubClient.from_settings(settings)
    return client.fetcher


@router.get("/projects/{project_id}/citations")
def project_citations(
    project_id: str,
    request: Request,
    db: Session = Depends(db_session),
    fetcher_factory: FetcherFactory = Depends(github_fetcher_factory),
):
    settings: Settings = request.app.state.settings
    catalog = load_project_catalog(db, project_id=project_id)
    if catalog is None:
        raise HTTPException(status_code=404, detail="Project not found.")

    report = build_citation_report(
        catalog,
        fetch=fetcher_factory(catalog.repo_url or ""),
        max_workers=settings.fetch_max_workers,
        mismatch_tolerance=settings.structure_mismatch_tolerance,
    )
    logger.info(
        "Citation report for project %s: %s citation(s) across %s sentence(s)",
        project_id,
        report.total_citations,
        report.total_sentences,
    )
    return report.as_dict()
