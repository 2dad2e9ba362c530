from __future__ import annotations

import argparse
import json
import logging
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from server.texcite.analysis.report import build_citation_report
from server.texcite.analysis.types import ProjectCatalog
from server.texcite.core.catalog import load_project_catalog
from server.texcite.core.cli import add_runtime_args, apply_runtime_overrides
from server.texcite.core.config import Settings
from server.texcite.core.db import session_scope

logger = logging.getLogger(__name__)


def _local_fetcher(root: Path):
    def fetch(path: str) -> str:
        return (root / path).read_text(encoding="utf-8")

    return fetch


def log_progress(stage: str, message: str | None, value: float | None) -> None:
    if message:
        logger.info("%s: %s", stage, message)
    elif value is not None:
        logger.info("%s: %.0f%%", stage, value * 100)


def main() -> None:
    parser = argparse.ArgumentParser(description="Print a citation report for LaTeX files in a local checkout.")
    add_runtime_args(parser)
    parser.add_argument("files", nargs="*", help="Paths relative to --root (defaults to every .tex file under it).")
    parser.add_argument("--root", default=".", help="Checkout directory the paths are relative to.")
    parser.add_argument(
        "--project-id",
        help="Use this project's sources and tags from the database for source/topic usage.",
    )
    args = parser.parse_args()

    load_dotenv()
    apply_runtime_overrides(args)
    settings = Settings.from_env()
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    root = Path(args.root).resolve()
    files = list(args.files) or sorted(p.relative_to(root).as_posix() for p in root.rglob("*.tex"))

    catalog = ProjectCatalog(project_id=args.project_id or "local", repo_url=str(root), selected_files=tuple(files))
    if args.project_id:
        with session_scope(settings) as db:
            stored = load_project_catalog(db, project_id=args.project_id)
        if stored is None:
            parser.error(f"project {args.project_id!r} not found")
        catalog = replace(stored, repo_url=str(root), selected_files=tuple(files))

    report = build_citation_report(
        catalog,
        fetch=_local_fetcher(root),
        max_workers=settings.fetch_max_workers,
        mismatch_tolerance=settings.structure_mismatch_tolerance,
        progress_cb=log_progress,
    )
    print(json.dumps(report.as_dict(), indent=2, ensure_ascii=False))


if __name__ == "__main__":
    main()
