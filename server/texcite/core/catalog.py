from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session

from server.texcite.analysis.types import CatalogSource, CatalogTag, ProjectCatalog
from server.texcite.core.models import Project, Source, SourceTag, Tag


def load_project_catalog(db: Session, *, project_id: str) -> ProjectCatalog | None:
    """Load a project's repository selection, sources and tags; None when the project does not exist."""
    project = db.get(Project, project_id)
    if project is None:
        return None

    sources = db.scalars(
        select(Source).where(Source.project_id == project_id).order_by(Source.abbreviation.asc(), Source.id.asc())
    ).all()
    tags = db.scalars(select(Tag).where(Tag.project_id == project_id).order_by(Tag.name.asc())).all()

    tag_ids_by_source: dict[str, list[str]] = defaultdict(list)
    if sources:
        rows = db.execute(
            select(SourceTag.source_id, SourceTag.tag_id)
            .where(SourceTag.source_id.in_([s.id for s in sources]))
            .order_by(SourceTag.source_id, SourceTag.tag_id)
        ).all()
        for source_id, tag_id in rows:
            tag_ids_by_source[source_id].append(tag_id)

    return ProjectCatalog(
        project_id=project.id,
        repo_url=project.github_repo_url,
        selected_files=tuple(project.selected_files),
        sources=tuple(
            CatalogSource(
                id=s.id,
                abbreviation=s.abbreviation,
                title=s.title,
                tag_ids=tuple(tag_ids_by_source.get(s.id, [])),
            )
            for s in sources
        ),
        tags=tuple(CatalogTag(id=t.id, name=t.name, abbreviation=t.abbreviation, color=t.color) for t in tags),
    )
