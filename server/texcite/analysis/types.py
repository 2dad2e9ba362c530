from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass(frozen=True)
class CitationOccurrence:
    keys: tuple[str, ...]


@dataclass(frozen=True)
class CitationExtractionResult:
    citations: list[str]
    unique_citation_commands: int


@dataclass
class HeadingNode:
    level: int
    type: str
    title: str
    line_number: int
    citations: list[str] = field(default_factory=list)
    unique_citation_commands: int = 0
    file_path: str | None = None


@dataclass(frozen=True)
class CatalogTag:
    id: str
    name: str
    abbreviation: str | None = None
    color: str | None = None


@dataclass(frozen=True)
class CatalogSource:
    id: str
    abbreviation: str | None
    title: str = ""
    tag_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class ProjectCatalog:
    project_id: str
    repo_url: str | None
    selected_files: tuple[str, ...]
    sources: tuple[CatalogSource, ...] = ()
    tags: tuple[CatalogTag, ...] = ()

    def tag_by_id(self) -> dict[str, CatalogTag]:
        return {t.id: t for t in self.tags}

    def source_records(self) -> list[dict]:
        tags = self.tag_by_id()
        out: list[dict] = []
        for source in self.sources:
            out.append(
                {
                    "id": source.id,
                    "abbreviation": source.abbreviation,
                    "title": source.title,
                    "tags": [asdict(tags[tid]) for tid in source.tag_ids if tid in tags],
                }
            )
        return out


@dataclass(frozen=True)
class FileAnalysis:
    path: str
    status: str  # "ok" | "failed" | "skipped"
    citations: list[str] = field(default_factory=list)
    unique_citation_commands: int = 0
    sentences: int = 0
    structure: list[HeadingNode] = field(default_factory=list)
    error: str | None = None

    def summary(self) -> dict:
        return {
            "path": self.path,
            "status": self.status,
            "citations": len(self.citations),
            "unique_citation_commands": self.unique_citation_commands,
            "sentences": self.sentences,
            "headings": len(self.structure),
            "error": self.error,
        }


@dataclass
class ProjectCitationReport:
    citations: list[str] = field(default_factory=list)
    total_citations: int = 0
    total_unique_citations: int = 0
    unique_sources: int = 0
    source_usage: dict[str, int] = field(default_factory=dict)
    topic_usage: dict[str, int] = field(default_factory=dict)
    sources: list[dict] = field(default_factory=list)
    average_citations_per_sentence: float = 0.0
    average_unique_citations_per_sentence: float = 0.0
    total_sentences: int = 0
    document_structure: list[HeadingNode] = field(default_factory=list)
    files: list[dict] = field(default_factory=list)

    def as_dict(self) -> dict:
        return asdict(self)
