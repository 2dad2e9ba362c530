import json
import tempfile
import unittest
from dataclasses import replace
from pathlib import Path

from fastapi.testclient import TestClient

from server.texcite.app import create_app
from server.texcite.core.config import Settings
from server.texcite.core.db import session_scope
from server.texcite.core.models import Project, Source, SourceTag, Tag
from server.texcite.routes.citations import github_fetcher_factory

_FILES = {
    "main.tex": "\\section{Intro}\n\\cite{smith2020}\n\\subsection{Background}\n\\cite{jones2019}",
}


class TestProjectCitationsRoute(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.settings = replace(
            Settings.from_env(),
            db_url=f"sqlite:///{Path(self._tmp.name) / 'routes.db'}",
            create_tables_on_startup=True,
            fetch_max_workers=1,
        )
        self.app = create_app(self.settings)
        self.repo_urls: list[str] = []

        def _factory(repo_url: str):
            self.repo_urls.append(repo_url)
            return lambda path: _FILES[path]

        self.app.dependency_overrides[github_fetcher_factory] = lambda: _factory
        self.client = TestClient(self.app)

        with session_scope(self.settings) as db:
            project = Project(
                id="p1",
                owner_id="u1",
                title="Thesis",
                github_repo_url="https://github.com/octo/thesis",
                github_repo_files=json.dumps(["main.tex", "notes.md"]),
            )
            empty = Project(id="p2", owner_id="u1", title="Unlinked")
            tag = Tag(id="t1", project=project, abbreviation="A", name="Topic A")
            db.add_all(
                [
                    project,
                    empty,
                    tag,
                    Source(id="smith", project=project, abbreviation="smith2020", title="Smith"),
                    Source(id="jones", project=project, abbreviation="jones2019", title="Jones"),
                ]
            )
            db.flush()
            db.add_all([SourceTag(source_id="smith", tag_id="t1"), SourceTag(source_id="jones", tag_id="t1")])

    def test_report_for_linked_project(self) -> None:
        resp = self.client.get("/projects/p1/citations")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(self.repo_urls, ["https://github.com/octo/thesis"])
        self.assertEqual(body["total_citations"], 2)
        self.assertEqual(body["source_usage"], {"smith": 1, "jones": 1})
        self.assertEqual(body["topic_usage"], {"Topic A": 2})
        self.assertEqual(body["document_structure"][0]["citations"], ["smith2020", "jones2019"])
        self.assertEqual([f["status"] for f in body["files"]], ["ok", "skipped"])

    def test_unlinked_project_gets_zero_report(self) -> None:
        resp = self.client.get("/projects/p2/citations")
        self.assertEqual(resp.status_code, 200)
        body = resp.json()
        self.assertEqual(body["total_citations"], 0)
        self.assertEqual(body["average_citations_per_sentence"], 0)
        self.assertEqual(body["sources"], [])

    def test_unknown_project(self) -> None:
        self.assertEqual(self.client.get("/projects/missing/citations").status_code, 404)

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/healthz").json(), {"ok": True})
        self.assertTrue(self.client.get("/readyz").json()["ok"])


if __name__ == "__main__":
    unittest.main()
