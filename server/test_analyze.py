import contextlib
import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from server import analyze


class TestAnalyzeCommand(unittest.TestCase):
    def test_local_checkout_report_logs_progress(self) -> None:
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "chapters").mkdir()
            (root / "main.tex").write_text("\\section{Intro}\nFirst sentence \\cite{a,b}.", encoding="utf-8")
            (root / "chapters" / "two.tex").write_text("\\section{Two}\n\\cite{c}", encoding="utf-8")

            out = io.StringIO()
            with (
                mock.patch.dict(os.environ, {}, clear=True),
                mock.patch.object(analyze, "load_dotenv"),
                mock.patch("sys.argv", ["texcite-analyze", "--root", tmpdir]),
                self.assertLogs("server.analyze", level="INFO") as logs,
                contextlib.redirect_stdout(out),
            ):
                analyze.main()

        payload = json.loads(out.getvalue())
        self.assertEqual(payload["citations"], ["c", "a", "b"])
        self.assertEqual([f["path"] for f in payload["files"]], ["chapters/two.tex", "main.tex"])
        self.assertIn("INFO:server.analyze:fetch: Analyzing 2 LaTeX file(s)", logs.output)
        self.assertIn("INFO:server.analyze:fetch: 100%", logs.output)
        self.assertEqual(logs.output[-1], "INFO:server.analyze:done: Citation report ready")


if __name__ == "__main__":
    unittest.main()
