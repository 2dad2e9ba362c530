import unittest

from server.texcite.analysis.latex.structure import (
    HEADING_LEVELS,
    aggregate_citations,
    extract_structure,
    parse_document_structure,
    split_lines,
    top_level_headings,
)

_THESIS = "\n".join(
    [
        r"\documentclass{report}",  # 1
        r"\begin{document}",  # 2
        r"\chapter{Introduction}",  # 3
        r"Motivation \cite{a}.",  # 4
        r"\section{Context}",  # 5
        r"As shown by \cite{b,c}.",  # 6
        r"\subsection{Details}",  # 7
        r"More \parencite[p.~3]{d}.",  # 8
        r"\section*[Short]{Related work}",  # 9
        r"\textcite{e}",  # 10
        r"\chapter{Method}",  # 11
        r"Nothing cited here.",  # 12
        r"\paragraph{Aside} \cite{f}",  # 13
    ]
)


def _by_title(headings):
    return {h.title: h for h in headings}


class TestExtractStructure(unittest.TestCase):
    def test_headings_levels_and_lines(self) -> None:
        headings = extract_structure(_THESIS)
        self.assertEqual(
            [(h.type, h.level, h.title, h.line_number) for h in headings],
            [
                ("chapter", 1, "Introduction", 3),
                ("section", 2, "Context", 5),
                ("subsection", 3, "Details", 7),
                ("section", 2, "Related work", 9),
                ("chapter", 1, "Method", 11),
                ("paragraph", 5, "Aside", 13),
            ],
        )
        self.assertTrue(all(h.citations == [] and h.unique_citation_commands == 0 for h in headings))

    def test_level_table(self) -> None:
        text = "\n".join(f"\\{kind}{{T{level}}}" for kind, level in HEADING_LEVELS.items())
        self.assertEqual([h.level for h in extract_structure(text)], list(range(7)))

    def test_only_first_heading_per_line(self) -> None:
        headings = extract_structure(r"\section{A}\subsection{B}")
        self.assertEqual([(h.type, h.title) for h in headings], [("section", "A")])

    def test_no_nesting_validation(self) -> None:
        headings = extract_structure("\\subsection{Orphan}\n\\part{Later}")
        self.assertEqual([h.level for h in headings], [3, 0])

    def test_extraction_is_repeatable(self) -> None:
        self.assertEqual(extract_structure(_THESIS), extract_structure(_THESIS))


class TestAggregateCitations(unittest.TestCase):
    def test_cumulative_citations(self) -> None:
        headings = _by_title(parse_document_structure(_THESIS))
        self.assertEqual(headings["Introduction"].citations, ["a", "b", "c", "d", "e"])
        self.assertEqual(headings["Introduction"].unique_citation_commands, 4)
        self.assertEqual(headings["Context"].citations, ["b", "c", "d"])
        self.assertEqual(headings["Context"].unique_citation_commands, 2)
        self.assertEqual(headings["Details"].citations, ["d"])
        self.assertEqual(headings["Related work"].citations, ["e"])
        self.assertEqual(headings["Method"].citations, ["f"])
        self.assertEqual(headings["Aside"].citations, ["f"])

    def test_last_section_includes_final_line(self) -> None:
        headings = parse_document_structure("\\section{Only}\n\\cite{last}")
        self.assertEqual(headings[0].citations, ["last"])

    def test_ancestors_contain_descendant_keys(self) -> None:
        headings = parse_document_structure(_THESIS)
        for i, parent in enumerate(headings):
            for child in headings[i + 1 :]:
                if child.level <= parent.level:
                    break
                for key in child.citations:
                    self.assertIn(key, parent.citations)

    def test_unique_commands_never_exceed_keys(self) -> None:
        text = "\\section{A}\n\\cite{x,y}\\cite{z}\n\\subsection{B}\n\\cite{,}"
        for heading in parse_document_structure(text):
            self.assertLessEqual(heading.unique_citation_commands, len(heading.citations))

    def test_no_headings(self) -> None:
        self.assertEqual(parse_document_structure(r"Just \cite{a} prose."), [])

    def test_aggregate_mutates_given_nodes(self) -> None:
        text = "\\section{A}\n\\cite{x}"
        headings = extract_structure(text)
        result = aggregate_citations(split_lines(text), headings)
        self.assertIs(result, headings)
        self.assertEqual(headings[0].citations, ["x"])

    def test_top_level_headings(self) -> None:
        headings = parse_document_structure(_THESIS)
        self.assertEqual([h.title for h in top_level_headings(headings)], ["Introduction", "Method"])
        self.assertEqual(top_level_headings([]), [])


if __name__ == "__main__":
    unittest.main()
