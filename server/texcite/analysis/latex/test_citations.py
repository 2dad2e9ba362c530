import unittest

from server.texcite.analysis.latex.citations import (
    CITATION_COMMANDS,
    extract_citations,
    iter_citation_occurrences,
)


class TestExtractCitations(unittest.TestCase):
    def test_text_without_commands_has_no_citations(self) -> None:
        for text in ["", "Plain prose. No citations here.", "\\section{Intro} \\ref{fig:1} \\label{x}"]:
            result = extract_citations(text)
            self.assertEqual(result.citations, [])
            self.assertEqual(result.unique_citation_commands, 0)

    def test_multi_key_command_counts_once(self) -> None:
        result = extract_citations(r"\cite{a,b,c}")
        self.assertEqual(result.citations, ["a", "b", "c"])
        self.assertEqual(result.unique_citation_commands, 1)

    def test_adjacent_commands_count_separately(self) -> None:
        result = extract_citations(r"\cite{a}\cite{b}")
        self.assertEqual(result.citations, ["a", "b"])
        self.assertEqual(result.unique_citation_commands, 2)

    def test_keys_are_trimmed_and_duplicates_kept(self) -> None:
        result = extract_citations(r"See \parencite{ smith2020 , jones2019 } and \textcite{smith2020}.")
        self.assertEqual(result.citations, ["smith2020", "jones2019", "smith2020"])
        self.assertEqual(result.unique_citation_commands, 2)

    def test_empty_keys_are_preserved(self) -> None:
        result = extract_citations(r"\cite{a,,b}")
        self.assertEqual(result.citations, ["a", "", "b"])
        self.assertEqual(result.unique_citation_commands, 1)

    def test_star_and_optional_argument(self) -> None:
        result = extract_citations(r"\autocite*[p.~12]{knuth1984} \citep[see][]{x}")
        # Only one bracket group is skipped, so natbib's two-group form does not match.
        self.assertEqual(result.citations, ["knuth1984"])

    def test_every_alias_is_recognized(self) -> None:
        text = " ".join(f"\\{cmd}{{k{i}}}" for i, cmd in enumerate(CITATION_COMMANDS))
        result = extract_citations(text)
        self.assertEqual(result.citations, [f"k{i}" for i in range(len(CITATION_COMMANDS))])
        self.assertEqual(result.unique_citation_commands, len(CITATION_COMMANDS))

    def test_unknown_and_malformed_commands_do_not_match(self) -> None:
        result = extract_citations(r"\citation{a} \nocite{b} \cite{} \cite{unterminated")
        self.assertEqual(result.citations, [])
        self.assertEqual(result.unique_citation_commands, 0)

    def test_occurrences_keep_key_groups(self) -> None:
        groups = [o.keys for o in iter_citation_occurrences(r"\cite{a,b} text \footcite{c}")]
        self.assertEqual(groups, [("a", "b"), ("c",)])


if __name__ == "__main__":
    unittest.main()
