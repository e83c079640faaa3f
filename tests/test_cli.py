import io
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from fakes import FakeClient, external_rows, label_rows, reference_rows, sitelink_rows

from wikiprov.cli import main
from wikiprov.client import SearchHit
from wikiprov.errors import TransportError

P = "http://www.wikidata.org/prop/"


def _run(argv, client):
    out = io.StringIO()
    with mock.patch("wikiprov.cli.QueryClient", return_value=client):
        with redirect_stdout(out), redirect_stderr(io.StringIO()):
            code = main(argv)
    return code, out.getvalue()


class CliTests(unittest.TestCase):
    def test_compare_prints_one_row_per_item(self) -> None:
        answers = {
            ("Q1", "label"): label_rows("One"),
            ("Q1", "external_identifier_count"): external_rows(3),
            ("Q1", "referenced_percentage"): reference_rows(10, [P + "P1", P + "P2", P + "P3"]),
            ("Q1", "wiki_project_counts"): sitelink_rows(["https://en.wikipedia.org/wiki/One"]),
            ("Q2", "label"): label_rows("Two"),
            ("Q2", "external_identifier_count"): TransportError("HTTP 503", status=503),
            ("Q2", "referenced_percentage"): reference_rows(0, []),
            ("Q2", "wiki_project_counts"): sitelink_rows([]),
        }
        with self.assertLogs("wikiprov", level="WARNING"):
            code, out = _run(["compare", "Q1, Q2"], FakeClient(answers))
        self.assertEqual(code, 0)
        lines = out.splitlines()
        row_one = next(line for line in lines if line.startswith("Q1 "))
        row_two = next(line for line in lines if line.startswith("Q2 "))
        self.assertIn("30.00", row_one)
        self.assertIn("0.00", row_two)
        self.assertIn("[!] Q2 external_identifier_count", out)

    def test_commons_links_have_no_language_column(self) -> None:
        client = mock.Mock()
        client.execute.return_value = sitelink_rows(["https://commons.wikimedia.org/wiki/Category:Bach"])
        code, out = _run(["item", "Q1339", "--project", "commons"], client)
        self.assertEqual(code, 0)
        self.assertIn("Total 1 category", out)
        self.assertNotIn("Language", out)
        self.assertNotIn("commons  ", out)

    def test_wikipedia_links_keep_language_column(self) -> None:
        client = mock.Mock()
        client.execute.return_value = sitelink_rows(["https://fr.wikipedia.org/wiki/Bach"])
        code, out = _run(["item", "Q1339", "--project", "wikipedia"], client)
        self.assertEqual(code, 0)
        self.assertIn("Total 1 languages", out)
        self.assertTrue(out.splitlines()[1].startswith("Language"))

    def test_search(self) -> None:
        client = mock.Mock()
        client.search.return_value = [SearchHit("Q1339", "Bach", "composer", "http://www.wikidata.org/entity/Q1339")]
        code, out = _run(["--language", "fr", "search", "bach"], client)
        self.assertEqual(code, 0)
        self.assertIn("Bach (Q1339): composer", out)
        client.search.assert_called_once_with("bach", language="fr", limit=10)

    def test_invalid_article_url_exits_nonzero(self) -> None:
        with self.assertLogs("wikiprov.cli", level="ERROR"):
            code, _out = _run(["article", "https://example.org/wiki/X"], mock.Mock())
        self.assertEqual(code, 1)

    def test_transport_error_exits_nonzero(self) -> None:
        client = mock.Mock()
        client.search.side_effect = TransportError("offline")
        with self.assertLogs("wikiprov.cli", level="ERROR"):
            code, _out = _run(["search", "bach"], client)
        self.assertEqual(code, 1)


if __name__ == "__main__":
    unittest.main()
