import unittest

from fakes import FakeClient, external_rows, label_rows, reference_rows, sitelink_rows

from wikiprov.errors import TransportError
from wikiprov.report import build_item_report, project_links

P = "http://www.wikidata.org/prop/"
LINKS = [
    "https://de.wikipedia.org/wiki/Johann_Sebastian_Bach",
    "https://en.wikipedia.org/wiki/Johann_Sebastian_Bach",
    "https://commons.wikimedia.org/wiki/Category:Johann_Sebastian_Bach",
    "https://www.wikidata.org/wiki/Q1339",
]


class ItemReportTests(unittest.TestCase):
    def _answers(self):
        return {
            ("Q1339", "label"): label_rows("Johann Sebastian Bach"),
            ("Q1339", "external_identifier_count"): external_rows(2),
            ("Q1339", "referenced_percentage"): reference_rows(10, [P + "P19", P + "P19", P + "P27", P + "P569"]),
            ("Q1339", "wiki_project_counts"): sitelink_rows(LINKS),
        }

    def test_full_report(self) -> None:
        report = build_item_report(FakeClient(self._answers()), "Q1339", "en")
        self.assertEqual(report.label, "Johann Sebastian Bach")
        self.assertEqual(report.external_identifiers, [("P200", "id-0"), ("P201", "id-1")])
        self.assertEqual(report.referenced_by_property, {P + "P19": 2, P + "P27": 1, P + "P569": 1})
        self.assertEqual(report.referenced_properties, 3)
        self.assertEqual(report.total_statements, 10)
        self.assertEqual(report.referenced_percentage, 30.0)
        self.assertEqual(
            report.sitelinks,
            {
                "wikipedia": [("de", LINKS[0]), ("en", LINKS[1])],
                "commons": [("commons", LINKS[2])],
            },
        )
        self.assertEqual(report.errors, {})

    def test_failed_section_is_recorded(self) -> None:
        answers = self._answers()
        answers[("Q1339", "referenced_percentage")] = TransportError("HTTP 500", status=500)
        with self.assertLogs("wikiprov.report", level="WARNING"):
            report = build_item_report(FakeClient(answers), "Q1339", "en")
        self.assertIn("references", report.errors)
        self.assertEqual(report.referenced_percentage, 0.0)
        self.assertEqual(report.label, "Johann Sebastian Bach")
        self.assertEqual(len(report.sitelinks["wikipedia"]), 2)

    def test_project_links_uses_filtered_query(self) -> None:
        seen = []

        class Client:
            def execute(self, query):
                seen.append(query)
                return sitelink_rows(LINKS[:2])

        links = project_links(Client(), "Q1339", "wikipedia")
        self.assertEqual(links, [("de", LINKS[0]), ("en", LINKS[1])])
        self.assertIn('"wikipedia.org/"', seen[0])
        self.assertIn("wd:Q1339", seen[0])


if __name__ == "__main__":
    unittest.main()
