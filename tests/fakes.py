import re
import threading

from wikiprov.errors import TransportError
from wikiprov.results import ResultSet

ITEM_RE = re.compile(r"wd:(\w+)")


def metric_of(query):
    if "rdfs:label" in query:
        return "label"
    if "ExternalId" in query:
        return "external_identifier_count"
    if "prov:wasDerivedFrom" in query:
        return "referenced_percentage"
    if "schema:about" in query:
        return "wiki_project_counts"
    raise AssertionError(f"Unexpected query: {query}")


def label_rows(label):
    return ResultSet.from_rows(["label"], [{"label": label}])


def external_rows(count):
    return ResultSet.from_rows(
        ["property", "value"],
        [{"property": f"http://www.wikidata.org/entity/P{200 + i}", "value": f"id-{i}"} for i in range(count)],
    )


def reference_rows(total, referenced_props):
    """`total` statements; the first len(referenced_props) carry a reference."""
    rows = []
    for idx in range(total):
        row = {
            "statement": f"http://www.wikidata.org/entity/statement/S{idx}",
            "prop": f"http://www.wikidata.org/prop/P{idx}",
        }
        if idx < len(referenced_props):
            row["prop"] = referenced_props[idx]
            row["reference"] = f"http://www.wikidata.org/reference/R{idx}"
        rows.append(row)
    return ResultSet.from_rows(["statement", "prop", "reference"], rows)


def sitelink_rows(urls):
    return ResultSet.from_rows(["wikilink"], [{"wikilink": url} for url in urls])


class FakeClient:
    """Answers the comparison queries from a table keyed by (item, metric).

    A value that is an exception instance is raised instead of returned. Items
    listed in `gates` block until their threading.Event is set.
    """

    def __init__(self, answers, gates=None):
        self.answers = answers
        self.gates = gates or {}
        self.queries = []
        self._lock = threading.Lock()

    def execute(self, query):
        item = ITEM_RE.search(query).group(1)
        metric = metric_of(query)
        with self._lock:
            self.queries.append((item, metric))
        gate = self.gates.get(item)
        if gate is not None:
            gate.wait(timeout=5)
        answer = self.answers.get((item, metric))
        if answer is None:
            raise TransportError(f"no fixture for {item}/{metric}")
        if isinstance(answer, Exception):
            raise answer
        return answer
