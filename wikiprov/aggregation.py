"""Reductions from a ResultSet to the statistics shown for an item."""

from __future__ import annotations

from collections import Counter
from typing import Callable, Optional
from urllib.parse import urlparse

from . import config
from .errors import SchemaMismatchError
from .results import ResultSet


def count_groups(result_set: ResultSet, group_key_variable: str, presence_variable: str) -> dict[str, int]:
    """Count rows per group key, considering only rows where presence_variable is bound."""
    result_set.require(group_key_variable, presence_variable)
    counts = Counter()
    for index, row in enumerate(result_set.rows):
        if presence_variable not in row:
            continue
        if group_key_variable not in row:
            raise SchemaMismatchError(group_key_variable, result_set.variables, {"row": index})
        counts[row[group_key_variable].value] += 1
    return dict(counts)


def classify_and_count(
    result_set: ResultSet,
    variable: str,
    classifier: Callable[[str], Optional[str]],
) -> dict[str, int]:
    """Tally classifier(value) over the bound values of one variable; None is dropped."""
    counts = Counter()
    for value in result_set.values(variable):
        category = classifier(value)
        if category is not None:
            counts[category] += 1
    return dict(counts)


def percentage_referenced(result_set: ResultSet, group_key_variable: str, presence_variable: str) -> float:
    """100 * distinct referenced group keys / total rows, two decimals, 0.0 when empty."""
    groups = count_groups(result_set, group_key_variable, presence_variable)
    total = len(result_set.rows)
    if total == 0:
        return 0.0
    return round(len(groups) * 100 / total, 2)


def format_percentage(value: float) -> str:
    return f"{value:.2f}"


def extract_scalar(result_set: ResultSet, variable: str) -> Optional[str]:
    """First row's value for variable, or None. Later rows are ignored."""
    result_set.require(variable)
    if not result_set.rows:
        return None
    bound = result_set.rows[0].get(variable)
    return bound.value if bound is not None else None


def classify_project(url: str) -> Optional[str]:
    """Map a sitelink URL to its Wikimedia project name; first configured match wins."""
    if not isinstance(url, str):
        return None
    host = (urlparse(url).hostname or "").lower()
    if not host:
        return None
    for project, suffix in config.WIKI_PROJECTS:
        if host == suffix or host.endswith("." + suffix):
            return project
    return None


def language_prefix(url: str) -> str:
    """`https://fr.wikipedia.org/wiki/X` -> `fr`."""
    host = urlparse(url).hostname or ""
    return host.split(".", 1)[0]


def local_name(uri: str) -> str:
    """Last path segment of a URI, e.g. the property id of a property URI."""
    return uri.rstrip("/").rsplit("/", 1)[-1]


# Metric name -> (query name, reducer). One entry per AggregatedRecord field.
METRIC_HANDLERS = {
    "label": ("label", lambda rs: extract_scalar(rs, "label")),
    "external_identifier_count": ("external_links", lambda rs: len(rs.rows)),
    "referenced_percentage": ("references", lambda rs: percentage_referenced(rs, "prop", "reference")),
    "wiki_project_counts": ("all_wiki_links", lambda rs: classify_and_count(rs, "wikilink", classify_project)),
}
