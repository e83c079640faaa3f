"""Single-item provenance report: label, identifiers, references and sitelinks."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Optional

from . import config
from .aggregation import (
    classify_project,
    count_groups,
    extract_scalar,
    language_prefix,
    local_name,
    percentage_referenced,
)
from .errors import DecodeError, TransportError
from .templates import render_query

logger = logging.getLogger(__name__)


@dataclass
class ItemReport:
    item: str
    language: str
    label: Optional[str] = None
    external_identifiers: list[tuple[str, str]] = field(default_factory=list)
    referenced_by_property: dict[str, int] = field(default_factory=dict)
    total_statements: int = 0
    referenced_percentage: float = 0.0
    sitelinks: dict[str, list[tuple[str, str]]] = field(default_factory=dict)
    errors: dict[str, Exception] = field(default_factory=dict)

    @property
    def referenced_properties(self) -> int:
        return len(self.referenced_by_property)


def _sitelinks_by_project(result_set):
    grouped = defaultdict(list)
    for url in result_set.values("wikilink"):
        project = classify_project(url)
        if project is not None:
            grouped[project].append((language_prefix(url), url))
    return dict(grouped)


def project_links(client, item, project):
    """Sitelinks of one project only, using the project-filtered query."""
    suffix = dict(config.WIKI_PROJECTS)[project]
    result_set = client.execute(render_query("wiki_links", {"item": item, "wikiproject": suffix}))
    return [(language_prefix(url), url) for url in result_set.values("wikilink")]


def build_item_report(client, item=config.DEFAULT_ITEM, language=config.DEFAULT_LANGUAGE):
    """Run the per-item queries one after another and reduce each into the report.

    A transport or decode failure in one section is recorded in `errors` and
    leaves that section empty.
    """
    report = ItemReport(item=item, language=language)
    params = {"item": item, "lang": language}

    def _section(name, query_name, apply):
        try:
            result_set = client.execute(render_query(query_name, params))
        except (TransportError, DecodeError) as exc:
            logger.warning("[!] %s section for %s failed: %s", name, item, exc)
            report.errors[name] = exc
            return
        apply(result_set)

    def _label(rs):
        report.label = extract_scalar(rs, "label")

    def _external(rs):
        rs.require("property", "value")
        report.external_identifiers = [
            (local_name(row["property"].value), row["value"].value)
            for row in rs.rows
            if "property" in row and "value" in row
        ]

    def _references(rs):
        report.referenced_by_property = count_groups(rs, "prop", "reference")
        report.total_statements = len(rs)
        report.referenced_percentage = percentage_referenced(rs, "prop", "reference")

    def _sitelinks(rs):
        report.sitelinks = _sitelinks_by_project(rs)

    _section("label", "label", _label)
    _section("external_identifiers", "external_links", _external)
    _section("references", "references", _references)
    _section("sitelinks", "all_wiki_links", _sitelinks)
    return report
