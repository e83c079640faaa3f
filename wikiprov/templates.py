"""Named SPARQL query templates with `{{placeholder}}` substitution."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Mapping

from .errors import MissingParameterError

PLACEHOLDER_RE = re.compile(r"\{\{(\w+)\}\}")


def placeholders(template: str) -> frozenset[str]:
    """Return the set of marker names used in a template."""
    return frozenset(PLACEHOLDER_RE.findall(template))


def substitute(template: str, params: Mapping[str, str]) -> str:
    """Replace every `{{key}}` with `params[key]`; an absent key is an error."""

    def _replace(match: re.Match) -> str:
        key = match.group(1)
        if key not in params:
            raise MissingParameterError(key, template)
        return str(params[key])

    return PLACEHOLDER_RE.sub(_replace, template)


@dataclass(frozen=True)
class QuerySpec:
    name: str
    template: str
    parameter_names: frozenset[str] = field(default=frozenset())

    @classmethod
    def from_template(cls, name: str, template: str) -> "QuerySpec":
        return cls(name=name, template=template, parameter_names=placeholders(template))

    def render(self, **params: str) -> str:
        return substitute(self.template, params)


_WIKI_LINKS = """SELECT ?wikilink WHERE {
  ?wikilink schema:about wd:{{item}}.
} ORDER BY ?wikilink"""

_PROJECT_WIKI_LINKS = """SELECT ?wikilink WHERE {
  ?wikilink schema:about wd:{{item}}.
  FILTER REGEX(STR(?wikilink), "{{wikiproject}}/").
} ORDER BY ?wikilink"""

_EXTERNAL_LINKS = """SELECT ?property ?value {
  ?qualifier rdf:type owl:DatatypeProperty.
  ?property rdf:type wikibase:Property;
    wikibase:propertyType wikibase:ExternalId.
  ?property wikibase:claim ?propertyclaim.
  wd:{{item}} ?propertyclaim [?qualifier ?value].
} ORDER BY ?property"""

_LABEL = """SELECT DISTINCT ?label WHERE {
  wd:{{item}} rdfs:label ?label;
  FILTER(lang(?label) = "{{lang}}").
}"""

_REFERENCES = """SELECT ?statement ?prop ?reference {
  wd:{{item}} ?prop ?statement.
  OPTIONAL { ?statement prov:wasDerivedFrom ?reference }
  FILTER (REGEX(STR(?statement), "http://www.wikidata.org/entity/statement/"))
} ORDER BY ?statement"""

QUERIES = {
    spec.name: spec
    for spec in (
        QuerySpec.from_template("all_wiki_links", _WIKI_LINKS),
        QuerySpec.from_template("wiki_links", _PROJECT_WIKI_LINKS),
        QuerySpec.from_template("external_links", _EXTERNAL_LINKS),
        QuerySpec.from_template("label", _LABEL),
        QuerySpec.from_template("references", _REFERENCES),
    )
}


def render_query(name: str, params: Mapping[str, str]) -> str:
    """Look up a named query and substitute its parameters."""
    return substitute(QUERIES[name].template, params)
