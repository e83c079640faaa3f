"""Count `<ref>` citations in a Wikipedia article's wikitext."""

import logging
import re
from dataclasses import dataclass, field
from urllib.parse import quote, unquote

from . import config
from .client import call_api, open_site
from .errors import DecodeError

logger = logging.getLogger(__name__)

_TAG_RE = re.compile(r"<[^>]*>")


@dataclass
class ArticleReferences:
    language: str
    title: str
    references: list = field(default_factory=list)

    @property
    def count(self):
        return len(self.references)

    @property
    def display_title(self):
        return self.title.replace("_", " ")


def parse_article_url(url):
    """Return (language, title) for a `https://<lang>.wikipedia.org/wiki/<title>` URL."""
    match = config.WIKIPEDIA_URL_PATTERN.match(url or "")
    if not match:
        raise ValueError(f"Not a Wikipedia article URL: {url!r}")
    return match.group("lang"), unquote(match.group("title"))


def find_references(wikitext):
    """All `<ref>...</ref>` and self-closing `<ref/>` tags, in document order."""
    return config.REFERENCE_TAG_PATTERN.findall(wikitext or "")


def reference_preview(ref, limit=config.REFERENCE_PREVIEW_CHARS):
    return _TAG_RE.sub("", ref)[:limit]


def fetch_wikitext(language, title, site=None):
    site = site or open_site(config.WIKIPEDIA_HOST.format(lang=quote(language, safe="")))
    data = call_api(site, "parse", page=title, prop="wikitext")
    try:
        return data["parse"]["wikitext"]["*"]
    except (KeyError, TypeError) as exc:
        raise DecodeError(f"No wikitext in parse response for {title!r}") from exc


def analyse_article(url, site=None):
    """Fetch the article behind a Wikipedia URL and collect its references."""
    language, title = parse_article_url(url)
    logger.info("[*] Article %s (%s)", title, language)
    wikitext = fetch_wikitext(language, title, site=site)
    references = find_references(wikitext)
    logger.info("[+] Found %s references", len(references))
    return ArticleReferences(language=language, title=title, references=references)
