import re

# HTTP identity and base endpoints
HEADERS = {"User-Agent": "WikiProvenance/0.3 (Wikidata provenance statistics; python-requests)"}
SPARQL_ENDPOINT = "https://query.wikidata.org/sparql"
SPARQL_ACCEPT = "application/sparql-results+json"
WIKIDATA_HOST = "www.wikidata.org"
WIKIPEDIA_HOST = "{lang}.wikipedia.org"

# Request tuning
API_TIMEOUT = 30  # Seconds per HTTP request
MAX_RETRIES = 3  # Attempts per SPARQL query (429/5xx only)
RETRY_STATUSES = {429, 500, 502, 503, 504}
RETRY_BACKOFF_SECONDS = 0.5

# Comparison fan-out; sub-fetches beyond this many wait for a free worker
COMPARE_MAX_WORKERS = 8

# Defaults for the query parameters a page would read from its URL
DEFAULT_ITEM = "Q1339"
DEFAULT_LANGUAGE = "en"
DEFAULT_SEARCH = "search"
DEFAULT_COMPARE = "Q1339, Q254"
DEFAULT_ARTICLE_URL = "https://en.wikipedia.org/wiki/Main_Page"
SEARCH_LIMIT = 10

# Sibling Wikimedia projects, matched against sitelink hosts in this order
WIKI_PROJECTS = (
    ("wikipedia", "wikipedia.org"),
    ("commons", "commons.wikimedia.org"),
    ("wikivoyage", "wikivoyage.org"),
    ("wikinews", "wikinews.org"),
    ("wikisource", "wikisource.org"),
    ("wiktionary", "wiktionary.org"),
    ("wikiversity", "wikiversity.org"),
    ("wikibooks", "wikibooks.org"),
    ("wikiquote", "wikiquote.org"),
    ("wikispecies", "species.wikimedia.org"),
)

# Projects whose sitelink hosts start with a language code
LANGUAGE_PROJECTS = {project for project, suffix in WIKI_PROJECTS if not suffix.endswith("wikimedia.org")}

# ID and URL validation patterns
QID_EXACT_PATTERN = re.compile(r"^Q\d+$")
WIKIPEDIA_URL_PATTERN = re.compile(r"^https://(?P<lang>[a-z]{2,3})\.wikipedia\.org/wiki/(?P<title>.+)$")
REFERENCE_TAG_PATTERN = re.compile(r"<ref(?:\s[^>]*)?/>|<ref(?:\s[^>]*)?>[\s\S]*?</ref>", re.IGNORECASE)
STATEMENT_URI_PREFIX = "http://www.wikidata.org/entity/statement/"

# Presentation
MISSING_LABEL_PLACEHOLDER = "Label unavailable"
REFERENCE_PREVIEW_CHARS = 100
REFERENCE_LIST_MAX = 10
