import logging
import threading
import time
from dataclasses import dataclass
from typing import Optional

import mwclient
from mwclient.errors import APIError, InvalidResponse, MwClientError
import requests

from . import config
from .errors import DecodeError, TransportError
from .results import ResultSet, decode_sparql_json

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchHit:
    id: str
    label: str
    description: str
    concept_uri: str


class QueryClient:
    """Blocking client for the Wikidata SPARQL endpoint and action API.

    `execute` and `search` are safe to call from worker threads; the
    MediaWiki site handle is created lazily on first use.
    """

    def __init__(
        self,
        endpoint=config.SPARQL_ENDPOINT,
        api_host=config.WIKIDATA_HOST,
        timeout=config.API_TIMEOUT,
        max_retries=config.MAX_RETRIES,
        backoff=config.RETRY_BACKOFF_SECONDS,
    ):
        self.endpoint = endpoint
        self.api_host = api_host
        self.timeout = timeout
        self.max_retries = max(1, max_retries)
        self.backoff = backoff
        self._site = None
        self._site_lock = threading.Lock()
        self.stats = {
            "queries": 0,
            "network_errors": 0,
            "retries": 0,
            "http_status_counts": {200: 0, 429: 0, "other": 0},
        }

    def _record_status(self, status_code):
        if status_code in self.stats["http_status_counts"]:
            self.stats["http_status_counts"][status_code] += 1
        else:
            self.stats["http_status_counts"]["other"] += 1

    def _get(self, query):
        """GET the SPARQL endpoint, retrying 429/5xx with exponential backoff."""
        params = {"query": query, "format": "json"}
        headers = dict(config.HEADERS)
        headers["Accept"] = config.SPARQL_ACCEPT
        last_error = None
        for attempt in range(self.max_retries):
            try:
                response = requests.get(self.endpoint, headers=headers, params=params, timeout=self.timeout)
            except requests.RequestException as exc:
                self.stats["network_errors"] += 1
                last_error = TransportError(f"Request to {self.endpoint} failed: {exc}")
            else:
                self._record_status(response.status_code)
                if 200 <= response.status_code < 300:
                    return response
                last_error = TransportError(
                    f"HTTP {response.status_code} from {self.endpoint}",
                    status=response.status_code,
                )
                if response.status_code not in config.RETRY_STATUSES:
                    raise last_error
            if attempt < self.max_retries - 1:
                sleep_for = self.backoff * (2**attempt)
                self.stats["retries"] += 1
                logger.warning("[!] %s; retrying in %.1fs", last_error.message, sleep_for)
                time.sleep(sleep_for)
        raise last_error

    def execute(self, query: str) -> ResultSet:
        """Run a SPARQL SELECT query and return its validated result set."""
        self.stats["queries"] += 1
        logger.debug("Fetching SPARQL query:\n%s", query)
        response = self._get(query)
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"SPARQL response is not valid JSON: {exc}") from exc
        return decode_sparql_json(payload)

    @property
    def site(self):
        """Lazy MediaWiki client for the Wikidata action API."""
        with self._site_lock:
            if self._site is None:
                self._site = open_site(self.api_host)
            return self._site

    def search(self, term: str, language: str = config.DEFAULT_LANGUAGE, limit: int = config.SEARCH_LIMIT) -> list:
        """Search entities by free text via `wbsearchentities`."""
        data = call_api(
            self.site,
            "wbsearchentities",
            search=term,
            language=language,
            limit=limit,
            props="url",
        )
        if not isinstance(data, dict):
            raise DecodeError("wbsearchentities returned a non-object payload.")
        hits = []
        for entry in data.get("search", []):
            try:
                hits.append(
                    SearchHit(
                        id=entry["id"],
                        label=entry.get("label", entry["id"]),
                        description=entry.get("description", ""),
                        concept_uri=entry.get("concepturi", ""),
                    )
                )
            except (KeyError, TypeError) as exc:
                raise DecodeError(f"Malformed search hit: {entry!r}") from exc
        return hits


def open_site(host: str):
    """Open an mwclient Site, mapping connection failures to TransportError."""
    try:
        return mwclient.Site(host, clients_useragent=config.HEADERS["User-Agent"])
    except (requests.RequestException, MwClientError) as exc:
        raise TransportError(f"Cannot reach {host}: {exc}") from exc


def call_api(site, action: str, **params) -> Optional[dict]:
    """GET an action API module; transport failures become TransportError, non-JSON bodies DecodeError."""
    try:
        return site.get(action, **params)
    except APIError as exc:
        raise TransportError(
            f"MediaWiki API error: {exc.info}",
            details={"code": exc.code, "action": action},
        ) from exc
    except requests.HTTPError as exc:
        status = exc.response.status_code if exc.response is not None else None
        raise TransportError(f"HTTP error from MediaWiki API: {exc}", status=status) from exc
    except InvalidResponse as exc:
        raise DecodeError(f"MediaWiki API response is not valid JSON: {exc}") from exc
    except MwClientError as exc:
        raise TransportError(f"MediaWiki API request failed: {exc}") from exc
    except requests.RequestException as exc:
        raise TransportError(f"MediaWiki API request failed: {exc}") from exc
