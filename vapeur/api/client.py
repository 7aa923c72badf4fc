"""Steam store API client implementation."""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

import httpx

from vapeur.api.error_handler import (
    InvalidRemoteIdentifier,
    NoRemoteResults,
    RemoteAPIError,
    RetryableAPIError,
    handle_http_status,
    retry_with_backoff,
)
from vapeur.config.loader import get_config_value

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchResult:
    """One store search hit."""
    app_id: int
    name: str


class SteamStoreClient:
    """
    Client for the public Steam store endpoints.

    Provides search, app details and review summary lookups. Responses are
    cached for the lifetime of the client.
    """

    BASE_URL = "https://store.steampowered.com"

    def __init__(self, config: Dict[str, Any], client: httpx.AsyncClient):
        """
        Initialize API client.

        Args:
            config: Configuration dictionary (uses the ``api`` section)
            client: httpx.AsyncClient shared with the asset materializer
        """
        self.language = get_config_value(config, 'api.language', 'en')
        self.country = get_config_value(config, 'api.country', 'us')
        self.max_retries = get_config_value(config, 'api.max_retries', 3)
        self.retry_backoff = get_config_value(config, 'api.retry_backoff_seconds', 2.0)
        self.request_timeout = get_config_value(config, 'api.request_timeout', 30)
        self._timeout = httpx.Timeout(
            connect=5.0,
            read=self.request_timeout,
            write=5.0,
            pool=5.0
        )

        self.client = client

        self._search_cache: Dict[str, List[SearchResult]] = {}
        self._details_cache: Dict[Tuple[int, str], Dict[str, Any]] = {}

    async def search(self, term: str) -> List[SearchResult]:
        """
        Search the store by game name.

        Args:
            term: Free-text game name

        Returns:
            Search results in store order

        Raises:
            NoRemoteResults: If the store returns no results
            RemoteAPIError: On request failure
        """
        if term in self._search_cache:
            return self._search_cache[term]

        payload = await self._get_json(
            "/api/storesearch/",
            {'term': term, 'l': self.language, 'cc': self.country},
            context=f"search '{term}'"
        )

        results = [
            SearchResult(app_id=int(item['id']), name=item.get('name', ''))
            for item in (payload.get('items') or [])
            if item.get('id') is not None
        ]
        if not results:
            raise NoRemoteResults(term)

        logger.debug(f"Search '{term}' returned {len(results)} results")
        self._search_cache[term] = results
        return results

    async def get_details(self, app_id: int, language: Optional[str] = None) -> Dict[str, Any]:
        """
        Get store details for an app.

        Args:
            app_id: Steam app id
            language: Store language code (defaults to configured language)

        Returns:
            The ``data`` object of the appdetails response

        Raises:
            InvalidRemoteIdentifier: If the store reports the id as invalid
            RemoteAPIError: On request failure
        """
        language = language or self.language
        cache_key = (app_id, language)
        if cache_key in self._details_cache:
            return self._details_cache[cache_key]

        payload = await self._get_json(
            "/api/appdetails",
            {'appids': app_id, 'l': language, 'cc': self.country},
            context=f"details {app_id}"
        )

        entry = payload.get(str(app_id)) or {}
        if not entry.get('success') or not isinstance(entry.get('data'), dict):
            raise InvalidRemoteIdentifier(app_id)

        details = entry['data']
        self._details_cache[cache_key] = details
        return details

    async def get_review_summary(self, app_id: int) -> Dict[str, Any]:
        """
        Get the review summary for an app.

        Best effort: request failures and missing summaries give an empty dict.

        Args:
            app_id: Steam app id

        Returns:
            ``query_summary`` object (review_score, review_score_desc, total_reviews, ...)
        """
        try:
            payload = await self._get_json(
                f"/appreviews/{app_id}",
                {'json': 1, 'num_per_page': 0, 'language': 'all'},
                context=f"reviews {app_id}"
            )
        except RemoteAPIError as e:
            logger.warning(f"Review summary unavailable for {app_id}: {e}")
            return {}

        summary = payload.get('query_summary')
        return summary if isinstance(summary, dict) else {}

    async def _get_json(self, path: str, params: Dict[str, Any], context: str) -> Dict[str, Any]:
        """GET a store endpoint and decode its JSON body, with retries."""
        url = f"{self.BASE_URL}{path}"

        async def make_request():
            try:
                response = await self.client.get(url, params=params, timeout=self._timeout)
            except httpx.TransportError as e:
                raise RetryableAPIError(f"{type(e).__name__}: {e}")
            handle_http_status(response.status_code, context)
            try:
                payload = response.json()
            except ValueError as e:
                raise RemoteAPIError(f"Invalid JSON response ({context}): {e}")
            if not isinstance(payload, dict):
                raise RemoteAPIError(f"Unexpected response ({context})")
            return payload

        return await retry_with_backoff(
            make_request,
            max_attempts=self.max_retries,
            initial_delay=self.retry_backoff,
            context=context
        )
