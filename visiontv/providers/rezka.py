"""HDRezka provider - search, player page and translator switching."""

import logging
import time

import httpx

from visiontv.config import Config
from visiontv.errors import AjaxDecodeError, RemoteRejectionError
from visiontv.models import PlayerData, SearchResult, Stream
from visiontv.providers.base import ACCEPT_LANGUAGE, BROWSER_ACCEPT, Provider
from visiontv.providers.rezka_parser import parse_player_page, parse_search, parse_streams

logger = logging.getLogger(__name__)

SEARCH_PATH = "/search/"
STREAMS_PATH = "/ajax/get_cdn_series/"

AJAX_ACCEPT = "application/json, text/javascript, */*; q=0.01"


class RezkaProvider(Provider):
    """HDRezka content provider."""

    def __init__(self, config: Config | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(config, client)
        self.user_agent = self.config.rezka_user_agent

    @property
    def name(self) -> str:
        return "HDRezka"

    @property
    def base_url(self) -> str:
        return self.config.rezka_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.user_agent,
            "Accept": BROWSER_ACCEPT,
            "Accept-Language": ACCEPT_LANGUAGE,
            "Referer": f"{self.base_url}/",
        }

    async def search(self, query: str, page: int = 1) -> list[SearchResult]:
        """Search films and series; page 1 is requested without a page param."""
        params = {"do": "search", "subaction": "search", "q": query}
        if page > 1:
            params["page"] = str(page)

        res = await self.client.get(f"{self.base_url}{SEARCH_PATH}", params=params, headers=self.headers)
        res.raise_for_status()
        return parse_search(res.text)

    async def fetch_player_data(self, url: str) -> PlayerData:
        """Fetch a film/series page and parse its player data."""
        res = await self.client.get(url, headers=self.headers)
        res.raise_for_status()
        return parse_player_page(res.text)

    async def fetch_streams(
        self,
        movie_id: int,
        translator_id: int,
        favs: str,
        is_camrip: bool = False,
        is_ads: bool = False,
        is_director: bool = False,
    ) -> list[Stream]:
        """Switch translator and return its streams."""
        url = f"{self.base_url}{STREAMS_PATH}?t={int(time.time() * 1000)}"
        data = {
            "id": str(movie_id),
            "translator_id": str(translator_id),
            "is_camrip": "1" if is_camrip else "0",
            "is_ads": "1" if is_ads else "0",
            "is_director": "1" if is_director else "0",
            "favs": favs,
            "action": "get_movie",
        }
        headers = {
            "User-Agent": self.user_agent,
            "X-Requested-With": "XMLHttpRequest",
            "Accept": AJAX_ACCEPT,
            "Content-Type": "application/x-www-form-urlencoded; charset=UTF-8",
            "Origin": self.base_url,
            "Referer": self.base_url,
        }

        res = await self.client.post(url, data=data, headers=headers)
        res.raise_for_status()
        logger.debug("Translator %s response: %s", translator_id, res.text[:500])

        try:
            payload = res.json()
        except ValueError as e:
            raise AjaxDecodeError(f"Invalid translator response: {e}") from e
        if not isinstance(payload, dict):
            raise AjaxDecodeError("Invalid translator response: not an object")

        streams_raw = payload.get("url")
        if not payload.get("success") or not isinstance(streams_raw, str) or not streams_raw:
            raise RemoteRejectionError(payload.get("message") or "Unknown error")

        return parse_streams(streams_raw)
