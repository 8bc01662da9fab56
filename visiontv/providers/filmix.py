"""Filmix provider - listings, details, search and cipher-protected player data."""

import asyncio
import json
import logging
import time
from datetime import date
from typing import Any

import httpx

from visiontv.config import Config, SiteCredentials
from visiontv.crypto import decode_bracket_map, decode_string_tokens
from visiontv.errors import CredentialsExpiredError, PlayerDataDecodeError
from visiontv.models import ListingPage, MovieDetail, SerialFolder, SerialSeason, Translation
from visiontv.providers.base import ACCEPT_LANGUAGE, BROWSER_ACCEPT, Provider, decode_body
from visiontv.providers.filmix_parser import parse_detail, parse_listing

logger = logging.getLogger(__name__)

SEARCH_PATH = "/engine/ajax/sphinx_search.php"
PLAYER_DATA_PATH = "/api/movies/player-data"

SEARCH_YEAR_FROM = 1902


def parse_translation_blob(studio: str, encoded: str) -> Translation | None:
    """Decode one studio's flat "[quality]url,..." blob; None when it holds nothing."""
    raw = decode_string_tokens(encoded)
    streams = decode_bracket_map(raw.split(",")) if raw else {}
    if not streams:
        return None
    return Translation(studio=studio, streams=streams)


def _parse_folder(item: dict[str, Any]) -> SerialFolder:
    return SerialFolder(
        title=str(item.get("title", "")).strip(),
        id=str(item.get("id", "")),
        file=str(item.get("file", "")),
    )


def parse_serial_playlist(text: str) -> list[SerialSeason]:
    """Parse a decoded serial playlist.

    The payload is a JSON list of seasons ``{"title", "folder": [...]}``;
    episode entries found at the top level are grouped into one season.
    Raises ValueError on invalid JSON.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        return []

    seasons: list[SerialSeason] = []
    loose: list[SerialFolder] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        folders = item.get("folder")
        if isinstance(folders, list):
            seasons.append(SerialSeason(
                title=str(item.get("title", "")).strip(),
                folders=[_parse_folder(f) for f in folders if isinstance(f, dict)],
            ))
        elif "file" in item:
            loose.append(_parse_folder(item))

    if loose:
        seasons.append(SerialSeason(title="", folders=loose))
    return seasons


class FilmixProvider(Provider):
    """Filmix content provider."""

    def __init__(self, config: Config | None = None, client: httpx.AsyncClient | None = None):
        super().__init__(config, client)
        self.credentials: SiteCredentials = self.config.filmix_credentials

    @property
    def name(self) -> str:
        return "Filmix"

    @property
    def base_url(self) -> str:
        return self.config.filmix_url.rstrip("/")

    @property
    def headers(self) -> dict[str, str]:
        return {
            "User-Agent": self.credentials.user_agent,
            "Accept": BROWSER_ACCEPT,
            "Accept-Language": ACCEPT_LANGUAGE,
        }

    @property
    def ajax_headers(self) -> dict[str, str]:
        return {
            "x-requested-with": "XMLHttpRequest",
            "user-agent": self.credentials.user_agent,
            "Cookie": self.credentials.cookie,
        }

    def refresh_credentials(self, credentials: SiteCredentials) -> None:
        """Swap in fresh session credentials."""
        self.credentials = credentials

    async def _get_html(self, url: str) -> str:
        res = await self.client.get(url, headers=self.headers)
        res.raise_for_status()
        return decode_body(res.content)

    async def fetch_page(self, url: str | None = None) -> ListingPage:
        """Fetch a listing page (home page by default) by URL or site-relative path."""
        if not url:
            url = self.base_url
        elif not url.startswith("http"):
            url = f"{self.base_url}{url}"
        html = await self._get_html(url)
        return parse_listing(html, origin=self.base_url)

    async def fetch_detail(self, path: str) -> MovieDetail:
        """Fetch an item page by relative path or full URL."""
        url = path if path.startswith("http") else f"{self.base_url}{path}"
        html = await self._get_html(url)
        return parse_detail(html, origin=self.base_url)

    async def search(self, query: str) -> ListingPage:
        """Search; blank queries return an empty page without a request."""
        trimmed = query.strip()
        if not trimmed:
            return ListingPage(items=[])

        params = {
            "scf": "fx",
            "story": trimmed,
            "search_start": "0",
            "do": "search",
            "subaction": "search",
            "years_ot": str(SEARCH_YEAR_FROM),
            "years_do": str(date.today().year),
            "kpi_ot": "1",
            "kpi_do": "10",
            "imdb_ot": "1",
            "imdb_do": "10",
            "sort_name": "",
            "sort_date": "",
            "sort_favorite": "",
            "simple": "1",
        }
        headers = {
            "x-requested-with": "XMLHttpRequest",
            "content-type": "application/x-www-form-urlencoded; charset=UTF-8",
            "origin": self.base_url,
            "referer": f"{self.base_url}/search/",
            "user-agent": self.credentials.user_agent,
        }
        res = await self.client.post(f"{self.base_url}{SEARCH_PATH}", data=params, headers=headers)
        res.raise_for_status()
        return parse_listing(decode_body(res.content), origin=self.base_url, require_container=False)

    async def _fetch_player_video(self, item_id: int) -> dict[str, str]:
        """POST player-data and return the studio -> encoded blob map."""
        if self.credentials.is_expired():
            raise CredentialsExpiredError("Filmix session cookie has expired; refresh it in the config")

        url = f"{self.base_url}{PLAYER_DATA_PATH}?t={int(time.time())}"
        res = await self.client.post(
            url,
            data={"post_id": str(item_id), "showfull": "true"},
            headers=self.ajax_headers,
        )
        res.raise_for_status()

        try:
            payload = res.json()
            video = payload["message"]["translations"]["video"]
        except (ValueError, KeyError, TypeError) as e:
            raise PlayerDataDecodeError(f"Unexpected player-data response: {e}") from e

        if not isinstance(video, dict):
            raise PlayerDataDecodeError("Unexpected player-data response: translations.video is not a map")
        return {str(studio): str(blob) for studio, blob in video.items() if isinstance(blob, str)}

    async def fetch_translations(self, item_id: int, is_series: bool = False) -> list[Translation]:
        """Fetch the studio -> quality -> URL catalog, sorted by studio."""
        video = await self._fetch_player_video(item_id)

        if not is_series:
            translations: list[Translation] = []
            for studio, blob in video.items():
                translation = parse_translation_blob(studio, blob)
                if translation is not None:
                    translations.append(translation)
        else:
            translations = await self._fetch_serials(video)

        return sorted(translations, key=lambda t: t.studio)

    async def _fetch_serials(self, video: dict[str, str]) -> list[Translation]:
        """Fetch every studio's playlist concurrently; failed studios are dropped."""
        semaphore = asyncio.Semaphore(max(1, self.config.max_concurrency))
        lock = asyncio.Lock()
        collected: list[Translation] = []

        async def fetch_one(studio: str, blob: str) -> None:
            playlist_url = decode_string_tokens(blob)
            if not playlist_url:
                raise ValueError("playlist URL did not decode")

            async with semaphore:
                res = await self.client.get(playlist_url, headers=self.headers)
                res.raise_for_status()

            seasons = parse_serial_playlist(decode_string_tokens(res.text))
            if not seasons:
                logger.debug("Studio %s has an empty playlist", studio)
                return

            async with lock:
                collected.append(Translation(studio=studio, seasons=seasons))

        studios = list(video.items())
        results = await asyncio.gather(
            *(fetch_one(studio, blob) for studio, blob in studios),
            return_exceptions=True,
        )

        # Dropped, not retried: the caller only sees fewer studios.
        for (studio, _), result in zip(studios, results):
            if isinstance(result, BaseException):
                logger.warning("Dropping studio %s, playlist fetch failed: %s", studio, result)

        return collected
