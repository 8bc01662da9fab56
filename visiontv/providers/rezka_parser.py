"""HDRezka page parsing: player init call, streams string, translators, search."""

import json
import logging
import re

from bs4 import BeautifulSoup

from visiontv.errors import InitCallNotFoundError, InitJSONDecodeError, InitJSONNotFoundError
from visiontv.models import InitCall, PlayerData, SearchResult, Stream, Translator

logger = logging.getLogger(__name__)

INIT_CALL_MARKERS = (
    "sof.tv.initCDNMoviesEvents(",
    "sof.tv.initCDNSeriesEvents(",
)
POSITIONAL_ARGS = re.compile(r"^(\d+),\s*(\d+)")
POSITIONAL_WINDOW = 200

DEFAULT_QUALITY = "480p"

HLS_TAG = ":hls:"
HLS_SUFFIX = ":hls:manifest.m3u8"
ALTERNATIVE_SEPARATOR = " or "


# ===== INIT CALL =====

def _balanced_object(text: str, start: int) -> str:
    """Slice from text[start] ('{') to the brace that closes it.

    Depth counting ignores string literals, so a brace inside a quoted
    value would shift the boundary. Observed payloads have not needed more.
    """
    depth = 0
    for index in range(start, len(text)):
        char = text[index]
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start:index + 1]
    return text[start:]


def extract_init_call(page_text: str) -> InitCall:
    """Pull ids and the JSON settings object out of the player init call."""
    after_call = None
    for marker in INIT_CALL_MARKERS:
        position = page_text.find(marker)
        if position != -1:
            after_call = page_text[position + len(marker):]
            break
    if after_call is None:
        raise InitCallNotFoundError()

    movie_id = 0
    translator_id = 0
    match = POSITIONAL_ARGS.match(after_call[:POSITIONAL_WINDOW])
    if match:
        movie_id = int(match.group(1))
        translator_id = int(match.group(2))

    brace = after_call.find("{")
    if brace == -1:
        raise InitJSONNotFoundError()

    try:
        settings = json.loads(_balanced_object(after_call, brace))
    except ValueError as e:
        raise InitJSONDecodeError() from e
    if not isinstance(settings, dict):
        raise InitJSONDecodeError()

    streams = settings.get("streams")
    default_quality = settings.get("default_quality")
    return InitCall(
        movie_id=movie_id,
        translator_id=translator_id,
        streams=streams if isinstance(streams, str) else "",
        default_quality=default_quality if isinstance(default_quality, str) else DEFAULT_QUALITY,
    )


# ===== STREAMS STRING =====

def _split_segments(raw: str) -> list[str]:
    """Split on commas directly followed by '[' - URLs may contain plain commas."""
    segments: list[str] = []
    current: list[str] = []
    index = 0
    while index < len(raw):
        char = raw[index]
        if char == "," and index + 1 < len(raw) and raw[index + 1] == "[":
            segments.append("".join(current))
            current = []
            index += 1
            continue
        current.append(char)
        index += 1
    if current:
        segments.append("".join(current))
    return segments


def _parse_segment(segment: str) -> Stream | None:
    """Parse "[720p]url:hls:manifest.m3u8 or url.mp4"."""
    close = segment.find("]")
    if not segment.startswith("[") or close == -1:
        return None

    quality = segment[1:close]
    hls_url = None
    direct_url = None
    for part in segment[close + 1:].split(ALTERNATIVE_SEPARATOR):
        part = part.strip()
        if HLS_TAG in part:
            suffix = part.find(HLS_SUFFIX)
            if suffix != -1:
                hls_url = f"{part[:suffix]}/manifest.m3u8"
        elif part.endswith(".mp4"):
            direct_url = part

    if hls_url is None and direct_url is None:
        return None
    return Stream(quality=quality, hls_url=hls_url, direct_url=direct_url)


def parse_streams(raw: str) -> list[Stream]:
    """Decode the compact quality -> URL streams string."""
    streams: list[Stream] = []
    for segment in _split_segments(raw):
        stream = _parse_segment(segment)
        if stream is None:
            logger.debug("Skipping unusable stream segment %r", segment[:80])
            continue
        streams.append(stream)
    return streams


# ===== PAGE =====

def _int_attr(el, name: str) -> int:
    try:
        return int(str(el.get(name, "")).strip())
    except ValueError:
        return 0


def parse_translators(soup: BeautifulSoup) -> list[Translator]:
    translators: list[Translator] = []
    for el in soup.select("li.b-translator__item"):
        translators.append(Translator(
            movie_id=_int_attr(el, "data-id"),
            translator_id=_int_attr(el, "data-translator_id"),
            title=" ".join(el.get_text(" ").split()),
            is_camrip=el.get("data-camrip") == "1",
            has_ads=el.get("data-ads") == "1",
            is_director=el.get("data-director") == "1",
            is_active="active" in (el.get("class") or []),
        ))
    return translators


def parse_favs(soup: BeautifulSoup) -> str:
    """Value of the hidden ctrl_favs input, needed for translator switches."""
    el = soup.select_one("input#ctrl_favs")
    if el is None:
        return ""
    return str(el.get("value", ""))


def parse_player_page(html: str) -> PlayerData:
    """Parse a film/series page into its player data."""
    soup = BeautifulSoup(html, "html.parser")
    call = extract_init_call(html)
    return PlayerData(
        movie_id=call.movie_id,
        active_translator_id=call.translator_id,
        default_quality=call.default_quality,
        streams=parse_streams(call.streams),
        translators=parse_translators(soup),
        favs=parse_favs(soup),
    )


# ===== SEARCH =====

def parse_search(html: str) -> list[SearchResult]:
    """Parse search results; works for full pages and AJAX fragments."""
    soup = BeautifulSoup(html, "html.parser")
    results: list[SearchResult] = []
    for el in soup.select("div.b-content__inline_item"):
        try:
            item_id = int(str(el.get("data-id", "")).strip())
        except ValueError:
            continue
        url = str(el.get("data-url", "")).strip()
        if not url:
            continue

        img = el.select_one("div.b-content__inline_item-cover img")
        link = el.select_one("div.b-content__inline_item-link a")
        info = el.select_one("div.b-content__inline_item-link div")
        category = el.select_one("span.cat i.entity")
        status = el.select_one("span.info")

        status_text = " ".join(status.get_text(" ").split()) if status is not None else ""
        results.append(SearchResult(
            id=item_id,
            title=link.get_text(strip=True) if link is not None else "",
            url=url,
            poster_url=(str(img.get("src", "")) or None) if img is not None else None,
            info=" ".join(info.get_text(" ").split()) if info is not None else "",
            category=category.get_text(strip=True) if category is not None else "",
            status=status_text or None,
        ))
    return results
