"""HTML parsing for Filmix listing and detail pages.

Every field is read independently: a missing element yields a placeholder
instead of failing the whole page, since movies, series and specials lay out
their pages differently. Only a missing content container is an error.
"""

import copy
import logging
import re

from bs4 import BeautifulSoup, Tag

from visiontv.errors import ArticleNotFoundError
from visiontv.models import (
    PLACEHOLDER, ExternalRating, ListingPage, MovieDetail, MovieSummary, UserVotes
)
from visiontv.providers.base import absolute_url

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN = "https://filmix.my"

CONTENT_SELECTOR = "#dle-content"

LABEL_DIRECTOR = "Режиссер"
LABEL_ACTORS = "В ролях"


def _clean(text: str) -> str:
    return " ".join(text.split())


def _text(el: Tag, selector: str) -> str:
    """Joined text of every element matching selector."""
    return _clean(" ".join(node.get_text(" ") for node in el.select(selector)))


def _first_text(el: Tag, selector: str) -> str | None:
    node = el.select_one(selector)
    return _clean(node.get_text(" ")) if node is not None else None


def _attr(el: Tag, selector: str, name: str) -> str:
    for node in el.select(selector):
        value = node.get(name)
        if value:
            return str(value).strip()
    return ""


def _to_int(value: str) -> int | None:
    try:
        return int(value.strip())
    except (ValueError, AttributeError):
        return None


def _to_float(value: str) -> float:
    try:
        return float(value.strip())
    except (ValueError, AttributeError):
        return 0.0


def _names(nodes) -> list[str]:
    """Person names with separating commas and padding stripped."""
    names = (_clean(n.get_text(" ")).replace(",", "").strip() for n in nodes)
    return [n for n in names if n]


def _names_by_contains(el: Tag, label: str) -> list[str]:
    """Spans of every .item whose text contains label."""
    nodes = []
    for item in el.select(".item"):
        if label in item.get_text():
            nodes.extend(item.select(".item-content span"))
    return _names(nodes)


def _labeled_item(el: Tag, label: str) -> Tag | None:
    """The .item whose .label text equals label."""
    for item in el.select(".item"):
        if (_first_text(item, ".label") or "") == label:
            return item
    return None


def _text_without_icons(node: Tag) -> str | None:
    clone = copy.copy(node)
    for icon in clone.select("i"):
        icon.decompose()
    text = _clean(clone.get_text(" "))
    return text or None


def vote_rating(up: float, down: float) -> str:
    """0-10 score from thumbs up/down, one decimal."""
    total = up + down
    if total <= 0:
        return PLACEHOLDER
    return f"{up / total * 10:.1f}"


# ===== LISTING =====

def _poster_url(article: Tag, origin: str) -> str:
    href = _attr(article, "div.short a.fancybox", "href")
    if href:
        return absolute_url(origin, href)
    src = _attr(article, "div.short img", "src")
    if src:
        return absolute_url(origin, src)
    return ""


def _parse_listing_item(article: Tag, index: int, origin: str) -> MovieSummary:
    item_id = _to_int(str(article.get("data-id", "")))
    if item_id is None:
        item_id = index

    title = _attr(article, "div.full div.title-one-line h2.name", "content")
    if not title:
        title = _text(article, "h2.name") or "Unknown"

    year = _text(article, ".item.year .item-content") or PLACEHOLDER
    genres = [_clean(a.get_text(" ")) for a in article.select("div.full .item.category a")]
    quality = _text(article, "div.full div.title-one-line div.top-date div.quality")
    movie_url = _attr(article, "div.short a.watch", "href")
    is_series = "/seria/" in movie_url

    up = _to_float(_text(article, "span.counter span.hand-up span"))
    down = _to_float(_text(article, "span.counter span.hand-down span"))

    last_added = None
    if is_series:
        added = article.select_one(".added-info")
        if added is not None:
            last_added = _text_without_icons(added)

    if is_series:
        duration = quality or "Series"
    else:
        duration = quality or PLACEHOLDER

    return MovieSummary(
        id=item_id,
        title=title,
        year=year,
        rating=vote_rating(up, down),
        duration=duration,
        genres=genres,
        translate=_text(article, ".item.translate .item-content"),
        poster_url=_poster_url(article, origin),
        is_series=is_series,
        last_added=last_added,
        description=_text(article, "p[itemprop=description]"),
        movie_url=movie_url,
        directors=_names_by_contains(article, LABEL_DIRECTOR),
        actors=_names_by_contains(article, LABEL_ACTORS),
        is_ad_in=article.select_one("span.video-in") is not None,
    )


def _next_page_url(soup: BeautifulSoup, origin: str) -> str | None:
    href = _attr(soup, "div.navigation a.next", "href")
    if href:
        return absolute_url(origin, href)
    for link in soup.select("div.navigation a[data-number]"):
        number = _to_int(str(link.get("data-number", ""))) or 0
        href = str(link.get("href", "")).strip()
        if number > 1 and href:
            return absolute_url(origin, href)
    return None


def parse_listing(html: str, origin: str = DEFAULT_ORIGIN, require_container: bool = True) -> ListingPage:
    """Parse a listing page (or a search fragment) into summaries.

    With ``require_container`` the ``#dle-content`` block must exist;
    search fragments are parsed without it.
    """
    soup = BeautifulSoup(html, "html.parser")
    container = soup.select_one(CONTENT_SELECTOR)
    if container is None:
        if require_container:
            raise ArticleNotFoundError()
        container = soup

    items: list[MovieSummary] = []
    for index, article in enumerate(container.select("article.shortstory")):
        items.append(_parse_listing_item(article, index, origin))

    return ListingPage(items=items, next_page_url=_next_page_url(soup, origin))


# ===== DETAIL =====

class _FieldReader:
    """Reads optional detail fields and records which ones fell back to defaults."""

    def __init__(self, article: Tag):
        self.article = article
        self.missing: set[str] = set()

    def text(self, name: str, selector: str, default: str = "") -> str:
        value = _text(self.article, selector)
        if not value:
            self.missing.add(name)
            return default
        return value

    def labeled(self, name: str, label: str) -> str:
        item = _labeled_item(self.article, label)
        value = _text(item, ".item-content") if item is not None else ""
        if not value:
            self.missing.add(name)
        return value

    def names(self, name: str, values: list[str]) -> list[str]:
        if not values:
            self.missing.add(name)
        return values

    def optional(self, name: str, value):
        if value is None:
            self.missing.add(name)
        return value


def _find_article(soup: BeautifulSoup) -> Tag:
    article = soup.select_one(f"{CONTENT_SELECTOR} article.fullstory")
    if article is None:
        article = soup.select_one(f"{CONTENT_SELECTOR} article")
    if article is None:
        raise ArticleNotFoundError()
    return article


def _people_by_label(article: Tag, label: str) -> list[str]:
    item = _labeled_item(article, label)
    if item is None:
        return []
    return _names(item.select(".item-content span"))


def _actor_names(article: Tag) -> list[str]:
    """Linked (itemprop) actors first, then plain inline spans."""
    actor_item = article.select_one(".item.actors")
    if actor_item is None:
        return []
    names = [
        _clean(n.get_text(" "))
        for n in actor_item.select("span[itemprop=name]")
        if _clean(n.get_text(" "))
    ]
    names.extend(_names(actor_item.select(".item-content > span:not([itemprop])")))
    return names


def _duration_minutes(article: Tag) -> int | None:
    value = _to_int(_attr(article, ".item.durarion", "content"))
    if value is not None:
        return value
    digits = re.sub(r"\D", "", _text(article, ".item.durarion .item-content"))
    return int(digits) if digits else None


def _external_rating(article: Tag, selector: str) -> ExternalRating:
    values = [_clean(p.get_text(" ")) for p in article.select(f"{selector} p")]
    return ExternalRating(
        score=values[0] if len(values) > 0 and values[0] else PLACEHOLDER,
        votes=values[1] if len(values) > 1 and values[1] else PLACEHOLDER,
    )


def _stills(article: Tag, origin: str) -> list[str]:
    links = article.select(".frames a[href]") or article.select(".frames-list a[href]")
    return [absolute_url(origin, str(a["href"]).strip()) for a in links if str(a["href"]).strip()]


def parse_detail(html: str, origin: str = DEFAULT_ORIGIN) -> MovieDetail:
    """Parse a detail page; raises ArticleNotFoundError only when no article exists."""
    soup = BeautifulSoup(html, "html.parser")
    article = _find_article(soup)
    fields = _FieldReader(article)

    poster_thumb = absolute_url(origin, _attr(article, ".short img.poster", "src"))
    poster_href = _attr(article, ".short a.fancybox", "href")
    poster_full = absolute_url(origin, poster_href) if poster_href else poster_thumb

    description = _text(article, ".about .full-story") or _first_text(article, "[itemprop=description]") or ""
    if not description:
        fields.missing.add("description")

    status = article.select_one(".top-date .status")
    status_on_air = None
    status_hint = None
    if status is not None:
        status_on_air = _text(status, ".ico") or None
        status_hint = str(status.get("title", "")).strip() or None

    last_added = None
    added = article.select_one(".item.xfgiven_added .added-info")
    if added is not None:
        last_added = _text_without_icons(added)

    kinopoisk = _external_rating(article, "span.kinopoisk")
    imdb = _external_rating(article, "span.imdb")
    if not kinopoisk.is_present:
        fields.missing.add("kinopoisk")
    if not imdb.is_present:
        fields.missing.add("imdb")

    user_votes = UserVotes(
        likes=_to_int(_text(article, ".rateinf.ratePos")) or 0,
        dislikes=_to_int(_text(article, ".rateinf.rateNeg")) or 0,
        positive_percent=_to_int(_attr(article, ".percent-p", "data-percent-p")) or 0,
    )

    detail = MovieDetail(
        id=_to_int(str(article.get("data-id", ""))) or 0,
        movie_url=_attr(article, ".short a.watch", "href"),
        title=fields.text("title", "h1.name"),
        original_title=fields.labeled("original_title", "Название:"),
        poster_thumb=poster_thumb,
        poster_full=poster_full,
        quality=_first_text(article, ".quality") or "",
        date=_first_text(article, "time.date") or "",
        date_iso=_attr(article, "meta[itemprop=dateCreated]", "content"),
        year=fields.text("year", ".item.year .item-content", PLACEHOLDER),
        duration_minutes=fields.optional("duration_minutes", _duration_minutes(article)),
        mpaa=fields.labeled("mpaa", "MPAA:"),
        slogan=fields.labeled("slogan", "Слоган:"),
        status_on_air=status_on_air,
        status_hint=status_hint,
        last_added=last_added,
        directors=fields.names("directors", _names(article.select(".item.directors .item-content span"))),
        actors=fields.names("actors", _actor_names(article)),
        writers=fields.names("writers", _people_by_label(article, "Сценарист:")),
        producers=fields.names("producers", _people_by_label(article, "Продюсер:")),
        genres=fields.names("genres", [_clean(a.get_text(" ")) for a in article.select("a[itemprop=genre]")]),
        countries=fields.names("countries", [_clean(a.get_text(" ")) for a in article.select(".item.contry .item-content a")]),
        translate=fields.labeled("translate", "Перевод:"),
        description=description,
        is_ad_in=article.select_one("span.video-in") is not None,
        kinopoisk=kinopoisk,
        imdb=imdb,
        user_votes=user_votes,
        stills=_stills(article, origin),
        missing_fields=frozenset(fields.missing),
    )
    if detail.missing_fields:
        logger.debug("Detail %s degraded fields: %s", detail.id, ", ".join(sorted(detail.missing_fields)))
    return detail
