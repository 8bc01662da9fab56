"""Tests for the Filmix provider against a fake transport."""

import asyncio
import json
import logging
from urllib.parse import parse_qs

import httpx
import pytest

from visiontv.config import SiteCredentials
from visiontv.errors import ArticleNotFoundError, CredentialsExpiredError, PlayerDataDecodeError
from visiontv.providers.base import decode_body
from visiontv.providers.filmix import FilmixProvider, parse_serial_playlist
from tests.test_utils.cipher import encode_tokens
from tests.test_utils.pages import FILMIX_LISTING, FILMIX_SEARCH_FRAGMENT, filmix_detail


def html_response(html: str) -> httpx.Response:
    return httpx.Response(200, content=html.encode("cp1251"), headers={"content-type": "text/html"})


def player_data_response(video: dict) -> httpx.Response:
    return httpx.Response(200, json={"type": "success", "message": {"translations": {"video": video}}})


def playlist(seasons: int = 1, episodes: int = 2) -> str:
    data = []
    for s in range(1, seasons + 1):
        data.append({
            "title": f"Сезон {s}",
            "folder": [
                {"title": f"Серия {e}", "id": f"s{s}e{e}", "file": encode_tokens(f"[480p]https://cdn.test/s{s}e{e}.mp4")}
                for e in range(1, episodes + 1)
            ],
        })
    return encode_tokens(json.dumps(data, ensure_ascii=False))


def test_parse_serial_playlist_groups_loose_episodes():
    text = json.dumps([
        {"title": "Сезон 1", "folder": [{"title": "Серия 1", "id": "1", "file": "x"}]},
        {"title": "Серия без сезона", "id": "9", "file": "y"},
        "garbage",
    ])
    seasons = parse_serial_playlist(text)

    assert [s.title for s in seasons] == ["Сезон 1", ""]
    assert seasons[1].folders[0].title == "Серия без сезона"
    assert parse_serial_playlist("{}") == []
    with pytest.raises(ValueError):
        parse_serial_playlist("not json")


@pytest.mark.asyncio
async def test_fetch_page_and_detail(config):
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        if request.url.path == "/":
            return html_response(FILMIX_LISTING)
        return html_response(filmix_detail())

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        page = await provider.fetch_page()
        detail = await provider.fetch_detail("/film/drama/101-film.html")

    assert [item.id for item in page.items] == [101, 202]
    assert page.items[0].title == "Первый фильм"
    assert detail.original_title == "First Film"
    assert seen == ["https://filmix.test/", "https://filmix.test/film/drama/101-film.html"]


@pytest.mark.asyncio
async def test_fetch_page_follows_relative_next_link(config):
    """TEST: a site-relative next link is made absolute and can be fetched."""
    first = FILMIX_LISTING.replace(
        '<div class="navigation">', '<div class="navigation"><a class="next" href="/page/2/">&gt;</a>'
    )
    second = FILMIX_LISTING.replace('data-id="101"', 'data-id="111"').replace('data-number="2"', 'data-number="0"')
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(str(request.url))
        return html_response(second if request.url.path == "/page/2/" else first)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        page = await provider.fetch_page()
        assert page.next_page_url == "https://filmix.test/page/2/"

        next_page = await provider.fetch_page(page.next_page_url)
        by_path = await provider.fetch_page("/page/2/")

    assert next_page.items[0].id == 111
    assert next_page.next_page_url is None
    assert by_path.items[0].id == 111
    assert seen == ["https://filmix.test/", "https://filmix.test/page/2/", "https://filmix.test/page/2/"]


def test_decode_body_prefers_cp1251_and_falls_back_to_utf8():
    assert decode_body("Петров".encode("cp1251")) == "Петров"
    # 0x98 is undefined in cp1251, so this body can only be UTF-8
    assert decode_body("Иван".encode("utf-8")) == "Иван"


@pytest.mark.asyncio
async def test_fetch_page_utf8_body(config):
    """TEST: a UTF-8 page that is not valid cp1251 is decoded as UTF-8."""
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=FILMIX_LISTING.encode("utf-8"), headers={"content-type": "text/html"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        page = await FilmixProvider(config, client).fetch_page()

    assert page.items[0].title == "Первый фильм"
    assert page.items[0].directors == ["Иван Петров"]


@pytest.mark.asyncio
async def test_fetch_page_http_error_propagates(config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(502)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        with pytest.raises(httpx.HTTPStatusError):
            await provider.fetch_page("https://filmix.test/film/")


@pytest.mark.asyncio
async def test_fetch_page_without_container(config):
    def handler(request: httpx.Request) -> httpx.Response:
        return html_response("<html><body>Доступ ограничен</body></html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        with pytest.raises(ArticleNotFoundError):
            await provider.fetch_page()


@pytest.mark.asyncio
async def test_blank_search_makes_no_request(config):
    """TEST: whitespace-only queries short-circuit to an empty page."""
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return html_response(FILMIX_SEARCH_FRAGMENT)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        page = await provider.search("   ")

    assert page.items == []
    assert page.next_page_url is None
    assert calls == []


@pytest.mark.asyncio
async def test_search_posts_fixed_params(config):
    forms = []

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.method == "POST"
        assert request.url.path == "/engine/ajax/sphinx_search.php"
        forms.append(parse_qs(request.content.decode()))
        return html_response(FILMIX_SEARCH_FRAGMENT)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        page = await provider.search("  найденный ")

    assert [item.id for item in page.items] == [303]
    form = forms[0]
    assert form["story"] == ["найденный"]
    assert form["years_ot"] == ["1902"]
    assert form["kpi_ot"] == ["1"]
    assert form["imdb_do"] == ["10"]
    assert form["simple"] == ["1"]


@pytest.mark.asyncio
async def test_fetch_translations_movie(config):
    requests = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return player_data_response({
            "Озвучка Б": encode_tokens("[480p]https://cdn.test/b480.mp4,[1080p]https://cdn.test/b1080.mp4"),
            "Озвучка А": encode_tokens("[720p]https://cdn.test/a720.mp4"),
            "Пустая": encode_tokens(""),
            "Битая": "#2!!!",
        })

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        translations = await provider.fetch_translations(101)

    assert [t.studio for t in translations] == ["Озвучка А", "Озвучка Б"]
    assert translations[1].streams == {
        "480p": "https://cdn.test/b480.mp4",
        "1080p": "https://cdn.test/b1080.mp4",
    }
    assert translations[1].best_quality == "1080p"

    request = requests[0]
    assert request.url.path == "/api/movies/player-data"
    assert request.url.params["t"].isdigit()
    assert parse_qs(request.content.decode()) == {"post_id": ["101"], "showfull": ["true"]}
    assert request.headers["x-requested-with"] == "XMLHttpRequest"
    assert request.headers["cookie"] == config.filmix_credentials.cookie


@pytest.mark.asyncio
async def test_fetch_translations_series_drops_failed_studio(config, caplog):
    """TEST: one failing playlist fetch leaves exactly one translation and a warning."""
    caplog.set_level(logging.WARNING, logger="visiontv.providers.filmix")

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/movies/player-data":
            return player_data_response({
                "Студия Б": encode_tokens("https://cdn.test/playlist/b.txt"),
                "Студия А": encode_tokens("https://cdn.test/playlist/a.txt"),
            })
        if request.url.path == "/playlist/a.txt":
            await asyncio.sleep(0.05)
            return httpx.Response(200, text=playlist(seasons=2))
        return httpx.Response(500)

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        translations = await provider.fetch_translations(202, is_series=True)

    assert len(translations) == 1
    translation = translations[0]
    assert translation.studio == "Студия А"
    assert translation.is_serial
    assert [s.title for s in translation.seasons] == ["Сезон 1", "Сезон 2"]
    assert translation.seasons[1].folders[1].streams == {"480p": "https://cdn.test/s2e2.mp4"}
    assert "Dropping studio Студия Б" in caplog.text


@pytest.mark.asyncio
async def test_fetch_translations_series_sorted_regardless_of_completion(config):
    delays = {"/playlist/a.txt": 0.05, "/playlist/b.txt": 0.0, "/playlist/c.txt": 0.02}

    async def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/api/movies/player-data":
            return player_data_response({
                "C": encode_tokens("https://cdn.test/playlist/c.txt"),
                "A": encode_tokens("https://cdn.test/playlist/a.txt"),
                "B": encode_tokens("https://cdn.test/playlist/b.txt"),
                "Empty": encode_tokens("https://cdn.test/playlist/empty.txt"),
            })
        if request.url.path == "/playlist/empty.txt":
            return httpx.Response(200, text=encode_tokens("[]"))
        await asyncio.sleep(delays[request.url.path])
        return httpx.Response(200, text=playlist())

    config.max_concurrency = 2
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        translations = await provider.fetch_translations(202, is_series=True)

    assert [t.studio for t in translations] == ["A", "B", "C"]


@pytest.mark.asyncio
async def test_player_data_bad_shape(config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"type": "error", "message": "Access denied"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        with pytest.raises(PlayerDataDecodeError):
            await provider.fetch_translations(101)


@pytest.mark.asyncio
async def test_player_data_not_json(config):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="<html>captcha</html>")

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        with pytest.raises(PlayerDataDecodeError):
            await provider.fetch_translations(101)


@pytest.mark.asyncio
async def test_expired_credentials_block_player_data(config):
    """TEST: expired cookies fail fast; refreshed ones are sent on the next call."""
    cookies = []

    def handler(request: httpx.Request) -> httpx.Response:
        cookies.append(request.headers["cookie"])
        return player_data_response({"A": encode_tokens("[720p]https://cdn.test/a.mp4")})

    config.filmix_credentials = SiteCredentials(cookie="old=1", expires_at=1.0)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        provider = FilmixProvider(config, client)
        with pytest.raises(CredentialsExpiredError):
            await provider.fetch_translations(101)
        assert cookies == []

        provider.refresh_credentials(SiteCredentials(cookie="fresh=1"))
        translations = await provider.fetch_translations(101)

    assert cookies == ["fresh=1"]
    assert translations[0].streams == {"720p": "https://cdn.test/a.mp4"}
