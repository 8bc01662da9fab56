"""Filmix section and genre catalog."""

from dataclasses import dataclass, field

# (title, slug); slugs are shared between sections, not every section has every genre
_GENRES = [
    ("Аниме", "animes"),
    ("Биография", "biografia"),
    ("Боевики", "boevik"),
    ("Вестерн", "vesterny"),
    ("Военный", "voennyj"),
    ("Детектив", "detektivy"),
    ("Детский", "detskij"),
    ("Для взрослых", "for_adults"),
    ("Документальные", "dokumentalenyj"),
    ("Дорамы", "dorama"),
    ("Драмы", "drama"),
    ("Игра", "game"),
    ("Исторический", "istoricheskie"),
    ("Комедии", "komedia"),
    ("Короткометражка", "korotkometragka"),
    ("Криминал", "kriminaly"),
    ("Мелодрамы", "melodrama"),
    ("Мистика", "mistika"),
    ("Музыка", "music"),
    ("Мюзикл", "muzkl"),
    ("Приключения", "prikluchenija"),
    ("Семейный", "semejnye"),
    ("Ситком", "sitcom"),
    ("Спорт", "sports"),
    ("Триллеры", "triller"),
    ("Ужасы", "uzhasu"),
    ("Фантастика", "fantastiks"),
    ("Фэнтези", "fjuntezia"),
]

_FILM_ONLY = {"korotkometragka"}
_SERIES_ONLY = {"dorama", "game", "sitcom"}


@dataclass(frozen=True)
class Genre:
    title: str
    url: str


@dataclass(frozen=True)
class Category:
    key: str
    title: str
    url: str
    is_favorites: bool = False
    genres: list[Genre] = field(default_factory=list, hash=False)


def _genres(base: str, section: str, suffix: str, exclude: set[str]) -> list[Genre]:
    return [
        Genre(title=title, url=f"{base}/{section}/{slug}/{suffix}")
        for title, slug in _GENRES
        if slug not in exclude
    ]


def get_categories(base_url: str = "https://filmix.my") -> list[Category]:
    """Browsable sections for a Filmix mirror.

    Genre URLs differ per section: films use ``film/<slug>/``, series
    ``seria/<slug>/s7/`` and cartoons ``mults/<slug>/s14/``. The favorites
    entry has no URL; it is backed by local storage.
    """
    base = base_url.rstrip("/")
    return [
        Category(key="home", title="Главная", url=base),
        Category(
            key="films",
            title="Фильмы",
            url=f"{base}/film/",
            genres=_genres(base, "film", "", _SERIES_ONLY),
        ),
        Category(
            key="series",
            title="Сериалы",
            url=f"{base}/seria/",
            genres=_genres(base, "seria", "s7/", _FILM_ONLY | {"music", "sports"}),
        ),
        Category(
            key="cartoons",
            title="Мультфильмы",
            url=f"{base}/mults/",
            genres=_genres(base, "mults", "s14/", _FILM_ONLY | _SERIES_ONLY),
        ),
        Category(key="favorites", title="Избранное", url="", is_favorites=True),
    ]


def find_category(key: str, base_url: str = "https://filmix.my") -> Category | None:
    for category in get_categories(base_url):
        if category.key == key:
            return category
    return None
