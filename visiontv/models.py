"""Data models for VisionTV - catalog entries, details and stream sets."""

from dataclasses import dataclass, field
from typing import Optional

from visiontv.crypto import decode_bracket_map, decode_string_tokens

PLACEHOLDER = "—"

# Display/selection order; anything else follows alphabetically.
QUALITY_ORDER = ["4K UHD", "1080p Ultra+", "1080p", "720p", "480p", "360p"]

SERIES_YEAR_MARKER = "Сезон"


def sort_qualities(qualities) -> list[str]:
    """Order quality labels by preference, unknown labels appended alphabetically."""
    labels = set(qualities)
    known = [q for q in QUALITY_ORDER if q in labels]
    unknown = sorted(q for q in labels if q not in QUALITY_ORDER)
    return known + unknown


def pick_stream(streams: dict[str, str], preferred: str | None = None) -> tuple[str, str] | None:
    """Return (quality, url) for the preferred quality, else the best available one."""
    if preferred and preferred in streams:
        return preferred, streams[preferred]
    for quality in sort_qualities(streams):
        return quality, streams[quality]
    return None


@dataclass(frozen=True)
class MovieSummary:
    """Listing/search entry."""
    id: int
    title: str
    year: str
    rating: str  # "7.4" or "—"
    duration: str
    genres: list[str] = field(default_factory=list, hash=False)
    translate: str = ""
    poster_url: str = ""
    is_series: bool = False
    last_added: Optional[str] = None
    description: str = ""
    movie_url: str = ""
    directors: list[str] = field(default_factory=list, hash=False)
    actors: list[str] = field(default_factory=list, hash=False)
    is_ad_in: bool = False

    @property
    def genre(self) -> str:
        return self.genres[0] if self.genres else PLACEHOLDER


@dataclass(frozen=True)
class ListingPage:
    """One page of a listing plus the link to the next one."""
    items: list[MovieSummary] = field(hash=False)
    next_page_url: Optional[str] = None


@dataclass(frozen=True)
class ExternalRating:
    """Score/votes pair from an outside rating source."""
    score: str = PLACEHOLDER
    votes: str = PLACEHOLDER

    @property
    def is_present(self) -> bool:
        return self.score != PLACEHOLDER


@dataclass(frozen=True)
class UserVotes:
    """Site user likes/dislikes."""
    likes: int = 0
    dislikes: int = 0
    positive_percent: int = 0

    @property
    def rating(self) -> str:
        total = self.likes + self.dislikes
        if total <= 0:
            return PLACEHOLDER
        return f"{self.likes / total * 10:.1f}"


@dataclass(frozen=True)
class MovieDetail:
    """Full item page."""
    id: int
    movie_url: str
    title: str
    original_title: str = ""
    poster_thumb: str = ""
    poster_full: str = ""
    quality: str = ""
    date: str = ""
    date_iso: str = ""
    year: str = PLACEHOLDER
    duration_minutes: Optional[int] = None
    mpaa: str = ""
    slogan: str = ""
    status_on_air: Optional[str] = None
    status_hint: Optional[str] = None
    last_added: Optional[str] = None
    directors: list[str] = field(default_factory=list, hash=False)
    actors: list[str] = field(default_factory=list, hash=False)
    writers: list[str] = field(default_factory=list, hash=False)
    producers: list[str] = field(default_factory=list, hash=False)
    genres: list[str] = field(default_factory=list, hash=False)
    countries: list[str] = field(default_factory=list, hash=False)
    translate: str = ""
    description: str = ""
    is_ad_in: bool = False
    kinopoisk: ExternalRating = field(default_factory=ExternalRating)
    imdb: ExternalRating = field(default_factory=ExternalRating)
    user_votes: UserVotes = field(default_factory=UserVotes)
    stills: list[str] = field(default_factory=list, hash=False)
    # Names of fields that fell back to their default while parsing.
    missing_fields: frozenset[str] = frozenset()

    @property
    def is_series(self) -> bool:
        # Heuristic, may misclassify specials.
        return (
            self.status_on_air is not None
            or self.last_added is not None
            or SERIES_YEAR_MARKER in self.year
        )

    @property
    def user_rating(self) -> str:
        return self.user_votes.rating

    @property
    def duration_formatted(self) -> str:
        minutes = self.duration_minutes
        if not minutes or minutes <= 0:
            return self.quality
        hours, rest = divmod(minutes, 60)
        base = f"{hours}ч {rest}м" if hours > 0 else f"{rest}м"
        return f"{base}/серия" if self.is_series else base


@dataclass
class SerialFolder:
    """A single episode entry of a serial playlist."""
    title: str
    id: str = ""
    file: str = ""  # cipher-encoded "[quality]url,..." list

    @property
    def streams(self) -> dict[str, str]:
        decoded = decode_string_tokens(self.file)
        if not decoded:
            return {}
        return decode_bracket_map(decoded.split(","))


@dataclass
class SerialSeason:
    """Season of a serial playlist."""
    title: str
    folders: list[SerialFolder] = field(default_factory=list)


@dataclass
class Translation:
    """Studio/voice-over with its stream set."""
    studio: str
    streams: dict[str, str] = field(default_factory=dict)
    seasons: list[SerialSeason] = field(default_factory=list)

    @property
    def is_serial(self) -> bool:
        return bool(self.seasons)

    @property
    def sorted_qualities(self) -> list[str]:
        return sort_qualities(self.streams)

    @property
    def best_quality(self) -> str | None:
        qualities = self.sorted_qualities
        return qualities[0] if qualities else None

    @property
    def best_url(self) -> str | None:
        quality = self.best_quality
        return self.streams.get(quality) if quality else None


@dataclass(frozen=True)
class Stream:
    """Quality with its HLS and/or progressive form."""
    quality: str
    hls_url: Optional[str] = None
    direct_url: Optional[str] = None


@dataclass(frozen=True)
class Translator:
    """HDRezka translator entry."""
    movie_id: int
    translator_id: int
    title: str
    is_camrip: bool = False
    has_ads: bool = False
    is_director: bool = False
    is_active: bool = False


@dataclass(frozen=True)
class InitCall:
    """Arguments recovered from the inline player init call."""
    movie_id: int
    translator_id: int
    streams: str
    default_quality: str


@dataclass(frozen=True)
class PlayerData:
    """HDRezka film page aggregate."""
    movie_id: int
    active_translator_id: int
    default_quality: str
    streams: list[Stream] = field(hash=False)
    translators: list[Translator] = field(hash=False)
    favs: str


@dataclass(frozen=True)
class SearchResult:
    """HDRezka search entry."""
    id: int
    title: str
    url: str
    poster_url: Optional[str] = None
    info: str = ""
    category: str = ""
    status: Optional[str] = None
