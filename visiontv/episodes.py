"""Next-episode lookup across a series' translations."""

from dataclasses import dataclass
from enum import Enum

from visiontv.models import SerialFolder, Translation


class Availability(Enum):
    AVAILABLE = "available"
    # this studio has nothing further, another one does
    END_OF_TRANSLATION = "end_of_translation"
    END_OF_SERIES = "end_of_series"


@dataclass(frozen=True)
class NextEpisode:
    availability: Availability
    season_index: int | None = None
    episode_index: int | None = None
    folder: SerialFolder | None = None


def has_continuation(translation: Translation, season_index: int, episode_index: int) -> bool:
    """True when translation has any episode after the given 0-based position."""
    seasons = translation.seasons
    if 0 <= season_index < len(seasons) and episode_index + 1 < len(seasons[season_index].folders):
        return True
    return any(season.folders for season in seasons[season_index + 1:])


def next_episode(
    translation: Translation,
    season_index: int,
    episode_index: int,
    all_translations: list[Translation] | None = None,
) -> NextEpisode:
    """Find the episode after (season_index, episode_index) in translation.

    Looks at the next folder of the same season, then the first folder of
    any later non-empty season. When the translation is exhausted, the
    result tells apart "another studio continues" from the real end.
    """
    seasons = translation.seasons
    if 0 <= season_index < len(seasons):
        folders = seasons[season_index].folders
        if episode_index + 1 < len(folders):
            return NextEpisode(Availability.AVAILABLE, season_index, episode_index + 1, folders[episode_index + 1])

    for index in range(season_index + 1, len(seasons)):
        if seasons[index].folders:
            return NextEpisode(Availability.AVAILABLE, index, 0, seasons[index].folders[0])

    for other in all_translations or []:
        if other.studio != translation.studio and has_continuation(other, season_index, episode_index):
            return NextEpisode(Availability.END_OF_TRANSLATION)
    return NextEpisode(Availability.END_OF_SERIES)
