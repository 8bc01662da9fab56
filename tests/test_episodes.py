"""Tests for next-episode lookup."""

from visiontv.episodes import Availability, has_continuation, next_episode
from visiontv.models import SerialFolder, SerialSeason, Translation


def make_translation(studio: str, *episode_counts: int) -> Translation:
    seasons = [
        SerialSeason(
            title=f"Сезон {s}",
            folders=[SerialFolder(title=f"Серия {e}", id=f"{studio}-s{s}e{e}") for e in range(1, count + 1)],
        )
        for s, count in enumerate(episode_counts, 1)
    ]
    return Translation(studio=studio, seasons=seasons)


def test_next_episode_same_season():
    translation = make_translation("A", 3, 2)
    result = next_episode(translation, 0, 1)

    assert result.availability is Availability.AVAILABLE
    assert (result.season_index, result.episode_index) == (0, 2)
    assert result.folder.id == "A-s1e3"


def test_next_episode_skips_empty_seasons():
    translation = make_translation("A", 2, 0, 4)
    result = next_episode(translation, 0, 1)

    assert result.availability is Availability.AVAILABLE
    assert (result.season_index, result.episode_index) == (2, 0)
    assert result.folder.id == "A-s3e1"


def test_end_of_translation_when_another_studio_continues():
    """TEST: the current studio is exhausted but another one has more episodes."""
    short = make_translation("Short", 2)
    longer = make_translation("Long", 2, 5)

    result = next_episode(short, 0, 1, [short, longer])
    assert result.availability is Availability.END_OF_TRANSLATION
    assert result.folder is None


def test_end_of_series():
    first = make_translation("A", 2)
    second = make_translation("B", 2)

    assert next_episode(first, 0, 1, [first, second]).availability is Availability.END_OF_SERIES
    assert next_episode(first, 0, 1).availability is Availability.END_OF_SERIES


def test_same_studio_name_is_not_a_continuation():
    current = make_translation("A", 1)
    duplicate = make_translation("A", 1, 3)

    assert next_episode(current, 0, 0, [duplicate]).availability is Availability.END_OF_SERIES


def test_has_continuation():
    translation = make_translation("A", 2, 0, 1)

    assert has_continuation(translation, 0, 0)
    assert has_continuation(translation, 0, 1)
    assert not has_continuation(translation, 2, 0)
    assert not has_continuation(translation, 5, 0)
