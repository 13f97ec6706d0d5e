"""
Tests for applying installed and library games to the game database.
"""
import pytest

from gamejolt_library.registry.games_registry import GameEntry, JsonGamesDatabase
from gamejolt_library.services.reconciler import (
    apply_installed_games,
    apply_library_games,
    merge_games,
    remove_library_only_games,
)
from gamejolt_library.stores.base import Game, GameAction

SOURCE = "Game Jolt"


@pytest.fixture
def database(tmp_path):
    return JsonGamesDatabase(str(tmp_path / "games.json"))


def installed_game(game_id, name=None):
    return Game(
        source=SOURCE,
        game_id=game_id,
        name=name or f"Game {game_id}",
        is_installed=True,
        install_directory=f"/games/{game_id}",
        game_actions=[GameAction("Play", f"/games/{game_id}/data/game", f"/games/{game_id}/data")],
    )


def library_game(game_id, name=None):
    return Game(source=SOURCE, game_id=game_id, name=name or f"Game {game_id}")


def ids(database, predicate=lambda e: True):
    return sorted(e.game_id for e in database.query(predicate))


def test_merge_games_prefers_installed_record():
    merged = merge_games([installed_game("1")], [library_game("1"), library_game("2")])

    assert [g.game_id for g in merged] == ["1", "2"]
    assert merged[0].is_installed is True


def test_new_installed_games_are_added(database):
    stats = apply_installed_games(database, [installed_game("1"), installed_game("2")], SOURCE)

    assert stats.added == 2
    assert ids(database, lambda e: e.is_installed) == ["1", "2"]


def test_uninstalled_game_is_kept_with_user_data(database):
    entry = GameEntry.from_game(installed_game("1"))
    entry.playtime = 120
    database.add(entry)

    stats = apply_installed_games(database, [], SOURCE)

    assert stats.uninstalled == 1
    stored = database.get(SOURCE, "1")
    assert stored.is_installed is False
    assert stored.playtime == 120


def test_other_sources_are_untouched(database):
    database.add(GameEntry(source="Other", game_id="9", name="Other Game", is_installed=True))

    apply_installed_games(database, [], SOURCE)
    remove_library_only_games(database, SOURCE)

    assert database.get("Other", "9").is_installed is True


def test_library_games_never_change_install_state(database):
    database.add(GameEntry.from_game(installed_game("1")))

    apply_library_games(database, [library_game("1", name="Renamed")], SOURCE)

    stored = database.get(SOURCE, "1")
    assert stored.is_installed is True
    assert stored.name == "Renamed"
    assert len(stored.game_actions) == 1


def test_library_games_skipped_when_already_installed(database):
    database.add(GameEntry.from_game(installed_game("1")))

    stats = apply_library_games(database, [library_game("1", name="Renamed")], SOURCE, skip_ids={"1"})

    assert stats.updated == 0
    assert database.get(SOURCE, "1").name == "Game 1"


def test_games_gone_from_library_are_removed(database):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(library_game("2")))
    database.add(GameEntry.from_game(installed_game("3")))

    stats = apply_library_games(database, [library_game("2")], SOURCE)

    assert stats.removed == 1
    assert ids(database) == ["2", "3"]


def test_removal_limited_to_removable_ids(database):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(library_game("2")))

    apply_library_games(database, [], SOURCE, removable_ids={"1"})

    assert ids(database) == ["2"]


def test_remove_library_only_games_keeps_installed(database):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(installed_game("2")))

    stats = remove_library_only_games(database, SOURCE)

    assert stats.removed == 1
    assert ids(database) == ["2"]


def test_remove_library_only_games_limited_to_removable_ids(database):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(library_game("2")))

    stats = remove_library_only_games(database, SOURCE, removable_ids={"1"})

    assert stats.removed == 1
    assert ids(database) == ["2"]
