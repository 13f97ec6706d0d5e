"""
Tests for SyncService: the two import pipelines, reconciliation and notifications.
"""
import pytest
from unittest.mock import AsyncMock, Mock, patch

from gamejolt_library.controllers.notifications import (
    IMPORT_ERROR_ID,
    USER_NOT_FOUND_ID,
    Notification,
    NotificationCenter,
)
from gamejolt_library.errors import FetchError, UserNotFoundError
from gamejolt_library.registry.games_registry import GameEntry, JsonGamesDatabase
from gamejolt_library.services.reconciler import ReconcileStats
from gamejolt_library.services.sync_service import SyncService
from gamejolt_library.settings import LibrarySettings
from gamejolt_library.stores.base import Game, GameAction

SOURCE = "Game Jolt"


def installed_game(game_id):
    return Game(
        source=SOURCE,
        game_id=game_id,
        name=f"Game {game_id}",
        is_installed=True,
        install_directory=f"/games/{game_id}",
        game_actions=[GameAction("Play", f"/games/{game_id}/data/game", f"/games/{game_id}/data")],
    )


def library_game(game_id):
    return Game(source=SOURCE, game_id=game_id, name=f"Game {game_id}")


@pytest.fixture
def connector():
    """Create a mock store connector."""
    connector = Mock()
    connector.store_name = SOURCE
    connector.get_installed = AsyncMock(return_value=[])
    connector.get_library = AsyncMock(return_value=[])
    return connector


@pytest.fixture
def database(tmp_path):
    return JsonGamesDatabase(str(tmp_path / "games.json"))


@pytest.fixture
def notifications():
    return NotificationCenter()


@pytest.fixture
def sync_service(connector, database, notifications):
    """Create a SyncService instance with a mocked connector."""
    return SyncService(connector, database, notifications)


@pytest.fixture
def library_settings():
    return LibrarySettings(user_name="player", import_library_games=True)


def stored_ids(database, predicate=lambda e: True):
    return sorted(e.game_id for e in database.query(predicate))


def test_sync_service_initialization(sync_service):
    """Test that SyncService initializes correctly."""
    assert sync_service.is_syncing is False
    assert sync_service.sync_progress.status == "idle"


@pytest.mark.asyncio
async def test_sync_prevents_concurrent_syncs(sync_service, connector):
    """A second sync while one is running is rejected."""
    sync_service._is_syncing = True

    result = await sync_service.sync(LibrarySettings())

    assert result.success is False
    assert result.errors == ['errors.syncInProgress']
    connector.get_installed.assert_not_awaited()


@pytest.mark.asyncio
async def test_installed_games_are_imported(sync_service, connector, database):
    connector.get_installed.return_value = [installed_game("1"), installed_game("2")]

    result = await sync_service.sync(LibrarySettings())

    assert result.success is True
    assert result.installed_count == 2
    assert result.stats.added == 2
    assert stored_ids(database, lambda e: e.is_installed) == ["1", "2"]
    connector.get_library.assert_not_awaited()
    assert sync_service.sync_progress.status == "complete"


@pytest.mark.asyncio
async def test_uninstalled_game_is_flipped_not_deleted(sync_service, connector, database):
    database.add(GameEntry.from_game(installed_game("1")))

    result = await sync_service.sync(LibrarySettings())

    assert result.stats.uninstalled == 1
    assert database.get(SOURCE, "1").is_installed is False


@pytest.mark.asyncio
async def test_library_games_merged_with_installed(sync_service, connector, database, library_settings):
    connector.get_installed.return_value = [installed_game("1")]
    connector.get_library.return_value = [library_game("1"), library_game("2")]

    result = await sync_service.sync(library_settings)

    assert [g.game_id for g in result.games] == ["1", "2"]
    assert result.games[0].is_installed is True
    assert database.get(SOURCE, "1").is_installed is True
    assert database.get(SOURCE, "2").is_installed is False
    connector.get_library.assert_awaited_once()
    assert connector.get_library.await_args.args[:2] == ("player", False)


@pytest.mark.asyncio
async def test_followed_setting_is_passed_on(sync_service, connector):
    settings = LibrarySettings(user_name="player", import_library_games=True,
                               treat_followed_games_as_library_games=True)

    await sync_service.sync(settings)

    assert connector.get_library.await_args.args[:2] == ("player", True)


@pytest.mark.asyncio
async def test_library_game_no_longer_owned_is_removed(sync_service, connector, database, library_settings):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(library_game("2")))
    connector.get_library.return_value = [library_game("2")]

    result = await sync_service.sync(library_settings)

    assert result.stats.removed == 1
    assert stored_ids(database) == ["2"]


@pytest.mark.asyncio
async def test_game_uninstalled_this_pass_is_kept(sync_service, connector, database, library_settings):
    database.add(GameEntry.from_game(installed_game("1")))

    await sync_service.sync(library_settings)

    entry = database.get(SOURCE, "1")
    assert entry is not None
    assert entry.is_installed is False


@pytest.mark.asyncio
async def test_user_not_found(sync_service, connector, database, notifications, library_settings):
    database.add(GameEntry.from_game(library_game("1")))
    connector.get_installed.return_value = [installed_game("2")]
    connector.get_library.side_effect = UserNotFoundError("player")

    result = await sync_service.sync(library_settings)

    assert result.success is False
    assert result.user_not_found is True
    # Library-only entries are dropped, installed handling is unaffected
    assert stored_ids(database) == ["2"]
    assert database.get(SOURCE, "2").is_installed is True
    assert notifications.get(USER_NOT_FOUND_ID) is not None
    assert notifications.get(IMPORT_ERROR_ID) is None


@pytest.mark.asyncio
async def test_library_fetch_failure_keeps_library_entries(sync_service, connector, database, notifications,
                                                          library_settings):
    database.add(GameEntry.from_game(library_game("1")))
    connector.get_installed.return_value = [installed_game("2")]
    connector.get_library.side_effect = FetchError("HTTP 500")

    result = await sync_service.sync(library_settings)

    assert result.success is False
    assert stored_ids(database) == ["1", "2"]
    assert notifications.get(IMPORT_ERROR_ID) is not None
    assert sync_service.sync_progress.status == "error"


@pytest.mark.asyncio
async def test_installed_failure_does_not_block_library(sync_service, connector, database, notifications,
                                                       library_settings):
    database.add(GameEntry.from_game(installed_game("1")))
    connector.get_installed.side_effect = OSError("disk gone")
    connector.get_library.return_value = [library_game("3")]

    result = await sync_service.sync(library_settings)

    assert result.success is False
    # Install state is left alone when the installed pipeline failed
    assert database.get(SOURCE, "1").is_installed is True
    assert database.get(SOURCE, "3") is not None
    assert notifications.get(IMPORT_ERROR_ID) is not None


@pytest.mark.asyncio
async def test_disabled_library_removes_library_only_entries(sync_service, connector, database, notifications):
    database.add(GameEntry.from_game(library_game("1")))
    database.add(GameEntry.from_game(installed_game("2")))
    connector.get_installed.return_value = [installed_game("2")]
    notifications.add(Notification(id=USER_NOT_FOUND_ID, message="stale"))

    result = await sync_service.sync(LibrarySettings())

    assert result.success is True
    assert stored_ids(database) == ["2"]
    assert notifications.get(USER_NOT_FOUND_ID) is None


@pytest.mark.asyncio
async def test_missing_user_name_skips_library(sync_service, connector, database):
    database.add(GameEntry.from_game(library_game("1")))

    result = await sync_service.sync(LibrarySettings(import_library_games=True))

    assert result.success is True
    connector.get_library.assert_not_awaited()
    assert stored_ids(database) == ["1"]


@pytest.mark.asyncio
async def test_installed_import_disabled(sync_service, connector, database, library_settings):
    database.add(GameEntry.from_game(installed_game("1")))
    settings = library_settings.replace(import_installed_games=False)

    await sync_service.sync(settings)

    connector.get_installed.assert_not_awaited()
    assert database.get(SOURCE, "1").is_installed is True


@pytest.mark.asyncio
async def test_successful_sync_clears_import_error(sync_service, notifications):
    notifications.add(Notification(id=IMPORT_ERROR_ID, message="old failure"))

    await sync_service.sync(LibrarySettings())

    assert notifications.get(IMPORT_ERROR_ID) is None


@pytest.mark.asyncio
async def test_sync_emits_one_database_change(sync_service, connector, database, library_settings):
    database.add(GameEntry.from_game(library_game("9")))
    connector.get_installed.return_value = [installed_game("1"), installed_game("2")]
    connector.get_library.return_value = [library_game("3")]
    changes = []
    database.subscribe(changes.append)

    await sync_service.sync(library_settings)

    assert len(changes) == 1
    assert sorted(changes[0].added) == ["Game Jolt:1", "Game Jolt:2", "Game Jolt:3"]
    assert changes[0].removed == ["Game Jolt:9"]


@pytest.mark.asyncio
async def test_cancel_before_write_leaves_database_untouched(sync_service, connector, database):
    database.add(GameEntry.from_game(installed_game("1")))

    async def get_installed(cancel_token):
        sync_service.cancel_sync()
        return [installed_game("2")]

    connector.get_installed.side_effect = get_installed

    result = await sync_service.sync(LibrarySettings())

    assert result.cancelled is True
    assert result.errors == ['errors.syncCancelled']
    assert stored_ids(database) == ["1"]
    assert database.get(SOURCE, "1").is_installed is True
    assert sync_service.sync_progress.status == "cancelled"
    assert sync_service.is_syncing is False


def test_cancel_sync_when_not_syncing(sync_service):
    """Test that cancel_sync does nothing when not syncing."""
    sync_service.cancel_sync()
    assert sync_service.is_syncing is False


@pytest.mark.asyncio
async def test_uninstall_with_library_disabled_keeps_user_data(sync_service, database):
    entry = GameEntry.from_game(installed_game("1"))
    entry.playtime = 500
    entry.tags = ["fav"]
    database.add(entry)
    database.add(GameEntry.from_game(library_game("2")))

    result = await sync_service.sync(LibrarySettings())

    assert result.stats.uninstalled == 1
    assert result.stats.removed == 1
    stored = database.get(SOURCE, "1")
    assert stored is not None
    assert stored.is_installed is False
    assert stored.playtime == 500
    assert stored.tags == ["fav"]
    assert database.get(SOURCE, "2") is None


@pytest.mark.asyncio
async def test_uninstall_with_unknown_user_keeps_user_data(sync_service, connector, database, library_settings):
    entry = GameEntry.from_game(installed_game("1"))
    entry.playtime = 500
    database.add(entry)
    connector.get_library.side_effect = UserNotFoundError("player")

    await sync_service.sync(library_settings)

    assert database.get(SOURCE, "1").playtime == 500


@pytest.mark.asyncio
async def test_reconcile_progress_advances(sync_service, connector, library_settings):
    connector.get_installed.return_value = [installed_game("1")]
    connector.get_library.return_value = [library_game("2")]
    seen = []

    def record_progress(*args, **kwargs):
        seen.append(sync_service.sync_progress.to_dict()['progress_percent'])
        return ReconcileStats()

    with patch("gamejolt_library.services.sync_service.apply_library_games", side_effect=record_progress):
        await sync_service.sync(library_settings)

    # One of two games written when the library step starts
    assert seen == [87]
    assert sync_service.sync_progress.synced_games == 2
