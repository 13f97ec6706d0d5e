from __future__ import annotations

import json
from pathlib import Path
import sys

import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from gamejolt_library.utils.platform import HostEnvironment  # noqa: E402


@pytest.fixture
def linux_host():
    return HostEnvironment(os_family='linux', is_64bit=True, local_app_data='/home/user/.config')


@pytest.fixture
def windows_host():
    return HostEnvironment(os_family='windows', is_64bit=True, local_app_data='C:\\Users\\user\\AppData\\Local')


@pytest.fixture
def client_dir(tmp_path):
    """Empty client profile directory (the 'User Data/Default' folder)."""
    path = tmp_path / "client"
    path.mkdir()
    return path


def write_state_file(directory: Path, name: str, objects) -> Path:
    """Write a client state file in the {"version": ..., "objects": {...}} format."""
    path = directory / name
    path.write_text(json.dumps({"version": 1, "objects": objects}), encoding="utf-8")
    return path


def game_json(game_id: int, title: str, slug: str = None, developer_slug: str = "dev") -> dict:
    """A game object as both games.wttf and the site API return it."""
    return {
        "id": game_id,
        "title": title,
        "slug": slug or title.lower().replace(" ", "-"),
        "category": "Action",
        "developer": {
            "id": 7,
            "username": developer_slug,
            "display_name": developer_slug.title(),
            "slug": developer_slug,
        },
        "thumbnail_media_item": {"id": 1, "img_url": f"https://m.gjcdn.net/thumb/{game_id}.png"},
        "header_media_item": {"id": 2, "img_url": f"https://m.gjcdn.net/header/{game_id}.png"},
        "img_thumbnail": f"https://m.gjcdn.net/legacy/{game_id}.png",
    }


def install_executable(install_dir: Path, relative_path: str) -> Path:
    """Create an executable file below the package's data folder."""
    path = install_dir / "data" / relative_path
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text("", encoding="utf-8")
    return path
