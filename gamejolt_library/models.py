"""
Source records read from the Game Jolt client state files and the site API.

The native client and the site API describe games with the same JSON shape,
so a single set of dataclasses parses both. Only the fields the library sync
needs are kept; everything else in the payloads is ignored.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

GAMEJOLT_BASE_URL = "https://gamejolt.com"


def normalize_game_id(value: Any) -> Optional[str]:
    """Return the canonical string form of a game id.

    The site API sends numeric ids while the client state files may key
    games by decimal strings; both end up as the same decimal string.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = str(value).strip()
    if not text:
        return None
    if text.isdigit():
        return str(int(text))
    return text


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class LaunchOption:
    """One OS-tagged executable candidate of an installed package"""
    os: Optional[str]
    executable_path: Optional[str]
    id: Optional[int] = None

    @property
    def is_valid(self) -> bool:
        return bool(self.os) and bool(self.executable_path)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LaunchOption":
        return cls(
            os=_text(data.get('os')),
            executable_path=_text(data.get('executable_path')),
            id=data.get('id'),
        )


@dataclass
class InstalledPackage:
    """A package the native client installed (one entry of packages.wttf)"""
    id: Optional[str]
    game_id: str
    install_dir: str
    title: Optional[str] = None
    launch_options: List[LaunchOption] = field(default_factory=list)
    description: Optional[str] = None
    version_number: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Optional["InstalledPackage"]:
        """Parse a package object; returns None when game id or directory is missing."""
        game_id = normalize_game_id(data.get('game_id'))
        install_dir = _text(data.get('install_dir'))
        if not game_id or not install_dir:
            return None

        options = []
        for option in data.get('launch_options') or []:
            if isinstance(option, dict):
                options.append(LaunchOption.from_dict(option))

        release = data.get('release') or {}
        return cls(
            id=normalize_game_id(data.get('id')),
            game_id=game_id,
            install_dir=install_dir,
            title=_text(data.get('title')),
            launch_options=options,
            description=_text(data.get('description')),
            version_number=_text(release.get('version_number')) if isinstance(release, dict) else None,
        )


@dataclass
class MediaItem:
    id: Optional[int] = None
    img_url: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Any) -> Optional["MediaItem"]:
        if not isinstance(data, dict):
            return None
        return cls(id=data.get('id'), img_url=_text(data.get('img_url')))


@dataclass
class Developer:
    id: Optional[int] = None
    username: Optional[str] = None
    name: Optional[str] = None
    display_name: Optional[str] = None
    slug: Optional[str] = None
    img_avatar: Optional[str] = None

    @property
    def label(self) -> Optional[str]:
        return self.display_name or self.name or self.username

    @property
    def developer_link(self) -> Optional[str]:
        if not self.slug:
            return None
        return f"{GAMEJOLT_BASE_URL}/@{self.slug}"

    @classmethod
    def from_dict(cls, data: Any) -> Optional["Developer"]:
        if not isinstance(data, dict):
            return None
        return cls(
            id=data.get('id'),
            username=_text(data.get('username')),
            name=_text(data.get('name')),
            display_name=_text(data.get('display_name')),
            slug=_text(data.get('slug')),
            img_avatar=_text(data.get('img_avatar')),
        )


@dataclass
class GameMetadataRecord:
    """Game metadata, either cached by the client (games.wttf) or from the site API"""
    id: str
    title: Optional[str] = None
    slug: Optional[str] = None
    developer: Optional[Developer] = None
    category: Optional[str] = None
    thumbnail_media_item: Optional[MediaItem] = None
    header_media_item: Optional[MediaItem] = None
    img_thumbnail: Optional[str] = None
    modified_on: Optional[int] = None
    compatibility: Dict[str, Any] = field(default_factory=dict)

    @property
    def store_page_link(self) -> str:
        return f"{GAMEJOLT_BASE_URL}/games/{self.slug}/{self.id}"

    @property
    def cover_image_url(self) -> Optional[str]:
        if self.thumbnail_media_item and self.thumbnail_media_item.img_url:
            return self.thumbnail_media_item.img_url
        return self.img_thumbnail

    @property
    def background_image_url(self) -> Optional[str]:
        if self.header_media_item:
            return self.header_media_item.img_url
        return None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], game_id: Any = None) -> Optional["GameMetadataRecord"]:
        """Parse a game object.

        Args:
            data: The game JSON object.
            game_id: Fallback id (the object key in games.wttf) when the
                object itself carries none.

        Returns:
            The parsed record, or None when no id can be determined.
        """
        normalized_id = normalize_game_id(data.get('id')) or normalize_game_id(game_id)
        if not normalized_id:
            return None

        compatibility = data.get('compatibility')
        return cls(
            id=normalized_id,
            title=_text(data.get('title')),
            slug=_text(data.get('slug')),
            developer=Developer.from_dict(data.get('developer')),
            category=_text(data.get('category')),
            thumbnail_media_item=MediaItem.from_dict(data.get('thumbnail_media_item')),
            header_media_item=MediaItem.from_dict(data.get('header_media_item')),
            img_thumbnail=_text(data.get('img_thumbnail')),
            modified_on=data.get('modified_on'),
            compatibility=compatibility if isinstance(compatibility, dict) else {},
        )


@dataclass
class GameManifest:
    """The .manifest marker the client writes into each install directory"""
    dir: Optional[str] = None
    executable: Optional[str] = None
    os: Optional[str] = None
    arch: Optional[str] = None
    version: Optional[str] = None
    uid: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GameManifest":
        game_info = data.get('gameInfo') or {}
        launch_options = data.get('launchOptions') or {}
        if not isinstance(game_info, dict):
            game_info = {}
        if not isinstance(launch_options, dict):
            launch_options = {}
        return cls(
            dir=_text(game_info.get('dir')),
            executable=_text(launch_options.get('executable')),
            os=_text(data.get('os')),
            arch=_text(data.get('arch')),
            version=_text(data.get('version')),
            uid=_text(game_info.get('uid')),
        )
