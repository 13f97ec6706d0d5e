"""
Launch option resolution for installed Game Jolt packages.

A package lists one launch option per OS/architecture build. We pick the one
matching the host, and fall back to the .manifest marker in the install
directory when the package registry has nothing usable.
"""
import json
import logging
import os
from typing import List, Optional

from ..models import GameManifest, InstalledPackage, LaunchOption
from .paths import MANIFEST_FILE, PACKAGE_DATA_DIR
from .platform import HostEnvironment, detect_host_environment

logger = logging.getLogger(__name__)


def _targets_os(os_tag: Optional[str], os_family: str) -> bool:
    return os_family.lower() in (os_tag or '').lower()


def get_eligible_launch_options(package: InstalledPackage, host: HostEnvironment) -> List[LaunchOption]:
    """Return the package's launch options usable on the host, best first.

    64-bit builds come first on a 64-bit host, followed by 32-bit builds.
    A 32-bit host only gets 32-bit builds.
    """
    options = [
        option for option in package.launch_options
        if option.is_valid and _targets_os(option.os, host.os_family)
    ]
    builds_64 = [option for option in options if '64' in option.os]
    builds_32 = [option for option in options if '64' not in option.os]

    if host.is_64bit:
        return builds_64 + builds_32
    return builds_32


def read_game_manifest(install_dir: str) -> Optional[GameManifest]:
    """Read the .manifest marker of an install directory.

    Returns:
        The parsed manifest, or None when it is missing or unreadable.
    """
    manifest_path = os.path.join(install_dir, MANIFEST_FILE)
    if not os.path.exists(manifest_path):
        logger.warning(f"[GameJolt] Game manifest not found: {manifest_path}")
        return None

    try:
        with open(manifest_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"[GameJolt] Failed to read game manifest {manifest_path}: {e}")
        return None

    if not isinstance(data, dict):
        logger.error(f"[GameJolt] Unexpected content in game manifest {manifest_path}")
        return None
    return GameManifest.from_dict(data)


def get_launch_option_from_manifest(package: InstalledPackage, host: HostEnvironment) -> Optional[LaunchOption]:
    """Build a launch option from the install directory's .manifest, if it fits the host."""
    manifest = read_game_manifest(package.install_dir)
    if manifest is None:
        return None

    if not manifest.dir or not manifest.executable:
        logger.warning(f"[GameJolt] Manifest in {package.install_dir} has no executable")
        return None
    if not _targets_os(manifest.os, host.os_family):
        logger.warning(
            f"[GameJolt] Manifest in {package.install_dir} targets '{manifest.os}', "
            f"host is '{host.os_family}'"
        )
        return None
    if not host.is_64bit and manifest.arch == '64':
        logger.warning(f"[GameJolt] Manifest in {package.install_dir} needs a 64-bit host")
        return None

    return LaunchOption(
        os=manifest.os,
        executable_path=os.path.join(package.install_dir, manifest.dir, manifest.executable),
    )


def resolve_launch_option(
    package: InstalledPackage,
    host: Optional[HostEnvironment] = None,
) -> Optional[LaunchOption]:
    """Select the launch option to start a package with.

    Args:
        package: The installed package.
        host: Host description; detected when omitted.

    Returns:
        The chosen launch option, or None when the package cannot be
        launched on this host.
    """
    host = host or detect_host_environment()

    eligible = get_eligible_launch_options(package, host)
    if eligible:
        return eligible[0]

    option = get_launch_option_from_manifest(package, host)
    if option is None:
        logger.warning(
            f"[GameJolt] No launch option for package {package.id} of game {package.game_id} "
            f"on {host.os_family} ({'64' if host.is_64bit else '32'}-bit)"
        )
    return option


def executable_full_path(package: InstalledPackage, option: LaunchOption) -> str:
    """Absolute executable path of a launch option.

    Registry options are relative to the package's data folder; manifest
    options are already absolute and returned unchanged.
    """
    return os.path.normpath(os.path.join(package.install_dir, PACKAGE_DATA_DIR, option.executable_path))
