"""Routing from the running operating system to its search adapter.

The dispatcher holds no state. The platform is detected on every call and
mapped to an adapter through a fixed table; results have the same shape
whichever adapter served the call.
"""

import sys
from collections.abc import Callable, Mapping
from enum import StrEnum
from typing import Any

from everysearch.config import Settings, get_settings
from everysearch.dependencies import (
    CommandRunner,
    UnsupportedPlatformError,
    get_command_runner,
    logger,
)
from everysearch.platforms import SearchAdapter
from everysearch.platforms.darwin import SpotlightAdapter
from everysearch.platforms.linux import LinuxAdapter
from everysearch.platforms.windows import EverythingAdapter
from everysearch.search.models import FileInfo, PlatformStatus, SearchOptions, SearchResult


class Platform(StrEnum):
    """Operating systems with a search adapter."""

    WINDOWS = "windows"
    DARWIN = "darwin"
    LINUX = "linux"


def detect_platform(sys_platform: str | None = None) -> Platform:
    """Map a ``sys.platform`` value to a Platform.

    Raises:
        UnsupportedPlatformError: For any other operating system

    Examples:
        >>> detect_platform("win32")
        <Platform.WINDOWS: 'windows'>
        >>> detect_platform("linux")
        <Platform.LINUX: 'linux'>
    """
    name = sys.platform if sys_platform is None else sys_platform
    if name in ("win32", "cygwin"):
        return Platform.WINDOWS
    if name == "darwin":
        return Platform.DARWIN
    if name.startswith("linux"):
        return Platform.LINUX
    raise UnsupportedPlatformError(f"Unsupported platform: {name}")


ADAPTERS: dict[Platform, Callable[[CommandRunner, Settings], SearchAdapter]] = {
    Platform.WINDOWS: lambda runner, settings: EverythingAdapter(runner, es_path=settings.es_path),
    Platform.DARWIN: lambda runner, settings: SpotlightAdapter(runner),
    Platform.LINUX: lambda runner, settings: LinuxAdapter(runner, search_root=settings.search_root),
}


def get_adapter(
    platform: Platform | None = None,
    runner: CommandRunner | None = None,
    settings: Settings | None = None,
) -> SearchAdapter:
    """Build the adapter for a platform (the running one by default)."""
    platform = platform or detect_platform()
    return ADAPTERS[platform](runner or get_command_runner(), settings or get_settings())


async def search_files(
    options: Mapping[str, Any] | SearchOptions,
    *,
    platform: Platform | None = None,
    runner: CommandRunner | None = None,
) -> list[SearchResult]:
    """Search files with the engine of the running platform."""
    return await get_adapter(platform, runner).search(options)


async def get_file_info(
    path: str,
    *,
    platform: Platform | None = None,
    runner: CommandRunner | None = None,
) -> FileInfo:
    """Look up metadata for one path with the engine of the running platform."""
    return await get_adapter(platform, runner).get_file_info(path)


async def get_status(
    *,
    platform: Platform | None = None,
    runner: CommandRunner | None = None,
) -> PlatformStatus:
    """Report search engine availability. Never raises."""
    try:
        adapter = get_adapter(platform, runner)
    except UnsupportedPlatformError as e:
        return PlatformStatus(
            platform=sys.platform,
            search_engine="none",
            available=False,
            message=e.message,
        )

    try:
        return await adapter.get_status()
    except Exception as e:
        logger.error(
            "status_check_failed",
            extra={"platform": adapter.platform, "error": str(e)},
            exc_info=True,
        )
        return PlatformStatus(
            platform=adapter.platform,
            search_engine=adapter.search_engine,
            available=False,
            message=f"Error checking search engine status: {e}",
        )


def get_platform_info(platform: Platform | None = None) -> dict[str, str | bool]:
    """Describe the search backend of a platform without running anything."""
    platform = platform or detect_platform()
    if platform is Platform.WINDOWS:
        return {"platform": "windows", "searchEngine": "Everything (es.exe CLI)", "isPrimary": True}
    if platform is Platform.DARWIN:
        return {"platform": "macOS", "searchEngine": "Spotlight (mdfind)", "isPrimary": False}
    return {"platform": "linux", "searchEngine": "ripgrep/locate", "isPrimary": False}
