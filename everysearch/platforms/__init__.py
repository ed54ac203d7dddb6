"""Platform adapters driving one external search tool each."""

from collections.abc import Mapping
from typing import Any, Protocol

from everysearch.search.models import FileInfo, PlatformStatus, SearchOptions, SearchResult


class SearchAdapter(Protocol):
    """Operations every platform adapter provides."""

    platform: str
    search_engine: str

    async def search(self, options: Mapping[str, Any] | SearchOptions) -> list[SearchResult]:
        """Search for files and folders."""
        ...

    async def get_file_info(self, path: str) -> FileInfo:
        """Look up metadata for one path."""
        ...

    async def get_status(self) -> PlatformStatus:
        """Report whether the engine is usable. Never raises."""
        ...
