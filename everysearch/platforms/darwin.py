"""macOS adapter backed by Spotlight (mdfind) and BSD stat."""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from everysearch.dependencies import (
    CommandResult,
    CommandRunner,
    EngineError,
    EngineFailureError,
    EngineUnavailableError,
    TargetNotFoundError,
    logger,
)
from everysearch.platforms.parsing import paginate, parse_path_lines, parse_stat_record
from everysearch.search.models import FileInfo, PlatformStatus, SearchOptions, SearchResult
from everysearch.search.validation import (
    sanitize_path,
    sanitize_search_query,
    validate_search_options,
)

SEARCH_ENGINE = "mdfind (Spotlight)"
MDFIND_NOT_FOUND_MESSAGE = "mdfind command not found. Spotlight should be built into macOS."

# Markers that mean the caller wrote a raw Spotlight query
RAW_QUERY_MARKERS = ("kind:", "kMDItem")

STAT_FORMAT = "%N%t%HT%t%z%t%a%t%m%t%B"


def build_search_args(options: SearchOptions, query: str) -> list[str]:
    """Build mdfind arguments for a validated search.

    Spotlight has no regex, path-matching or sort support, so those
    options do not change the command line.

    Examples:
        >>> build_search_args(SearchOptions(query="report"), "report")
        ['-name', 'report']
        >>> build_search_args(SearchOptions(query="x", match_case=True), "report")
        ['kMDItemFSName == "*report*"']
        >>> build_search_args(SearchOptions(query="x", match_whole_word=True), "report")
        ['kMDItemFSName == "report"cw']
    """
    if any(marker in query for marker in RAW_QUERY_MARKERS):
        return [query]

    if options.match_case or options.match_whole_word:
        escaped = query.replace('"', '\\"')
        value = escaped if options.match_whole_word else f"*{escaped}*"
        modifiers = ("" if options.match_case else "c") + ("w" if options.match_whole_word else "")
        return [f'kMDItemFSName == "{value}"{modifiers}']

    return ["-name", query]


@dataclass
class SpotlightAdapter:
    """Search adapter driving mdfind."""

    runner: CommandRunner
    platform: str = "darwin"
    search_engine: str = SEARCH_ENGINE

    async def search(self, options: Mapping[str, Any] | SearchOptions) -> list[SearchResult]:
        """Search the Spotlight index.

        Raises:
            ValidationError: If options are invalid (before mdfind runs)
            EngineUnavailableError: If mdfind is missing
            EngineTimeoutError: If mdfind exceeds the timeout
            EngineFailureError: If mdfind exits with an error
        """
        options = validate_search_options(options)
        query = sanitize_search_query(options.query)
        args = build_search_args(options, query)

        logger.debug("spotlight_search", extra={"mdfind_args": args})
        result = await self._run(["mdfind", *args], "search", query)

        if result.returncode != 0:
            raise EngineFailureError(
                f"mdfind error: {(result.stderr or result.stdout).strip()}",
                operation="search",
                target=query,
            )

        return paginate(parse_path_lines(result.stdout), options.offset, options.max_results)

    async def get_file_info(self, path: str) -> FileInfo:
        """Read metadata for one path with BSD stat.

        Raises:
            ValidationError: If the path is invalid
            TargetNotFoundError: If stat cannot find the path
        """
        sanitized = sanitize_path(path)
        result = await self._run(["stat", "-f", STAT_FORMAT, sanitized], "get_file_info", sanitized)

        info = parse_stat_record(result.stdout) if result.returncode == 0 else None
        if info is None:
            raise TargetNotFoundError(
                f"File not found or inaccessible: {path}",
                operation="get_file_info",
                target=sanitized,
            )
        return info

    async def get_status(self) -> PlatformStatus:
        """Check that mdfind is on PATH."""
        if self.runner.which("mdfind") is None:
            return PlatformStatus(
                platform=self.platform,
                search_engine=self.search_engine,
                available=False,
                message=MDFIND_NOT_FOUND_MESSAGE,
            )
        return PlatformStatus(
            platform=self.platform,
            search_engine=self.search_engine,
            available=True,
            message=(
                "macOS Spotlight search available. "
                "Sorting, path matching and regex are not supported."
            ),
        )

    async def _run(self, argv: list[str], operation: str, target: str) -> CommandResult:
        try:
            return await self.runner.run(argv)
        except EngineUnavailableError as e:
            raise EngineUnavailableError(
                MDFIND_NOT_FOUND_MESSAGE if argv[0] == "mdfind" else e.message,
                operation=operation,
                target=target,
            ) from e
        except EngineError as e:
            raise e.with_context(operation, target) from e
