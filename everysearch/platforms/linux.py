"""Linux adapter backed by ripgrep's file listing or the locate database."""

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

RIPGREP = "rg"
LOCATE = "locate"
ENGINE_NOT_FOUND_MESSAGE = (
    "Neither ripgrep nor locate found. Please install ripgrep for fast search."
)

STAT_FORMAT = r"%n\t%F\t%s\t%X\t%Y\t%W\n"


def select_engine(runner: CommandRunner, options: SearchOptions) -> str:
    """Pick the tool for one search.

    ripgrep is preferred, except in regex mode: ripgrep only globs file
    names, so regex searches go to locate when it is installed.

    Raises:
        EngineUnavailableError: If neither tool is on PATH
    """
    has_ripgrep = runner.which(RIPGREP) is not None
    has_locate = runner.which(LOCATE) is not None

    if options.regex and has_locate:
        return LOCATE
    if has_ripgrep:
        return RIPGREP
    if has_locate:
        return LOCATE
    raise EngineUnavailableError(ENGINE_NOT_FOUND_MESSAGE)


def build_ripgrep_args(options: SearchOptions, query: str, root: str) -> list[str]:
    """Build ``rg --files`` arguments filtering file names by glob.

    Examples:
        >>> build_ripgrep_args(SearchOptions(query="x"), "notes", "/")
        ['--files', '--no-messages', '--color', 'never', '--iglob', '*notes*', '/']
        >>> build_ripgrep_args(SearchOptions(query="x", match_case=True), "*.md", "/home")
        ['--files', '--no-messages', '--color', 'never', '--glob', '*.md', '/home']
    """
    pattern = query if ("*" in query or "?" in query) else f"*{query}*"
    return [
        "--files",
        "--no-messages",
        "--color",
        "never",
        "--glob" if options.match_case else "--iglob",
        pattern,
        root,
    ]


def build_locate_args(options: SearchOptions, query: str) -> list[str]:
    """Build locate arguments.

    locate is asked for ``offset + max_results`` rows; offset and limit
    are then applied to the parsed rows.

    Examples:
        >>> build_locate_args(SearchOptions(query="x", max_results=10), "notes")
        ['--limit', '10', '-i', '--basename', '--', 'notes']
    """
    args = ["--limit", str(options.offset + options.max_results)]
    if not options.match_case:
        args.append("-i")
    if not options.match_path:
        args.append("--basename")
    if options.regex:
        args.append("--regex")
    args.extend(["--", query])
    return args


@dataclass
class LinuxAdapter:
    """Search adapter driving ripgrep or locate."""

    runner: CommandRunner
    search_root: str = "/"
    platform: str = "linux"
    search_engine: str = "ripgrep/locate"

    async def search(self, options: Mapping[str, Any] | SearchOptions) -> list[SearchResult]:
        """List matching paths with ripgrep or locate.

        Raises:
            ValidationError: If options are invalid (before any tool runs)
            EngineUnavailableError: If neither tool is installed
            EngineTimeoutError: If the tool exceeds the timeout
            EngineFailureError: If the tool exits with an error and no output
        """
        options = validate_search_options(options)
        query = sanitize_search_query(options.query)

        try:
            engine = select_engine(self.runner, options)
        except EngineUnavailableError as e:
            raise e.with_context("search", query) from e

        if engine == RIPGREP:
            argv = [RIPGREP, *build_ripgrep_args(options, query, self.search_root)]
        else:
            argv = [LOCATE, *build_locate_args(options, query)]

        logger.debug("linux_search", extra={"engine": engine, "query": query})
        result = await self._run(argv, "search", query)

        if result.returncode != 0 and not result.stdout.strip():
            # Both tools exit with 1 when nothing matched
            if result.returncode == 1 and not result.stderr.strip():
                return []
            raise EngineFailureError(
                f"{engine} error (exit {result.returncode}): {result.stderr.strip()}",
                operation="search",
                target=query,
            )

        return paginate(parse_path_lines(result.stdout), options.offset, options.max_results)

    async def get_file_info(self, path: str) -> FileInfo:
        """Read metadata for one path with GNU stat.

        Raises:
            ValidationError: If the path is invalid
            TargetNotFoundError: If stat cannot find the path
        """
        sanitized = sanitize_path(path)
        result = await self._run(
            ["stat", "--printf", STAT_FORMAT, "--", sanitized], "get_file_info", sanitized
        )

        info = parse_stat_record(result.stdout) if result.returncode == 0 else None
        if info is None:
            raise TargetNotFoundError(
                f"File not found or inaccessible: {path}",
                operation="get_file_info",
                target=sanitized,
            )
        return info

    async def get_status(self) -> PlatformStatus:
        """Report which of ripgrep and locate is available."""
        if self.runner.which(RIPGREP) is not None:
            engine, available = "ripgrep", True
            message = (
                "ripgrep available for fast search. "
                "Sorting, whole-word and path matching are not supported; "
                "regex searches need locate."
            )
        elif self.runner.which(LOCATE) is not None:
            engine, available = "locate", True
            message = (
                "locate available. For better performance, install ripgrep. "
                "Sorting and whole-word matching are not supported."
            )
        else:
            engine, available = "none", False
            message = ENGINE_NOT_FOUND_MESSAGE

        return PlatformStatus(
            platform=self.platform,
            search_engine=engine,
            available=available,
            message=message,
        )

    async def _run(self, argv: list[str], operation: str, target: str) -> CommandResult:
        try:
            return await self.runner.run(argv)
        except EngineError as e:
            raise e.with_context(operation, target) from e
