"""Windows adapter backed by the Everything command-line interface (es.exe).

es.exe is asked for tab-separated output with one record per line and
positional columns::

    name <TAB> path <TAB> full path <TAB> size <TAB> modified <TAB> created
    <TAB> attributes [<TAB> accessed]

Trailing columns may be missing; they are optional, not errors.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
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
from everysearch.platforms.parsing import paginate, split_extension
from everysearch.search.models import (
    FileAttribute,
    FileInfo,
    PlatformStatus,
    SearchOptions,
    SearchResult,
)
from everysearch.search.validation import (
    sanitize_path,
    sanitize_search_query,
    validate_search_options,
)

SEARCH_ENGINE = "Everything (es.exe CLI)"
ES_NOT_FOUND_MESSAGE = (
    "es.exe not found. Install the Everything command-line interface "
    "and put es.exe on PATH or set ES_PATH."
)

SORT_FLAGS = {
    "name": "name",
    "path": "path",
    "size": "size",
    "extension": "extension",
    "date_modified": "date-modified",
    "date_created": "date-created",
    "attributes": "attributes",
    "run_count": "run-count",
}

COLUMN_SWITCHES = [
    "-name",
    "-path-column",
    "-full-path-and-name",
    "-size",
    "-date-modified",
    "-date-created",
    "-attributes",
]
OUTPUT_SWITCHES = ["-tsv", "-no-header", "-size-format", "1", "-date-format", "1"]

# Diagnostics es.exe prints when a search simply matched nothing
NO_RESULT_MARKERS = ("not found", "no results")

ES_DATE_FORMATS = ("%Y-%m-%d %H:%M:%S", "%Y-%m-%d %H:%M", "%d/%m/%Y %H:%M", "%m/%d/%Y %I:%M %p")


# =============================================================================
# Command Line
# =============================================================================


def build_search_args(options: SearchOptions, query: str) -> list[str]:
    """Build es.exe arguments for a validated search.

    Everything is asked for ``offset + max_results`` rows; offset and
    limit are then applied to the parsed rows.

    Args:
        options: Validated search options
        query: Sanitized query

    Returns:
        Argument list (without the executable)
    """
    args = ["-n", str(options.offset + options.max_results)]

    if options.match_case:
        args.append("-case")
    if options.match_whole_word:
        args.append("-whole-word")
    if options.match_path:
        args.append("-match-path")

    if options.sort_by:
        args.extend(["-sort", SORT_FLAGS[options.sort_by]])
        if options.sort_order == "descending":
            args.append("-sort-descending")

    args.extend(COLUMN_SWITCHES)
    args.extend(OUTPUT_SWITCHES)

    if options.regex:
        args.extend(["-regex", query])
    else:
        args.append(query)

    return args


def build_file_info_args(path: str) -> list[str]:
    """Build es.exe arguments that look up exactly one path."""
    windows_path = path.replace("/", "\\")
    return [
        "-n",
        "1",
        *COLUMN_SWITCHES,
        "-date-accessed",
        *OUTPUT_SWITCHES,
        f'wfn:"{windows_path}"',
    ]


# =============================================================================
# Output Parsing
# =============================================================================


def parse_es_date(value: str) -> datetime | None:
    """Parse an Everything date column; unparseable values are None."""
    value = value.strip()
    if not value:
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        pass
    for fmt in ES_DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt)
        except ValueError:
            continue
    return None


def _parse_es_fields(fields: list[str]) -> dict[str, Any]:
    """Map positional TSV columns onto SearchResult fields."""

    def column(index: int) -> str:
        return fields[index].strip() if index < len(fields) else ""

    name = column(0)
    full_path = column(2) or name
    size = column(3)
    attributes = FileAttribute.parse(column(6))

    if attributes is not None:
        is_folder = FileAttribute.DIRECTORY in attributes
    else:
        is_folder = full_path.endswith(("\\", "/"))

    return {
        "name": name,
        "path": column(1),
        "full_path": full_path,
        "size": int(size) if size.isdigit() else None,
        "modified": parse_es_date(column(4)),
        "created": parse_es_date(column(5)),
        "attributes": int(attributes) if attributes is not None else None,
        "extension": None if is_folder else split_extension(name),
        "is_file": not is_folder,
        "is_folder": is_folder,
        "accessed": parse_es_date(column(7)),
    }


def parse_es_output(output: str) -> list[SearchResult]:
    """Parse es.exe TSV output into SearchResults.

    Examples:
        >>> rows = parse_es_output("a.txt\\tC:\\\\docs\\tC:\\\\docs\\\\a.txt\\t12\\n")
        >>> (rows[0].name, rows[0].size, rows[0].is_file)
        ('a.txt', 12, True)
    """
    results = []
    for line in output.splitlines():
        if not line.strip():
            continue
        fields = _parse_es_fields(line.split("\t"))
        fields.pop("accessed")
        results.append(SearchResult(**fields))
    return results


def parse_es_file_info(output: str) -> FileInfo | None:
    """Parse the first es.exe TSV row as FileInfo, or None if there is none."""
    for line in output.splitlines():
        if line.strip():
            return FileInfo(**_parse_es_fields(line.split("\t")))
    return None


def is_no_results(stderr: str) -> bool:
    """Check whether an es.exe diagnostic just means nothing matched."""
    lowered = stderr.lower()
    return any(marker in lowered for marker in NO_RESULT_MARKERS)


# =============================================================================
# Adapter
# =============================================================================


@dataclass
class EverythingAdapter:
    """Search adapter driving es.exe."""

    runner: CommandRunner
    es_path: str = "es.exe"
    platform: str = "windows"
    search_engine: str = SEARCH_ENGINE

    async def search(self, options: Mapping[str, Any] | SearchOptions) -> list[SearchResult]:
        """Search the Everything index.

        Raises:
            ValidationError: If options are invalid (before es.exe runs)
            EngineUnavailableError: If es.exe is missing
            EngineTimeoutError: If es.exe exceeds the timeout
            EngineFailureError: If es.exe reports an unexpected diagnostic
        """
        options = validate_search_options(options)
        query = sanitize_search_query(options.query)

        result = await self._run(build_search_args(options, query), "search", query)

        if result.stderr.strip():
            if is_no_results(result.stderr):
                logger.info("everything_no_results", extra={"query": query})
                return []
            raise EngineFailureError(
                f"es.exe error: {result.stderr.strip()}", operation="search", target=query
            )
        if result.returncode != 0:
            raise EngineFailureError(
                f"es.exe exited with code {result.returncode}: {result.stdout.strip()}",
                operation="search",
                target=query,
            )

        return paginate(parse_es_output(result.stdout), options.offset, options.max_results)

    async def get_file_info(self, path: str) -> FileInfo:
        """Look up one path in the Everything index.

        Raises:
            ValidationError: If the path is invalid
            TargetNotFoundError: If Everything has no entry for the path
        """
        sanitized = sanitize_path(path)
        result = await self._run(build_file_info_args(sanitized), "get_file_info", sanitized)

        if result.stderr.strip():
            raise EngineFailureError(
                f"es.exe error: {result.stderr.strip()}",
                operation="get_file_info",
                target=sanitized,
            )

        info = parse_es_file_info(result.stdout)
        if info is None:
            raise TargetNotFoundError(
                f"File not found: {path}", operation="get_file_info", target=sanitized
            )
        return info

    async def get_status(self) -> PlatformStatus:
        """Check that es.exe runs and report its version."""
        try:
            result = await self.runner.run([self.es_path, "-version"])
        except EngineUnavailableError:
            return self._status(False, ES_NOT_FOUND_MESSAGE)
        except EngineError as e:
            return self._status(False, f"Error checking Everything status: {e.message}")

        if result.returncode != 0:
            detail = (result.stderr or result.stdout).strip()
            return self._status(False, f"Error checking Everything status: {detail}")

        return self._status(
            True,
            "Everything command-line interface available. "
            "All match modifiers and sort fields are supported.",
            version=result.stdout.strip() or None,
        )

    async def _run(self, args: list[str], operation: str, target: str) -> CommandResult:
        try:
            return await self.runner.run([self.es_path, *args])
        except EngineUnavailableError as e:
            raise EngineUnavailableError(
                ES_NOT_FOUND_MESSAGE, operation=operation, target=target
            ) from e
        except EngineError as e:
            raise e.with_context(operation, target) from e

    def _status(self, available: bool, message: str, version: str | None = None) -> PlatformStatus:
        return PlatformStatus(
            platform=self.platform,
            search_engine=self.search_engine,
            available=available,
            version=version,
            message=message,
        )
