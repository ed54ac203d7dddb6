"""Input validation and sanitization for search engine command lines.

Validation is an accept/reject gate: it raises ``ValidationError`` with a
stable code and never rewrites its input. Sanitization rewrites a string
so it can be placed on a command line: shell metacharacters, traversal
sequences and home-directory shorthand are removed and separators are
normalized.

Adapters always validate first, then sanitize, and only then build the
argument vector for the external tool.
"""

import re
from collections.abc import Mapping
from typing import Any

from everysearch.dependencies import ValidationError
from everysearch.search.models import SORT_FIELDS, SORT_ORDERS, SearchOptions

SHELL_METACHARACTERS = re.compile(r"[;&|$`()]")
SLASH_RUN = re.compile(r"/{2,}")


class SecurityLimits:
    """Bounds applied to caller-supplied input."""

    MAX_QUERY_LENGTH = 1000
    MAX_PATH_LENGTH = 4096
    DEFAULT_MAX_RESULTS = 100
    MAX_RESULTS = 1000
    MAX_OFFSET = 100000


# =============================================================================
# Sanitization
# =============================================================================


def _sanitize_once(arg: str) -> str:
    # Traversal and tilde removal run before separators are normalized
    arg = SHELL_METACHARACTERS.sub("", arg)
    arg = arg.replace("..", "")
    arg = arg.replace("\\", "/")
    arg = arg.replace("~", "")
    arg = SLASH_RUN.sub("/", arg)
    arg = arg.removeprefix("/")
    return arg.strip()


def sanitize_argument(arg: Any) -> str:
    """Rewrite a string so it is safe to place on a command line.

    Applies, in order: removal of ``; & | $ ` ( )``, removal of every
    ``..``, backslash to forward slash, removal of ``~``, collapse of
    slash runs, removal of one leading slash, and trimming. The pass is
    repeated until the string stops changing, so the result is stable
    under a second application.

    Args:
        arg: Raw string from the caller

    Returns:
        Sanitized string

    Raises:
        ValidationError: INVALID_TYPE if arg is not a string

    Examples:
        >>> sanitize_argument("test; rm -rf /")
        'test rm -rf /'
        >>> sanitize_argument("..\\\\..\\\\windows")
        'windows'
        >>> sanitize_argument("C:\\\\Users\\\\file")
        'C:/Users/file'
    """
    if not isinstance(arg, str):
        raise ValidationError("Argument must be a string", "INVALID_TYPE")

    previous = None
    while arg != previous:
        previous, arg = arg, _sanitize_once(arg)
    return arg


# =============================================================================
# Validation
# =============================================================================


def validate_search_query(query: Any) -> None:
    """Reject empty, oversized or non-string queries.

    Raises:
        ValidationError: INVALID_TYPE, EMPTY_QUERY or QUERY_TOO_LONG
    """
    if not isinstance(query, str):
        raise ValidationError("Query must be a string", "INVALID_TYPE")

    trimmed = query.strip()
    if not trimmed:
        raise ValidationError("Query cannot be empty", "EMPTY_QUERY")

    if len(trimmed) > SecurityLimits.MAX_QUERY_LENGTH:
        raise ValidationError(
            f"Query exceeds maximum length of {SecurityLimits.MAX_QUERY_LENGTH} characters",
            "QUERY_TOO_LONG",
        )


def validate_path(path: Any) -> None:
    """Reject paths that are not already clean identifiers.

    Unlike sanitization this never rewrites the path: a file-info lookup
    treats the path as an identifier, so anything suspicious fails.

    Raises:
        ValidationError: INVALID_TYPE, EMPTY_PATH, PATH_TOO_LONG,
            PATH_TRAVERSAL, HOME_PATH_NOT_ALLOWED or INVALID_CHARACTERS
    """
    if not isinstance(path, str):
        raise ValidationError("Path must be a string", "INVALID_TYPE")

    trimmed = path.strip()
    if not trimmed:
        raise ValidationError("Path cannot be empty", "EMPTY_PATH")

    if len(trimmed) > SecurityLimits.MAX_PATH_LENGTH:
        raise ValidationError(
            f"Path exceeds maximum length of {SecurityLimits.MAX_PATH_LENGTH} characters",
            "PATH_TOO_LONG",
        )

    if ".." in trimmed:
        raise ValidationError("Path traversal detected", "PATH_TRAVERSAL")

    if trimmed.startswith("~"):
        raise ValidationError("Home directory paths are not allowed", "HOME_PATH_NOT_ALLOWED")

    if SHELL_METACHARACTERS.search(trimmed):
        raise ValidationError("Invalid characters in path", "INVALID_CHARACTERS")


def _option(options: Mapping[str, Any], name: str, default: Any = None) -> Any:
    """Look up an option by its snake_case or camelCase key."""
    if name in options:
        return options[name]
    head, *rest = name.split("_")
    camel = head + "".join(part.title() for part in rest)
    return options.get(camel, default)


def _bounded_int(value: Any, low: int, high: int) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and low <= value <= high


def _flag(options: Mapping[str, Any], name: str) -> bool:
    """Read a match modifier, which must be a real boolean when present."""
    value = _option(options, name)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise ValidationError(f"{name} must be a boolean", "INVALID_TYPE")
    return value


def validate_search_options(options: Mapping[str, Any] | SearchOptions) -> SearchOptions:
    """Validate raw search options and apply defaults.

    Args:
        options: Mapping with snake_case or camelCase keys, or SearchOptions

    Returns:
        SearchOptions with a trimmed query and bounded limit and offset

    Raises:
        ValidationError: On any invalid option (the query is checked first).
            Match modifiers that are not booleans raise INVALID_TYPE.

    Examples:
        >>> validate_search_options({"query": "test"}).max_results
        100
    """
    if isinstance(options, SearchOptions):
        options = options.model_dump()

    query = _option(options, "query")
    if query is None:
        query = ""
    validate_search_query(query)
    query = query.strip()

    max_results = _option(options, "max_results")
    if max_results is None:
        max_results = SecurityLimits.DEFAULT_MAX_RESULTS
    if not _bounded_int(max_results, 1, SecurityLimits.MAX_RESULTS):
        raise ValidationError(
            f"maxResults must be between 1 and {SecurityLimits.MAX_RESULTS}",
            "INVALID_MAX_RESULTS",
        )

    offset = _option(options, "offset")
    if offset is None:
        offset = 0
    if not _bounded_int(offset, 0, SecurityLimits.MAX_OFFSET):
        raise ValidationError(
            f"offset must be between 0 and {SecurityLimits.MAX_OFFSET}",
            "INVALID_OFFSET",
        )

    sort_by = _option(options, "sort_by")
    if sort_by is not None and sort_by not in SORT_FIELDS:
        raise ValidationError(
            f"sortBy must be one of: {', '.join(SORT_FIELDS)}", "INVALID_SORT"
        )

    sort_order = _option(options, "sort_order") or "ascending"
    if sort_order not in SORT_ORDERS:
        raise ValidationError(
            f"sortOrder must be one of: {', '.join(SORT_ORDERS)}", "INVALID_SORT"
        )

    return SearchOptions(
        query=query,
        max_results=max_results,
        offset=offset,
        sort_by=sort_by,
        sort_order=sort_order,
        match_path=_flag(options, "match_path"),
        match_case=_flag(options, "match_case"),
        match_whole_word=_flag(options, "match_whole_word"),
        regex=_flag(options, "regex"),
    )


# =============================================================================
# Adapter helpers
# =============================================================================


def sanitize_search_query(query: Any) -> str:
    """Validate and sanitize a search query for an argument vector.

    Raises:
        ValidationError: If the query is invalid or nothing is left of it
            after sanitization
    """
    validate_search_query(query)
    sanitized = sanitize_argument(query)
    if not sanitized:
        raise ValidationError(
            "Query is empty after removing disallowed characters", "EMPTY_QUERY"
        )
    return sanitized


def sanitize_path(path: Any) -> str:
    """Validate and sanitize a path for a file-info lookup.

    The sanitizer strips a leading slash so fragments cannot become
    absolute paths. A file-info lookup passes the whole path, so an
    absolute POSIX path gets its root back and a UNC path (``\\\\server``
    or ``//server``) gets its double-separator prefix back.

    Examples:
        >>> sanitize_path("/Users/test/file.txt")
        '/Users/test/file.txt'
        >>> sanitize_path("C:\\\\Users\\\\test")
        'C:/Users/test'
        >>> sanitize_path("\\\\\\\\server\\\\share\\\\f.txt")
        '//server/share/f.txt'
    """
    validate_path(path)
    sanitized = sanitize_argument(path)
    raw = path.strip().replace("\\", "/")
    if raw.startswith("//"):
        sanitized = f"//{sanitized}"
    elif raw.startswith("/"):
        sanitized = f"/{sanitized}"
    return sanitized
