"""Output grammars shared by the platform adapters.

Two plaintext grammars are understood here:

* newline-delimited absolute paths (mdfind, ripgrep, locate), where a
  trailing slash is the only folder marker;
* tab-separated ``stat`` records (GNU ``--printf`` and BSD ``-f``) used
  for file-info lookups.

The Everything TSV grammar lives with its adapter in ``windows.py``.
"""

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import TypeVar

from everysearch.search.models import FileInfo, SearchResult

T = TypeVar("T")


def paginate(items: Sequence[T], offset: int, limit: int) -> list[T]:
    """Apply offset first, then limit.

    Examples:
        >>> paginate(["a", "b", "c", "d"], offset=1, limit=2)
        ['b', 'c']
        >>> paginate(["a", "b"], offset=5, limit=2)
        []
    """
    return list(items[offset:][:limit])


def split_extension(name: str) -> str | None:
    """Return the text after the last dot of a name, if any.

    Examples:
        >>> split_extension("report.final.pdf")
        'pdf'
        >>> split_extension("Makefile") is None
        True
        >>> split_extension(".bashrc")
        'bashrc'
    """
    if "." not in name:
        return None
    return name.rsplit(".", 1)[-1] or None


def split_path(full_path: str, separator: str = "/") -> tuple[str, str]:
    """Split a path into (parent, name) on its last separator.

    Examples:
        >>> split_path("/Users/me/notes.txt")
        ('/Users/me', 'notes.txt')
        >>> split_path("notes.txt")
        ('', 'notes.txt')
    """
    parent, _, name = full_path.rpartition(separator)
    return parent, name


def parse_path_line(line: str) -> SearchResult | None:
    """Parse one line of path-per-line output into a SearchResult.

    Returns None for blank lines.
    """
    line = line.strip("\r\n")
    if not line.strip():
        return None

    is_folder = line.endswith("/")
    full_path = line.rstrip("/") or "/"
    parent, name = split_path(full_path)

    return SearchResult(
        name=name,
        path=parent,
        full_path=full_path,
        extension=None if is_folder else split_extension(name),
        is_file=not is_folder,
        is_folder=is_folder,
    )


def parse_path_lines(output: str) -> list[SearchResult]:
    """Parse newline-delimited paths, skipping blank lines."""
    return [result for line in output.splitlines() if (result := parse_path_line(line))]


def parse_epoch(value: str) -> datetime | None:
    """Convert an epoch-seconds field to an aware datetime.

    Zero, negative, non-numeric and out-of-range values mean "not reported".
    """
    try:
        seconds = int(value.strip())
    except ValueError:
        return None
    if seconds <= 0:
        return None
    try:
        return datetime.fromtimestamp(seconds, tz=UTC)
    except (OverflowError, OSError, ValueError):
        return None


def parse_stat_record(output: str) -> FileInfo | None:
    """Parse a tab-separated stat record.

    Fields are ``name, type, size, atime, mtime, birth``. Missing trailing
    fields are left unset. Returns None if the output has no record.

    Examples:
        >>> info = parse_stat_record("/tmp/a.txt\\tregular file\\t12\\t0\\t1700000000\\t0\\n")
        >>> (info.name, info.path, info.size, info.is_file)
        ('a.txt', '/tmp', 12, True)
    """
    lines = [line for line in output.splitlines() if line.strip()]
    if not lines:
        return None

    fields = lines[0].split("\t")
    if len(fields) < 2:
        return None

    full_path = fields[0].rstrip("/") or "/"
    is_folder = fields[1].strip().lower() == "directory"
    parent, name = split_path(full_path)

    def field_at(index: int) -> str:
        return fields[index] if index < len(fields) else ""

    size = field_at(2).strip()

    return FileInfo(
        name=name,
        path=parent,
        full_path=full_path,
        size=int(size) if size.isdigit() else None,
        accessed=parse_epoch(field_at(3)),
        modified=parse_epoch(field_at(4)),
        created=parse_epoch(field_at(5)),
        extension=None if is_folder else split_extension(name),
        is_file=not is_folder,
        is_folder=is_folder,
    )
