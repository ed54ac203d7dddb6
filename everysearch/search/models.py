"""Pydantic models for search options and results.

This module defines the canonical record shapes returned by every
platform adapter. Fields are snake_case in Python and camelCase on the
wire, matching the tool schemas exposed by the front-end.
"""

from datetime import datetime
from enum import IntFlag
from typing import Literal, Self, get_args

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

SortField = Literal[
    "name",
    "path",
    "size",
    "extension",
    "date_modified",
    "date_created",
    "attributes",
    "run_count",
]
SortOrder = Literal["ascending", "descending"]

SORT_FIELDS: tuple[str, ...] = get_args(SortField)
SORT_ORDERS: tuple[str, ...] = get_args(SortOrder)


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class FileAttribute(IntFlag):
    """Windows file attribute bits as reported by Everything."""

    READONLY = 0x1
    HIDDEN = 0x2
    SYSTEM = 0x4
    DIRECTORY = 0x10
    ARCHIVE = 0x20
    DEVICE = 0x40
    NORMAL = 0x80
    TEMPORARY = 0x100
    SPARSE_FILE = 0x200
    REPARSE_POINT = 0x400
    COMPRESSED = 0x800
    OFFLINE = 0x1000
    NOT_CONTENT_INDEXED = 0x2000
    ENCRYPTED = 0x4000

    @classmethod
    def parse(cls, raw: str) -> "FileAttribute | None":
        """Parse an attribute column in numeric or letter form.

        Examples:
            >>> FileAttribute.parse("16")
            <FileAttribute.DIRECTORY: 16>
            >>> FileAttribute.parse("RA") == FileAttribute.READONLY | FileAttribute.ARCHIVE
            True
            >>> FileAttribute.parse("") is None
            True
        """
        raw = raw.strip()
        if not raw:
            return None
        if raw.isdigit():
            return cls(int(raw))
        flags = cls(0)
        for letter in raw.upper():
            flag = _ATTRIBUTE_LETTERS.get(letter)
            if flag is None:
                return None
            flags |= flag
        return flags


_ATTRIBUTE_LETTERS = {
    "R": FileAttribute.READONLY,
    "H": FileAttribute.HIDDEN,
    "S": FileAttribute.SYSTEM,
    "D": FileAttribute.DIRECTORY,
    "A": FileAttribute.ARCHIVE,
    "N": FileAttribute.NORMAL,
    "T": FileAttribute.TEMPORARY,
    "P": FileAttribute.SPARSE_FILE,
    "L": FileAttribute.REPARSE_POINT,
    "C": FileAttribute.COMPRESSED,
    "O": FileAttribute.OFFLINE,
    "I": FileAttribute.NOT_CONTENT_INDEXED,
    "E": FileAttribute.ENCRYPTED,
}


class SearchOptions(CamelModel):
    """Validated search request.

    Instances are produced by ``validate_search_options`` so that limit
    and offset are always within bounds by the time an adapter sees them.

    Attributes:
        query: Trimmed search query
        max_results: Number of results to return after the offset
        offset: Number of parsed results to skip
        sort_by: Sort field (Everything only)
        sort_order: Sort direction (Everything only)
        match_path: Match against the full path instead of the name
        match_case: Case-sensitive matching
        match_whole_word: Whole-word matching
        regex: Treat the query as a regular expression
    """

    query: str
    max_results: int = 100
    offset: int = 0
    sort_by: SortField | None = None
    sort_order: SortOrder = "ascending"
    match_path: bool = False
    match_case: bool = False
    match_whole_word: bool = False
    regex: bool = False


class SearchResult(CamelModel):
    """A single file or folder returned by a search engine.

    Exactly one of ``is_file`` and ``is_folder`` is true.

    Attributes:
        name: Last path segment
        path: Parent directory
        full_path: Absolute path as reported by the engine
        size: Size in bytes (if reported)
        modified: Modification timestamp (if reported)
        created: Creation timestamp (if reported)
        attributes: Windows attribute bitmask (if reported)
        extension: Text after the last dot of a file name
        is_file: True for files
        is_folder: True for folders
    """

    name: str = Field(..., description="File or folder name")
    path: str = Field(default="", description="Parent directory")
    full_path: str = Field(..., description="Absolute path")
    size: int | None = Field(default=None, ge=0, description="Size in bytes")
    modified: datetime | None = Field(default=None, description="Modification timestamp")
    created: datetime | None = Field(default=None, description="Creation timestamp")
    attributes: int | None = Field(default=None, ge=0, description="Attribute bitmask")
    extension: str | None = Field(default=None, description="File extension")
    is_file: bool = Field(..., description="Entry is a file")
    is_folder: bool = Field(..., description="Entry is a folder")

    @model_validator(mode="after")
    def check_kind(self) -> Self:
        """Reject records that are both or neither a file and a folder."""
        if self.is_file == self.is_folder:
            raise ValueError("exactly one of is_file and is_folder must be true")
        return self


class FileInfo(SearchResult):
    """Metadata for a single path, as returned by a file-info lookup."""

    accessed: datetime | None = Field(default=None, description="Last access timestamp")


class PlatformStatus(CamelModel):
    """Availability of the search engine on the running platform.

    Built fresh on every status check. The message describes which
    match modifiers and sort options the engine supports.
    """

    platform: str
    search_engine: str
    available: bool
    version: str | None = None
    message: str = ""
