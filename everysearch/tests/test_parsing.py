"""Tests for the shared output grammars."""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError as PydanticValidationError

from everysearch.platforms.parsing import (
    paginate,
    parse_epoch,
    parse_path_line,
    parse_path_lines,
    parse_stat_record,
    split_extension,
    split_path,
)
from everysearch.search.models import FileAttribute, SearchResult


class TestHelpers:
    """Tests for small path helpers."""

    def test_paginate_offset_then_limit(self) -> None:
        """Test that offset is applied before the limit."""
        items = list(range(10))

        assert paginate(items, 0, 3) == [0, 1, 2]
        assert paginate(items, 4, 3) == [4, 5, 6]
        assert paginate(items, 8, 5) == [8, 9]
        assert paginate(items, 20, 5) == []

    def test_split_extension(self) -> None:
        """Test extension extraction."""
        assert split_extension("report.pdf") == "pdf"
        assert split_extension("archive.tar.gz") == "gz"
        assert split_extension("README") is None
        assert split_extension("trailing.") is None

    def test_split_path(self) -> None:
        """Test splitting on the last separator."""
        assert split_path("/home/user/notes.md") == ("/home/user", "notes.md")
        assert split_path("C:\\Docs\\a.txt", "\\") == ("C:\\Docs", "a.txt")


class TestPathLines:
    """Tests for path-per-line output."""

    def test_parses_file(self) -> None:
        """Test a plain file path."""
        result = parse_path_line("/home/user/notes.md")

        assert result is not None
        assert result.name == "notes.md"
        assert result.path == "/home/user"
        assert result.full_path == "/home/user/notes.md"
        assert result.extension == "md"
        assert result.is_file and not result.is_folder

    def test_trailing_slash_is_folder(self) -> None:
        """Test that a trailing slash marks a folder."""
        result = parse_path_line("/home/user/projects/")

        assert result is not None
        assert result.is_folder and not result.is_file
        assert result.name == "projects"
        assert result.full_path == "/home/user/projects"
        assert result.extension is None

    def test_skips_blank_lines(self) -> None:
        """Test that blank lines produce no records."""
        output = "/a/one.txt\n\n   \n/a/two.txt\r\n"

        results = parse_path_lines(output)

        assert [r.name for r in results] == ["one.txt", "two.txt"]

    def test_empty_output(self) -> None:
        """Test that empty output parses to an empty list."""
        assert parse_path_lines("") == []

    def test_size_and_dates_absent(self) -> None:
        """Test that path-only engines leave metadata unset."""
        result = parse_path_line("/tmp/x.log")

        assert result is not None
        assert result.size is None
        assert result.modified is None
        assert result.attributes is None


class TestStatRecord:
    """Tests for tab-separated stat records."""

    def test_regular_file(self) -> None:
        """Test a full GNU-style record."""
        info = parse_stat_record("/etc/hosts\tregular file\t220\t1700000100\t1700000000\t0\n")

        assert info is not None
        assert info.name == "hosts"
        assert info.path == "/etc"
        assert info.size == 220
        assert info.is_file
        assert info.accessed == datetime.fromtimestamp(1700000100, tz=UTC)
        assert info.modified == datetime.fromtimestamp(1700000000, tz=UTC)
        assert info.created is None

    def test_directory(self) -> None:
        """Test that a BSD 'Directory' type marks a folder."""
        info = parse_stat_record("/Users/me/Reports\tDirectory\t96\t1\t2\t3")

        assert info is not None
        assert info.is_folder
        assert info.extension is None

    def test_missing_trailing_fields(self) -> None:
        """Test that short records leave the rest unset."""
        info = parse_stat_record("/tmp/a.txt\tregular file")

        assert info is not None
        assert info.size is None
        assert info.modified is None

    def test_no_record(self) -> None:
        """Test that empty or malformed output is None."""
        assert parse_stat_record("") is None
        assert parse_stat_record("just-one-field") is None

    @pytest.mark.parametrize("value", ["0", "-1", "", "abc", "-", "99999999999999999"])
    def test_epoch_not_reported(self, value: str) -> None:
        """Test values that mean the timestamp is unknown."""
        assert parse_epoch(value) is None

    def test_out_of_range_epoch(self) -> None:
        """Test that an unrepresentable timestamp leaves only that field unset."""
        info = parse_stat_record("/tmp/a.txt\tregular file\t1\t99999999999999999\t1700000000\t0")

        assert info is not None
        assert info.accessed is None
        assert info.modified == datetime.fromtimestamp(1700000000, tz=UTC)


class TestModels:
    """Tests for record invariants."""

    def test_file_and_folder_exclusive(self) -> None:
        """Test that a record cannot be both or neither."""
        with pytest.raises(PydanticValidationError):
            SearchResult(name="x", full_path="/x", is_file=True, is_folder=True)
        with pytest.raises(PydanticValidationError):
            SearchResult(name="x", full_path="/x", is_file=False, is_folder=False)

    def test_serializes_camel_case(self) -> None:
        """Test wire-format field names."""
        data = SearchResult(name="x", full_path="/x", is_file=True, is_folder=False).model_dump(
            by_alias=True
        )

        assert data["fullPath"] == "/x"
        assert data["isFile"] is True
        assert "full_path" not in data

    def test_attribute_letters(self) -> None:
        """Test attribute parsing in letter and numeric form."""
        assert FileAttribute.parse("D") == FileAttribute.DIRECTORY
        assert FileAttribute.parse("HS") == FileAttribute.HIDDEN | FileAttribute.SYSTEM
        assert FileAttribute.parse("32") == FileAttribute.ARCHIVE
        assert FileAttribute.parse("XYZ") is None
