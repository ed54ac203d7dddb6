"""Tests for platform detection and dispatch."""

from unittest.mock import Mock

import pytest

from everysearch.config import Settings
from everysearch.dependencies import UnsupportedPlatformError
from everysearch.platforms.darwin import SpotlightAdapter
from everysearch.platforms.linux import LinuxAdapter
from everysearch.platforms.windows import EverythingAdapter
from everysearch.search import unified
from everysearch.search.unified import Platform, detect_platform, get_adapter
from everysearch.tests.conftest import FakeRunner


class TestDetectPlatform:
    """Tests for mapping sys.platform values."""

    @pytest.mark.parametrize(
        ("sys_platform", "expected"),
        [
            ("win32", Platform.WINDOWS),
            ("cygwin", Platform.WINDOWS),
            ("darwin", Platform.DARWIN),
            ("linux", Platform.LINUX),
        ],
    )
    def test_supported(self, sys_platform: str, expected: Platform) -> None:
        """Test each supported operating system."""
        assert detect_platform(sys_platform) is expected

    @pytest.mark.parametrize("sys_platform", ["freebsd13", "sunos5", "aix", "emscripten"])
    def test_unsupported(self, sys_platform: str) -> None:
        """Test that other systems raise UNSUPPORTED_PLATFORM."""
        with pytest.raises(UnsupportedPlatformError) as excinfo:
            detect_platform(sys_platform)

        assert excinfo.value.code == "UNSUPPORTED_PLATFORM"
        assert sys_platform in excinfo.value.message


class TestGetAdapter:
    """Tests for the adapter table."""

    @pytest.mark.parametrize(
        ("platform", "adapter_type"),
        [
            (Platform.WINDOWS, EverythingAdapter),
            (Platform.DARWIN, SpotlightAdapter),
            (Platform.LINUX, LinuxAdapter),
        ],
    )
    def test_routes_by_platform(
        self, fake_runner: FakeRunner, platform: Platform, adapter_type: type
    ) -> None:
        """Test that each platform gets its adapter."""
        adapter = get_adapter(platform, fake_runner)

        assert isinstance(adapter, adapter_type)
        assert adapter.runner is fake_runner

    def test_settings_flow_into_adapters(self, fake_runner: FakeRunner) -> None:
        """Test that configured paths reach the adapters."""
        settings = Settings(es_path="D:/bin/es.exe", search_root="/srv")

        windows = get_adapter(Platform.WINDOWS, fake_runner, settings)
        linux = get_adapter(Platform.LINUX, fake_runner, settings)

        assert windows.es_path == "D:/bin/es.exe"
        assert linux.search_root == "/srv"

    def test_detects_running_platform(
        self, fake_runner: FakeRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test the default platform comes from sys.platform."""
        monkeypatch.setattr(unified.sys, "platform", "darwin")

        assert isinstance(get_adapter(runner=fake_runner), SpotlightAdapter)


class TestDispatch:
    """Tests for the unified operations."""

    @pytest.mark.asyncio
    async def test_search_files_routes(self, fake_runner: FakeRunner) -> None:
        """Test that search_files uses the selected adapter."""
        fake_runner.respond(stdout="/Users/me/a.txt\n")

        results = await unified.search_files(
            {"query": "a"}, platform=Platform.DARWIN, runner=fake_runner
        )

        assert fake_runner.calls[0][0] == "mdfind"
        assert results[0].full_path == "/Users/me/a.txt"

    @pytest.mark.asyncio
    async def test_get_file_info_routes(self, fake_runner: FakeRunner) -> None:
        """Test that get_file_info uses the selected adapter."""
        fake_runner.respond(stdout="/etc/hosts\tregular file\t1\t0\t0\t0")

        info = await unified.get_file_info(
            "/etc/hosts", platform=Platform.LINUX, runner=fake_runner
        )

        assert fake_runner.calls[0][0] == "stat"
        assert info.full_path == "/etc/hosts"

    @pytest.mark.asyncio
    async def test_search_unsupported_platform(
        self, fake_runner: FakeRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that searching on an unsupported system raises."""
        monkeypatch.setattr(unified.sys, "platform", "sunos5")

        with pytest.raises(UnsupportedPlatformError):
            await unified.search_files({"query": "a"}, runner=fake_runner)

    @pytest.mark.asyncio
    async def test_status_unsupported_platform(
        self, fake_runner: FakeRunner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test that status reports an unsupported system instead of raising."""
        monkeypatch.setattr(unified.sys, "platform", "sunos5")

        status = await unified.get_status(runner=fake_runner)

        assert not status.available
        assert status.platform == "sunos5"
        assert status.search_engine == "none"

    @pytest.mark.asyncio
    async def test_status_swallows_adapter_errors(self, fake_runner: FakeRunner) -> None:
        """Test that an adapter failure becomes an unavailable status."""
        fake_runner.which = Mock(side_effect=RuntimeError("PATH lookup failed"))

        status = await unified.get_status(platform=Platform.LINUX, runner=fake_runner)

        assert not status.available
        assert "PATH lookup failed" in status.message

    @pytest.mark.asyncio
    async def test_status_reports_adapter(self, fake_runner: FakeRunner) -> None:
        """Test a normal status check."""
        fake_runner.available.add("rg")

        status = await unified.get_status(platform=Platform.LINUX, runner=fake_runner)

        assert status.available
        assert status.search_engine == "ripgrep"


class TestPlatformInfo:
    """Tests for the static backend description."""

    def test_windows_is_primary(self) -> None:
        """Test that Everything is the primary backend."""
        info = unified.get_platform_info(Platform.WINDOWS)

        assert info["isPrimary"] is True
        assert info["searchEngine"] == "Everything (es.exe CLI)"

    def test_others_are_fallbacks(self) -> None:
        """Test macOS and Linux descriptions."""
        assert unified.get_platform_info(Platform.DARWIN)["platform"] == "macOS"
        assert unified.get_platform_info(Platform.LINUX)["isPrimary"] is False
