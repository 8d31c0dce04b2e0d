import pytest

from ioc_platform.config.context import PlatformConfig


def test_reads_process_environment(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("IOC_CONTEXT_KEY", "from-env")
    assert PlatformConfig().get("IOC_CONTEXT_KEY") == "from-env"


def test_overrides_win(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("IOC_CONTEXT_KEY", "from-env")
    config = PlatformConfig(overrides={"IOC_CONTEXT_KEY": "override"})
    assert config.get("IOC_CONTEXT_KEY") == "override"


def test_default_and_contains():
    config = PlatformConfig(overrides={"PRESENT": "1"})
    assert config.get("IOC_SURELY_MISSING_KEY") == ""
    assert config.get("IOC_SURELY_MISSING_KEY", "d") == "d"
    assert "PRESENT" in config
    assert "IOC_SURELY_MISSING_KEY" not in config


@pytest.mark.parametrize("raw,expected", [("true", True), ("1", True), (" YES ", True), ("on", True), ("false", False), ("0", False), ("", False)])
def test_get_bool(raw: str, expected: bool):
    assert PlatformConfig(overrides={"FLAG": raw}).get_bool("FLAG") is expected


def test_get_bool_default():
    assert PlatformConfig().get_bool("IOC_SURELY_MISSING_KEY", default=True) is True


def test_snapshot_is_isolated_from_later_env_changes(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("IOC_LATE_KEY", raising=False)
    config = PlatformConfig()
    monkeypatch.setenv("IOC_LATE_KEY", "late")
    assert config.get("IOC_LATE_KEY") == ""
