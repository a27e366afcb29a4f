"""Tests for core.settings and core.logging_config."""

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from core.logging_config import setup_logging
from core.settings import get_default_settings, get_setting, load_settings, reload_settings


@pytest.fixture(autouse=True)
def _fresh_settings() -> Iterator[None]:
    reload_settings()
    yield
    reload_settings()


def test_defaults_without_file(tmp_path: Path) -> None:
    settings = load_settings(tmp_path)
    assert get_setting(settings, "batch.id_resolution_delay") == 1.0
    assert get_setting(settings, "editor.trigger_char") == "/"


def test_file_values_merge_over_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.yaml").write_text(
        "api:\n  base_url: https://hooks.example/webhook\nsingle:\n  confirm_retries: 2\n",
        encoding="utf-8",
    )
    settings = load_settings(tmp_path)
    assert get_setting(settings, "api.base_url") == "https://hooks.example/webhook"
    assert get_setting(settings, "api.timeout") == 30.0
    assert get_setting(settings, "single.confirm_retries") == 2


def test_unreadable_file_uses_defaults(tmp_path: Path) -> None:
    (tmp_path / "settings.yaml").write_text("api: [\n", encoding="utf-8")
    assert load_settings(tmp_path) == get_default_settings()


def test_cached_until_reload(tmp_path: Path) -> None:
    first = load_settings(tmp_path)
    (tmp_path / "settings.yaml").write_text("editor:\n  trigger_char: '#'\n", encoding="utf-8")
    assert load_settings(tmp_path) is first
    reload_settings()
    assert get_setting(load_settings(tmp_path), "editor.trigger_char") == "#"


def test_get_setting_default() -> None:
    settings = get_default_settings()
    assert get_setting(settings, "batch.nope", 7) == 7
    assert get_setting(settings, "batch.id_resolution_delay.deeper", "x") == "x"


def test_defaults_are_copies() -> None:
    get_default_settings()["api"]["timeout"] = 1
    assert get_default_settings()["api"]["timeout"] == 30.0


def test_setup_logging_writes_file(tmp_path: Path) -> None:
    root = logging.getLogger()
    saved = root.handlers[:], root.level
    try:
        setup_logging(tmp_path, {"logging": {"file": "logs/w.log", "level": "debug"}})
        assert root.level == logging.DEBUG
        assert len(root.handlers) == 1
        assert logging.getLogger("httpx").level == logging.WARNING
        logging.getLogger("onboarding.test").info("hello")
        root.handlers[0].flush()
        assert "hello" in (tmp_path / "logs" / "w.log").read_text(encoding="utf-8")
    finally:
        for h in root.handlers[:]:
            root.removeHandler(h)
            h.close()
        for h in saved[0]:
            root.addHandler(h)
        root.setLevel(saved[1])


def test_env_overrides_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "settings.yaml").write_text("api:\n  base_url: https://from-file\n", encoding="utf-8")
    monkeypatch.setenv("AGENT_WIZARD_BASE_URL", "https://from-env")
    assert get_setting(load_settings(tmp_path), "api.base_url") == "https://from-env"


def test_non_mapping_file_ignored(tmp_path: Path) -> None:
    (tmp_path / "settings.yaml").write_text("- a\n- b\n", encoding="utf-8")
    assert load_settings(tmp_path) == get_default_settings()
