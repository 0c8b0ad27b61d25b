"""Tests for quickmarks.modules.core.services.config (ConfigService + ModuleConfigProxy)."""

import pytest

from quickmarks.framework.event_bus import EventBus
from quickmarks.modules.core.services.config import (
    ConfigAccessError,
    ConfigService,
    ModuleConfigProxy,
)


@pytest.fixture
def manifest():
    return {
        "core": {
            "config": {
                "log_level": {"type": "string", "default": "WARN", "public": True},
            }
        },
        "bookmarks": {
            "config": {
                "track_edits": {"type": "boolean", "default": False},
                "notice_timeout": {"type": "int", "default": 4},
                "label_format": {"type": "string", "default": "[{slot}]"},
            }
        },
    }


@pytest.fixture
def config_svc(manifest, monkeypatch):
    monkeypatch.delenv("QUICKMARKS_SET_CONFIG", raising=False)
    svc = ConfigService()
    svc.set_manifest(manifest)
    return svc


class TestDefaults:
    def test_get_returns_default(self, config_svc):
        assert config_svc.get("bookmarks.notice_timeout") == 4
        assert config_svc.get("bookmarks.track_edits") is False

    def test_get_returns_none_for_unknown(self, config_svc):
        assert config_svc.get("nonexistent.key") is None

    def test_register_default(self, config_svc):
        config_svc.register_default("custom.key", 42)
        assert config_svc.get("custom.key") == 42


class TestSetGet:
    def test_set_and_get(self, config_svc):
        config_svc.set("bookmarks.track_edits", True)
        assert config_svc.get("bookmarks.track_edits") is True

    def test_remove_restores_default(self, config_svc):
        config_svc.set("bookmarks.notice_timeout", 10)
        config_svc.remove("bookmarks.notice_timeout")
        assert config_svc.get("bookmarks.notice_timeout") == 4

    def test_get_dict(self, config_svc):
        config_svc.set("bookmarks.notice_timeout", 9)
        d = config_svc.get_dict()
        assert d["bookmarks.notice_timeout"] == 9
        assert d["core.log_level"] == "WARN"

    def test_set_emits_change(self, config_svc):
        bus = EventBus()
        changes = []
        bus.subscribe("config:changed", lambda **kw: changes.append(kw))
        config_svc.set_events(bus)

        config_svc.set("bookmarks.track_edits", True)
        config_svc.set("bookmarks.track_edits", True)  # unchanged, no event

        assert changes == [{"key": "bookmarks.track_edits",
                            "value": True, "old_value": False}]


class TestAccessControl:
    def test_read_own_key_ok(self, config_svc):
        assert config_svc.get("bookmarks.track_edits", caller_module="bookmarks") is False

    def test_read_public_key_ok(self, config_svc):
        assert config_svc.get("core.log_level", caller_module="bookmarks") == "WARN"

    def test_read_private_key_denied(self, config_svc):
        with pytest.raises(ConfigAccessError, match="cannot read private"):
            config_svc.get("bookmarks.track_edits", caller_module="core")

    def test_write_other_module_denied(self, config_svc):
        with pytest.raises(ConfigAccessError, match="cannot write"):
            config_svc.set("core.log_level", "DEBUG", caller_module="bookmarks")


class TestEnvOverrides:
    def test_overrides_are_coerced(self, manifest, monkeypatch):
        monkeypatch.setenv(
            "QUICKMARKS_SET_CONFIG",
            "bookmarks.track_edits=yes, bookmarks.notice_timeout=7,broken")
        svc = ConfigService()
        svc.set_manifest(manifest)
        assert svc.get("bookmarks.track_edits") is True
        assert svc.get("bookmarks.notice_timeout") == 7

    def test_bad_int_kept_as_string(self, config_svc):
        assert config_svc.coerce_value("bookmarks.notice_timeout", "soon") == "soon"


class TestProxy:
    def test_proxy_prefixes_module(self, config_svc):
        cfg = config_svc.proxy_for("bookmarks")
        assert isinstance(cfg, ModuleConfigProxy)
        cfg.set("label_format", "#{slot}")
        assert cfg.get("label_format") == "#{slot}"
        assert config_svc.get("bookmarks.label_format") == "#{slot}"

    def test_proxy_default_for_unset(self, config_svc):
        cfg = config_svc.proxy_for("bookmarks")
        assert cfg.get("missing", "fallback") == "fallback"

    def test_proxy_cross_module_public_read(self, config_svc):
        assert config_svc.proxy_for("bookmarks").get("core.log_level") == "WARN"

    def test_proxy_remove(self, config_svc):
        cfg = config_svc.proxy_for("bookmarks")
        cfg.set("notice_timeout", 1)
        cfg.remove("notice_timeout")
        assert cfg.get("notice_timeout") == 4
