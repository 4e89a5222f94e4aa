"""Tests for the blockcache CLI."""

from __future__ import annotations

from typing import Any

import orjson
import pytest
from typer.testing import CliRunner

from blockcache.cache.fingerprint import fingerprint
from blockcache.cache.keys import CacheKeys
from blockcache.cli import app
from blockcache.core.request import RenderRequest
from blockcache.events.schemas import PublicationEventType, PublicationStateChange

runner = CliRunner()


@pytest.fixture(autouse=True)
def logging_calls(monkeypatch: pytest.MonkeyPatch) -> list[dict[str, Any]]:
    """Record configure_logging calls instead of touching the root logger."""
    calls: list[dict[str, Any]] = []
    monkeypatch.setattr("blockcache.cli.configure_logging", lambda **kwargs: calls.append(kwargs))
    return calls


class TestLoggingSetup:
    """Test logging configuration from settings."""

    def test_configures_logging_from_environment(
        self, monkeypatch: pytest.MonkeyPatch, logging_calls: list[dict[str, Any]]
    ) -> None:
        """Every command configures logging from BLOCKCACHE_LOG_* settings."""
        monkeypatch.setenv("BLOCKCACHE_LOG_LEVEL", "debug")
        monkeypatch.setenv("BLOCKCACHE_LOG_JSON", "false")

        result = runner.invoke(app, ["fingerprint", "core/paragraph"])

        assert result.exit_code == 0
        assert logging_calls == [{"json_format": False, "level": "DEBUG"}]


class TestFingerprintCommand:
    """Test `blockcache fingerprint`."""

    def test_prints_key(self) -> None:
        """The printed key matches fingerprint()."""
        result = runner.invoke(
            app, ["fingerprint", "core/heading", "--attrs", '{"level": 2, "align": "left"}']
        )

        assert result.exit_code == 0
        expected = fingerprint(RenderRequest("core/heading", {"align": "left", "level": 2}))
        assert result.stdout.strip() == expected

    def test_json_output(self) -> None:
        """--json prints key and prefix group."""
        result = runner.invoke(app, ["fingerprint", "core/html", "--content", "<b>", "--json"])

        assert result.exit_code == 0
        data = orjson.loads(result.stdout)
        assert data["prefix_group"] == CacheKeys.prefix_group("core/html")
        assert data["key"] == fingerprint(RenderRequest("core/html", content="<b>"))

    def test_invalid_json(self) -> None:
        """Malformed --attrs exits with code 1."""
        result = runner.invoke(app, ["fingerprint", "core/p", "--attrs", "{nope"])
        assert result.exit_code == 1

    def test_attrs_must_be_object(self) -> None:
        """--attrs must decode to an object."""
        result = runner.invoke(app, ["fingerprint", "core/p", "--attrs", "[1, 2]"])
        assert result.exit_code == 1


class TestSettingsCommand:
    """Test `blockcache settings`."""

    def test_prints_settings(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Environment overrides are reflected."""
        monkeypatch.setenv("BLOCKCACHE_DEFAULT_TTL", "42")

        result = runner.invoke(app, ["settings"])

        assert result.exit_code == 0
        data = orjson.loads(result.stdout)
        assert data["default_ttl"] == 42.0
        assert data["store_backend"] == "memory"


class TestPublishCommand:
    """Test `blockcache publish`."""

    @pytest.fixture
    def published(self, monkeypatch: pytest.MonkeyPatch) -> list[tuple[PublicationStateChange, str]]:
        sent: list[tuple[PublicationStateChange, str]] = []

        async def fake_publish(event: PublicationStateChange, redis_url: str, channel: str) -> None:
            sent.append((event, redis_url))

        monkeypatch.setattr("blockcache.cli.publish_cmd._publish", fake_publish)
        return sent

    def test_publish_with_block_types(
        self, published: list[tuple[PublicationStateChange, str]]
    ) -> None:
        """Repeated --block-type options become the affected set."""
        result = runner.invoke(
            app,
            [
                "publish",
                "published",
                "post-42",
                "-b",
                "core/latest-posts",
                "-b",
                "core/query",
                "--redis-url",
                "redis://cache:6379/1",
            ],
        )

        assert result.exit_code == 0
        event, url = published[0]
        assert event.event_type == PublicationEventType.PUBLISHED
        assert event.content_id == "post-42"
        assert event.affected_block_types == frozenset({"core/latest-posts", "core/query"})
        assert url == "redis://cache:6379/1"

    def test_publish_without_block_types_invalidates_all(
        self, published: list[tuple[PublicationStateChange, str]]
    ) -> None:
        """No --block-type means every render is affected."""
        result = runner.invoke(app, ["publish", "unpublished", "page-7"])

        assert result.exit_code == 0
        event, _ = published[0]
        assert event.invalidates_everything

    def test_unknown_event_type_rejected(
        self, published: list[tuple[PublicationStateChange, str]]
    ) -> None:
        """Only published and unpublished are accepted."""
        result = runner.invoke(app, ["publish", "archived", "page-7"])
        assert result.exit_code != 0
        assert published == []
