"""Notifier selection tests."""

from unittest.mock import MagicMock

from mindful import dependencies
from mindful.notifications.notifier import LoggingNotifier, PubSubNotifier


def test_logging_notifier_without_redis(monkeypatch):
    monkeypatch.setattr(dependencies, "get_redis", lambda: None)
    assert isinstance(dependencies.get_notifier(), LoggingNotifier)


def test_pubsub_notifier_with_redis(monkeypatch):
    client = MagicMock()
    monkeypatch.setattr(dependencies, "get_redis", lambda: client)

    notifier = dependencies.get_notifier()

    assert isinstance(notifier, PubSubNotifier)
    assert notifier.redis is client
