from __future__ import annotations

from typing_trainer.notifications import LanguageChanged, Notification, NotificationBus


def test_delivery_follows_subscription_order() -> None:
    bus = NotificationBus()
    seen: list[str] = []
    bus.subscribe(lambda e: seen.append("first"))
    bus.subscribe(lambda e: seen.append("second"))

    bus.publish(LanguageChanged(language="Kazakh"))

    assert seen == ["first", "second"]


def test_unsubscribe_stops_delivery() -> None:
    bus = NotificationBus()
    seen: list[Notification] = []
    bus.subscribe(seen.append)
    bus.publish(LanguageChanged(language="English"))
    bus.unsubscribe(seen.append)
    bus.publish(LanguageChanged(language="Russian"))

    assert seen == [LanguageChanged(language="English")]


def test_listener_may_unsubscribe_itself_during_publish() -> None:
    bus = NotificationBus()
    seen: list[str] = []

    def once(event: Notification) -> None:
        seen.append("once")
        bus.unsubscribe(once)

    bus.subscribe(once)
    bus.subscribe(lambda e: seen.append("always"))
    bus.publish(LanguageChanged(language="English"))
    bus.publish(LanguageChanged(language="English"))

    assert seen == ["once", "always", "always"]
