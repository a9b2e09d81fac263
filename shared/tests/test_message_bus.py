"""Message bus dispatch and the Django unit of work."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from shared.application.message_bus import MessageBus
from shared.application.uow import DjangoUnitOfWork
from shared.domain.base import Aggregate, DomainEvent
from shared.domain.exceptions import ConflictError


@dataclass
class Ping:
    value: int


@dataclass(kw_only=True)
class Pinged(DomainEvent):
    event_kind = "pinged"


@dataclass(kw_only=True, eq=False)
class Counter(Aggregate):
    hits: int = 0

    def hit(self):
        self.hits += 1
        self.add_event(Pinged(aggregate_id=self.id))


def test_command_has_exactly_one_handler():
    bus = MessageBus()
    bus.register_command_handler(Ping, lambda command: command.value * 2)

    assert bus.handle_command(Ping(21)) == 42
    with pytest.raises(ValueError):
        bus.register_command_handler(Ping, lambda command: None)


def test_unregistered_command_is_an_error():
    with pytest.raises(ValueError):
        MessageBus().handle_command(Ping(1))


def test_domain_errors_propagate_to_the_caller():
    bus = MessageBus()

    def refuse(command):
        raise ConflictError("taken", conflicting_booking_ids=["a"])

    bus.register_command_handler(Ping, refuse)

    with pytest.raises(ConflictError):
        bus.handle_command(Ping(1))


def test_failing_subscriber_does_not_stop_the_others():
    bus = MessageBus()
    seen = []

    def broken(event):
        raise RuntimeError("mail server down")

    bus.register_event_handler(Pinged, broken)
    bus.register_event_handler(Pinged, seen.append)
    event = Pinged()

    bus.publish_events([event])

    assert seen == [event]


@pytest.mark.django_db
def test_events_are_published_only_after_commit(django_capture_on_commit_callbacks):
    bus = MessageBus()
    seen = []
    bus.register_event_handler(Pinged, seen.append)
    counter = Counter()

    with django_capture_on_commit_callbacks(execute=True):
        with DjangoUnitOfWork(bus=bus) as uow:
            counter.hit()
            uow.collect_events(counter)
            assert seen == []

    assert [event.aggregate_id for event in seen] == [counter.id]
    assert counter.events == []


@pytest.mark.django_db
def test_rolled_back_work_publishes_nothing(django_capture_on_commit_callbacks):
    bus = MessageBus()
    seen = []
    bus.register_event_handler(Pinged, seen.append)
    counter = Counter()

    with django_capture_on_commit_callbacks(execute=True) as callbacks:
        with pytest.raises(ConflictError):
            with DjangoUnitOfWork(bus=bus) as uow:
                counter.hit()
                uow.collect_events(counter)
                raise ConflictError("taken")

    assert callbacks == []
    assert seen == []
