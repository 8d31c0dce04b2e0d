from __future__ import annotations

import pytest

from ioc_platform.config.container import Container, build_container
from ioc_platform.config.context import PlatformConfig
from ioc_platform.events.event_bus import EventBus, EventSubscriber
from ioc_platform.injector.errors import ResolutionRuntimeError, UnresolvableDependency
from ioc_platform.services.logger.memory_logger import MemoryLogger

calls: list[tuple[str, object]] = []


@pytest.fixture(autouse=True)
def _clear_calls():
    calls.clear()
    yield
    calls.clear()


class Clock:
    def now(self) -> str:
        return "12:00"


class AuditHandler:
    def __init__(self, clock: Clock) -> None:
        self.clock = clock

    def on_login(self, clock: Clock) -> None:
        calls.append(("login", clock.now()))

    def on_logout(self, user: str = "anonymous") -> None:
        calls.append(("logout", user))

    def record(self, *payload: object) -> None:
        calls.append(("record", payload))


class UserSubscriber(EventSubscriber):
    def get_events(self) -> dict[str, str | list[str]]:
        return {"user.login": "on_login", "user.logout": ["on_logout", "also_logout"]}

    def on_login(self) -> None:
        calls.append(("sub.login", None))

    def on_logout(self) -> None:
        calls.append(("sub.logout", None))

    def also_logout(self) -> None:
        calls.append(("sub.also_logout", None))


@pytest.fixture
def bus() -> EventBus:
    return EventBus()


def test_emit_calls_listener_with_args(bus: EventBus):
    bus.on("saved", lambda name: calls.append(("saved", name)))
    bus.emit("saved", "report.pdf")
    assert calls == [("saved", "report.pdf")]


def test_emit_without_listeners_is_noop(bus: EventBus):
    bus.emit("nobody.listens")
    assert calls == []


def test_priority_order_then_registration_order(bus: EventBus):
    bus.on("e", lambda: calls.append(("p5", 1)), priority=5)
    bus.on("e", lambda: calls.append(("p0-a", 1)))
    bus.on("e", lambda: calls.append(("p-1", 1)), priority=-1)
    bus.on("e", lambda: calls.append(("p0-b", 1)))
    bus.emit("e")
    assert [c[0] for c in calls] == ["p-1", "p0-a", "p0-b", "p5"]


def test_once_listener_runs_once(bus: EventBus):
    bus.once("e", lambda: calls.append(("once", 1)))
    bus.on("e", lambda: calls.append(("always", 1)))
    bus.emit("e")
    bus.emit("e")
    assert calls == [("once", 1), ("always", 1), ("always", 1)]


def test_once_only_listener_leaves_no_event_behind(bus: EventBus):
    bus.once("e", lambda: None)
    bus.emit("e")
    assert not bus.has_listeners("e")
    assert bus.listeners() == {}


def test_listener_without_args_is_resolved(bus: EventBus):
    bus.on("tick", lambda clock: calls.append(("tick", clock)))
    with pytest.raises(UnresolvableDependency):
        bus.emit("tick")


def test_typed_function_listener_is_autowired(bus: EventBus):
    def listener(clock: Clock, label: str = "t") -> None:
        calls.append((label, clock.now()))

    bus.on("tick", listener)
    bus.emit("tick")
    assert calls == [("t", "12:00")]


def test_class_method_listener_autowired(bus: EventBus):
    bus.on("user.login", (AuditHandler, "on_login"))
    bus.emit("user.login")
    assert calls == [("login", "12:00")]


def test_class_method_listener_with_args(bus: EventBus):
    bus.on("user.logout", (AuditHandler, "on_logout"))
    bus.on("audit", (AuditHandler, "record"))
    bus.emit("user.logout", "ada")
    bus.emit("audit", 1, 2)
    assert calls == [("logout", "ada"), ("record", (1, 2))]


def test_dotted_path_listener(bus: EventBus):
    bus.on("log", ("ioc_platform.services.logger.memory_logger.MemoryLogger", "info"))
    bus.emit("log", "hello")


def test_missing_listener_class_is_runtime_error(bus: EventBus):
    bus.on("e", ("no_such_pkg.mod.Handler", "handle"))
    with pytest.raises(ResolutionRuntimeError):
        bus.emit("e")


def test_listener_errors_propagate(bus: EventBus):
    def explode(*_: object) -> None:
        raise KeyError("bad")

    bus.on("e", explode)
    with pytest.raises(KeyError):
        bus.emit("e", 1)


def test_listeners_are_reported_in_priority_order(bus: EventBus):
    first = lambda: None  # noqa: E731
    second = lambda: None  # noqa: E731
    bus.on("e", second, priority=2).on("e", first, priority=1).on("other", first)
    assert bus.listeners("e") == [first, second]
    assert bus.listeners() == {"e": [first, second], "other": [first]}
    assert bus.listeners("unknown") == []


def test_remove_listener(bus: EventBus):
    keep = lambda: calls.append(("keep", 1))  # noqa: E731
    drop = lambda: calls.append(("drop", 1))  # noqa: E731
    bus.on("e", keep).on("e", drop, priority=3)
    bus.remove_listener("e", drop)
    bus.emit("e")
    assert calls == [("keep", 1)]


def test_remove_listener_pair(bus: EventBus):
    bus.on("e", (AuditHandler, "on_logout"))
    bus.remove_listener("e", (AuditHandler, "on_logout"))
    assert not bus.has_listeners("e")


def test_remove_listeners(bus: EventBus):
    bus.on("a", lambda: None).on("b", lambda: None)
    bus.remove_listeners("a")
    assert list(bus.listeners()) == ["b"]
    bus.remove_listeners()
    assert bus.listeners() == {}


def test_defer_and_dispatch(bus: EventBus):
    bus.on("e", lambda value: calls.append(("e", value)))
    bus.defer("e", 1).defer("e", 2)
    assert calls == []
    assert bus.dispatch_deferred() == 2
    assert calls == [("e", 1), ("e", 2)]
    assert bus.dispatch_deferred() == 0
    assert len(calls) == 2


def test_subscribe_registers_methods(bus: EventBus):
    bus.subscribe(UserSubscriber())
    bus.emit("user.login")
    bus.emit("user.logout")
    assert [c[0] for c in calls] == ["sub.login", "sub.logout", "sub.also_logout"]


def test_unsubscribe_removes_only_subscriber_listeners(bus: EventBus):
    other = lambda: calls.append(("other", 1))  # noqa: E731
    bus.on("user.logout", other)
    subscriber = UserSubscriber()
    bus.subscribe(subscriber)
    bus.unsubscribe(subscriber)
    bus.emit("user.login")
    bus.emit("user.logout")
    assert calls == [("other", 1)]


def test_unsubscribe_unknown_subscriber_is_noop(bus: EventBus):
    bus.on("user.login", lambda: None)
    bus.unsubscribe(UserSubscriber())
    assert bus.has_listeners("user.login")


@pytest.mark.parametrize("name", ["", "  "])
def test_empty_event_name_rejected(bus: EventBus, name: str):
    with pytest.raises(ValueError, match="Event name cannot be empty"):
        bus.on(name, lambda: None)
    with pytest.raises(ValueError):
        bus.emit(name)


@pytest.mark.parametrize("listener", [(AuditHandler,), (AuditHandler, ""), ("", "m"), (1, "m"), 42])
def test_malformed_listener_rejected(bus: EventBus, listener):
    with pytest.raises(ValueError):
        bus.on("e", listener)


def test_bus_uses_container_bindings():
    container = Container()
    clock = Clock()
    container.register_instance(Clock, clock)
    bus = EventBus(resolver=container.resolver)
    bus.on("tick", lambda c: calls.append(("same", c is clock)))

    def listener(c: Clock) -> None:
        calls.append(("autowired", c is clock))

    bus.on("tock", listener)
    bus.emit("tick", clock)
    bus.emit("tock")
    assert calls == [("same", True), ("autowired", True)]


def test_emit_is_logged():
    logger = MemoryLogger()
    bus = EventBus(logger=logger)
    bus.on("e", lambda: None)
    bus.emit("e")
    assert logger.entries[-1].ctx == {"event": "e", "args": 0}


def test_bus_built_by_container_uses_its_bindings():
    container = build_container(PlatformConfig(overrides={"LOG_IMPL": "memory"}))
    clock = Clock()
    container.register_instance(Clock, clock)
    bus = container.make(EventBus)

    def listener(c: Clock) -> None:
        calls.append(("autowired", c is clock))

    bus.on("tick", listener)
    bus.emit("tick")
    assert calls == [("autowired", True)]
