"""Event members with interceptable add, remove, and raise accessors."""

from collections.abc import Callable
from typing import Any

_HANDLERS_ATTR: str = "_proxyforge_event_handlers"

Accessor = Callable[..., Any]


class Event:
    """Descriptor declaring an event member.

    Accessors are declared like ``property`` accessors::

        class Button:
            clicked = Event()

            @clicked.adder
            def clicked(self, handler): ...

    An event without both an add and a remove accessor is abstract and
    can only appear on capability contracts.
    """

    fadd: Accessor | None
    fremove: Accessor | None
    fraise: Accessor | None
    name: str | None
    __doc__: str | None

    def __init__(
        self,
        fadd: Accessor | None = None,
        fremove: Accessor | None = None,
        fraise: Accessor | None = None,
        doc: str | None = None,
    ) -> None:
        """Initialize the event descriptor.

        :param fadd: Accessor subscribing one handler.
        :param fremove: Accessor unsubscribing one handler.
        :param fraise: Accessor notifying the subscribed handlers.
        :param doc: Optional documentation string.
        """
        self.fadd = fadd
        self.fremove = fremove
        self.fraise = fraise
        self.name = None
        self.__doc__ = doc

    def __set_name__(self, owner: type, name: str) -> None:
        self.name = name

    def _copy(self, **changes: Accessor | None) -> "Event":
        accessors: dict[str, Accessor | None] = {
            "fadd": self.fadd,
            "fremove": self.fremove,
            "fraise": self.fraise,
        }
        accessors.update(changes)
        copied = type(self)(doc=self.__doc__, **accessors)
        copied.name = self.name
        return copied

    def adder(self, fadd: Accessor) -> "Event":
        return self._copy(fadd=fadd)

    def remover(self, fremove: Accessor) -> "Event":
        return self._copy(fremove=fremove)

    def raiser(self, fraise: Accessor) -> "Event":
        return self._copy(fraise=fraise)

    def accessors(self) -> list[tuple[str, Accessor]]:
        """List the declared accessors in add, remove, raise order.

        :returns: ``(role, function)`` pairs for every present accessor.
        """
        found: list[tuple[str, Accessor]] = []
        if self.fadd is not None:
            found.append(("add", self.fadd))
        if self.fremove is not None:
            found.append(("remove", self.fremove))
        if self.fraise is not None:
            found.append(("raise", self.fraise))
        return found

    @property
    def __isabstractmethod__(self) -> bool:
        if self.fadd is None or self.fremove is None:
            return True
        for _, accessor in self.accessors():
            if getattr(accessor, "__isabstractmethod__", False) is True:
                return True
        return False

    def __get__(self, instance: object, owner: type | None = None) -> object:
        if instance is None:
            return self
        return BoundEvent(self, instance)

    def __set__(self, instance: object, value: object) -> None:
        # ``obj.evt += handler`` rebinds the attribute to the same bound event.
        if isinstance(value, BoundEvent) is True and value.event is self and value.instance is instance:
            return
        raise AttributeError(f"can't assign to event {self.name!r}")

    def __repr__(self) -> str:
        return f"<Event {self.name!r}>"


class BoundEvent:
    """Event accessed through one instance."""

    __slots__ = ("event", "instance")

    event: Event
    instance: object

    def __init__(self, event: Event, instance: object) -> None:
        """Bind an event to one instance.

        :param event: Event descriptor.
        :param instance: Owning instance.
        """
        self.event = event
        self.instance = instance

    def _accessor(self, accessor: Accessor | None, role: str) -> Accessor:
        if accessor is None:
            raise AttributeError(f"event {self.event.name!r} has no {role} accessor")
        return accessor

    def add(self, handler: Callable[..., object]) -> object:
        return self._accessor(self.event.fadd, "add")(self.instance, handler)

    def remove(self, handler: Callable[..., object]) -> object:
        return self._accessor(self.event.fremove, "remove")(self.instance, handler)

    def fire(self, *args: object, **kwargs: object) -> object:
        """Raise the event.

        :param args: Positional event arguments.
        :param kwargs: Keyword event arguments.
        :returns: Raise accessor result.
        """
        return self._accessor(self.event.fraise, "raise")(self.instance, *args, **kwargs)

    def __iadd__(self, handler: Callable[..., object]) -> "BoundEvent":
        self.add(handler)
        return self

    def __isub__(self, handler: Callable[..., object]) -> "BoundEvent":
        self.remove(handler)
        return self

    def __call__(self, *args: object, **kwargs: object) -> object:
        return self.fire(*args, **kwargs)


def _handler_list(instance: object, event: Event) -> list[Callable[..., object]]:
    registry: dict[str, list[Callable[..., object]]] = instance.__dict__.setdefault(_HANDLERS_ATTR, {})
    key: str = event.name if event.name is not None else str(id(event))
    return registry.setdefault(key, [])


def simple_event(doc: str | None = None) -> Event:
    """Create a concrete event that keeps its handlers on the instance.

    :param doc: Optional documentation string.
    :returns: Event with add, remove, and raise accessors.
    """
    declared = Event(doc=doc)

    def add(self: object, handler: Callable[..., object]) -> None:
        _handler_list(self, declared).append(handler)

    def remove(self: object, handler: Callable[..., object]) -> None:
        handlers: list[Callable[..., object]] = _handler_list(self, declared)
        if handler in handlers:
            handlers.remove(handler)

    def raise_(self: object, *args: object, **kwargs: object) -> None:
        for handler in list(_handler_list(self, declared)):
            handler(*args, **kwargs)

    declared.fadd = add
    declared.fremove = remove
    declared.fraise = raise_
    return declared
