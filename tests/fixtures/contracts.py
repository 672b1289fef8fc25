"""Contracts and classes proxied by the test suite."""

import abc
import typing
from collections.abc import Callable
from typing import Generic
from typing import NamedTuple
from typing import Protocol
from typing import TypeVar
from typing import runtime_checkable

from proxyforge import Event
from proxyforge import Out
from proxyforge import Ref
from proxyforge import simple_event

T = TypeVar("T")


class IIntArgument(Protocol):
    """Contract with one void method taking an integer."""

    def method(self, value: int) -> None: ...


class IOutArgument(Protocol):
    """Contract with one void method writing an output parameter."""

    def method(self, value: Out[str]) -> None: ...


class IGreeter(abc.ABC):
    @abc.abstractmethod
    def greet(self, name: str) -> str: ...


class IFarewell(abc.ABC):
    @abc.abstractmethod
    def farewell(self, name: str) -> str: ...


class Greeter:
    """Concrete greeter registered as an ``IGreeter``."""

    prefix: str

    def __init__(self, prefix: str = "Hello") -> None:
        self.prefix = prefix

    def greet(self, name: str) -> str:
        return f"{self.prefix}, {name}"


IGreeter.register(Greeter)


class Calculator(abc.ABC):
    """Abstract class mixing abstract and concrete members."""

    @abc.abstractmethod
    def add(self, left: int, right: int) -> int: ...

    def double(self, value: int) -> int:
        return value * 2


class Counter:
    """Class exposing a read/write/delete property."""

    _count: int

    def __init__(self, start: int = 0) -> None:
        self._count = start

    @property
    def count(self) -> int:
        return self._count

    @count.setter
    def count(self, value: int) -> None:
        self._count = value

    @count.deleter
    def count(self) -> None:
        self._count = 0

    def increment(self, step: int = 1) -> int:
        self._count += step
        return self._count


class Swapper:
    def swap(self, left: Ref[int], right: Ref[int]) -> None:
        left.value, right.value = right.value, left.value

    def fill(self, target: Out[str]) -> None:
        target.value = "filled"


@typing.final
class SealedBox:
    pass


class FinalMemberHolder:
    @typing.final
    def locked(self) -> None:
        pass


class Box(Generic[T]):
    """Generic container closed over a concrete type before proxying."""

    value: T

    def __init__(self, value: T) -> None:
        self.value = value

    def get(self) -> T:
        return self.value


class Mapper:
    def convert(self, value: T) -> T:
        return value


class Transformer(Protocol):
    """Delegate contract: ``__call__`` is its only member."""

    def __call__(self, value: int) -> int: ...


class Button:
    """Class raising a concrete event."""

    clicked = simple_event("Raised with the button on every click.")

    def click(self) -> None:
        self.clicked.fire(self)


class INotifier(abc.ABC):
    """Contract declaring an abstract event."""

    changed = Event()

    @changed.adder
    @abc.abstractmethod
    def changed(self, handler: Callable[..., object]) -> None: ...

    @changed.remover
    @abc.abstractmethod
    def changed(self, handler: Callable[..., object]) -> None: ...


class IFirstNamed(Protocol):
    def name(self) -> str: ...


class ISecondNamed(Protocol):
    def name(self) -> str: ...


class Finalizable:
    def __del__(self) -> None:
        pass

    def ping(self) -> str:
        return "pong"


class Tracked:
    """Class recording every constructor call."""

    constructed: typing.ClassVar[list[object]] = []

    def __init__(self, tag: object = None) -> None:
        Tracked.constructed.append(tag)


class IWavingGreeter(IGreeter):
    """Contract extending ``IGreeter`` with one more member."""

    @abc.abstractmethod
    def wave(self) -> str: ...


@runtime_checkable
class GreetLike(Protocol):
    """Runtime protocol that ``Greeter`` matches structurally only."""

    def greet(self, name: str) -> str: ...


class Meters(float):
    """Float subclass constructed through ``float.__new__`` alone."""

    def doubled(self) -> float:
        return float(self) * 2


class Point(NamedTuple):
    x: int
    y: int

    def norm1(self) -> int:
        return abs(self.x) + abs(self.y)
