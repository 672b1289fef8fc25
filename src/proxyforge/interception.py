"""Interception contract and ready-made interceptors."""

from collections.abc import Callable
from typing import TYPE_CHECKING
from typing import Protocol

from proxyforge.members import AccessorKind

if TYPE_CHECKING:
    from proxyforge.records import CallRecord

HANDLER_NAMES: dict[AccessorKind, str] = {
    AccessorKind.INVOKE: "invoke",
    AccessorKind.GET: "get",
    AccessorKind.SET: "set",
    AccessorKind.ADD: "add",
    AccessorKind.REMOVE: "remove",
    AccessorKind.RAISE: "raise_",
    AccessorKind.OTHER: "other",
}


class MemberInterceptor(Protocol):
    """Per-call interception pipeline bound to every proxy instance.

    Each handler receives the call record and returns the call result. A
    handler that wants default behavior returns ``record.resume()`` or
    ``record.resume_on(target)``.
    """

    def invoke(self, record: "CallRecord") -> object: ...

    def get(self, record: "CallRecord") -> object: ...

    def set(self, record: "CallRecord") -> object: ...

    def add(self, record: "CallRecord") -> object: ...

    def remove(self, record: "CallRecord") -> object: ...

    def raise_(self, record: "CallRecord") -> object: ...

    def other(self, record: "CallRecord") -> object: ...


def dispatch(interceptor: object, record: "CallRecord") -> object:
    """Route ``record`` to the interceptor handler for its accessor kind.

    :param interceptor: Interceptor bound to the proxy instance.
    :param record: Call record of the current invocation.
    :returns: Handler result.
    """
    handler: Callable[["CallRecord"], object] = getattr(interceptor, HANDLER_NAMES[record.accessor_kind])
    return handler(record)


class InterceptorBase:
    """Interceptor resuming the original implementation for every call.

    Subclasses override ``handle`` to treat every accessor kind alike, or
    individual handlers to treat them separately.
    """

    def handle(self, record: "CallRecord") -> object:
        return record.resume()

    def invoke(self, record: "CallRecord") -> object:
        return self.handle(record)

    def get(self, record: "CallRecord") -> object:
        return self.handle(record)

    def set(self, record: "CallRecord") -> object:
        return self.handle(record)

    def add(self, record: "CallRecord") -> object:
        return self.handle(record)

    def remove(self, record: "CallRecord") -> object:
        return self.handle(record)

    def raise_(self, record: "CallRecord") -> object:
        return self.handle(record)

    def other(self, record: "CallRecord") -> object:
        return self.handle(record)


class CallableInterceptor(InterceptorBase):
    """Route every call, whatever its accessor kind, to one callable."""

    _handler: Callable[["CallRecord"], object]

    def __init__(self, handler: Callable[["CallRecord"], object]) -> None:
        """Initialize the interceptor.

        :param handler: Callable receiving each call record.
        """
        self._handler = handler

    def handle(self, record: "CallRecord") -> object:
        return self._handler(record)


class TargetInterceptor(InterceptorBase):
    """Forward every call to a target derived from the receiver."""

    _target_factory: Callable[[object], object]

    def __init__(self, target_factory: Callable[[object], object]) -> None:
        """Initialize the interceptor.

        :param target_factory: Callable mapping the receiver to the call target.
        """
        self._target_factory = target_factory

    def handle(self, record: "CallRecord") -> object:
        target: object = self._target_factory(record.receiver)
        return record.resume_on(target)


class ReturnValueInterceptor(InterceptorBase):
    """Answer every call with one fixed value."""

    _return_value: object

    def __init__(self, return_value: object) -> None:
        self._return_value = return_value

    def handle(self, record: "CallRecord") -> object:
        return self._return_value


class CountingInterceptor(InterceptorBase):
    """Count calls and answer each with ``None``."""

    invocation_count: int
    records: list["CallRecord"]

    def __init__(self) -> None:
        self.invocation_count = 0
        self.records = []

    def handle(self, record: "CallRecord") -> object:
        self.invocation_count += 1
        self.records.append(record)
        return None
