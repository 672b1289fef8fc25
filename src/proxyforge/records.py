"""Call records and the factory manufacturing one record type per member."""

import inspect
import itertools
import threading
import types
from collections.abc import Callable
from typing import Any
from typing import ClassVar
from typing import Generic

from proxyforge.config import ProxyForgeSettings
from proxyforge.errors import MemberNotImplementedError
from proxyforge.errors import TargetMismatchError
from proxyforge.errors import TargetRequiredError
from proxyforge.events import BoundEvent
from proxyforge.logging import get_logger
from proxyforge.members import AccessorKind
from proxyforge.members import MemberCoordinate
from proxyforge.members import ParameterShape
from proxyforge.members import is_instance_of
from proxyforge.references import ParameterMode
from proxyforge.references import Ref

logger = get_logger(__name__)

MESSAGE_NOT_IMPLEMENTED: str = "Method not implemented"
MESSAGE_REQUIRES_TARGET: str = "Method requires a target object"
MESSAGE_NOT_DECLARED: str = "Method not declared or inherited by target"

Invoker = Callable[[object, list[object]], object]


def pack_arguments(
    parameters: tuple[ParameterShape, ...],
    arguments: list[object],
) -> tuple[list[object], dict[str, object], dict[int, Ref[object]]]:
    """Rebuild a call from one argument slot per parameter.

    By-reference slots are passed in fresh ``Ref`` boxes so that the callee
    can write through them.

    :param parameters: Parameter shapes in declaration order.
    :param arguments: Argument slots in the same order.
    :returns: Tuple of ``(positional, keywords, boxes_by_slot_index)``.
    """
    positional: list[object] = []
    keywords: dict[str, object] = {}
    boxes: dict[int, Ref[object]] = {}
    for index, shape in enumerate(parameters):
        value: object = arguments[index]
        if shape.mode is not ParameterMode.VALUE:
            box: Ref[object] = Ref(value)
            boxes[index] = box
            value = box

        if shape.kind is inspect.Parameter.VAR_POSITIONAL:
            positional.extend(value)  # type: ignore[call-overload]
        elif shape.kind is inspect.Parameter.KEYWORD_ONLY:
            keywords[shape.name] = value
        elif shape.kind is inspect.Parameter.VAR_KEYWORD:
            keywords.update(value)  # type: ignore[call-overload]
        else:
            positional.append(value)
    return positional, keywords, boxes


def restore_by_reference(arguments: list[object], boxes: dict[int, Ref[object]]) -> None:
    """Copy values written through ``Ref`` boxes back into their slots.

    :param arguments: Argument slots.
    :param boxes: Boxes keyed by slot index, in parameter order.
    """
    for index, box in boxes.items():
        arguments[index] = box.value


class CallRecord:
    """One intercepted invocation.

    The coordinate, receiver, and argument list are fixed for the life of
    the record. Interceptors may replace values inside the argument list;
    by-reference slots are copied back to the caller when the call returns.
    """

    _coordinate: ClassVar[MemberCoordinate]

    _is_override: bool
    _receiver: object
    _arguments: list[object]

    def __init__(self, is_override: bool, receiver: object, arguments: list[object]) -> None:
        """Initialize the record.

        :param is_override: Whether the member overrides an inherited declaration.
        :param receiver: Proxy instance the call was made on.
        :param arguments: One slot per parameter, in declaration order.
        :raises TypeError: If the receiver or the argument list is absent.
        """
        if receiver is None:
            raise TypeError("receiver must not be None")
        if arguments is None:
            raise TypeError("arguments must not be None")
        self._is_override = is_override
        self._receiver = receiver
        self._arguments = arguments

    @property
    def coordinate(self) -> MemberCoordinate:
        return self._coordinate

    @property
    def accessor_kind(self) -> AccessorKind:
        return self._coordinate.accessor_kind

    @property
    def member_name(self) -> str:
        return self._coordinate.declaring_name

    @property
    def declaring_type(self) -> type:
        return self._coordinate.declaring_type

    @property
    def function(self) -> Callable[..., Any]:
        return self._coordinate.function

    @property
    def is_override(self) -> bool:
        return self._is_override

    @property
    def receiver(self) -> object:
        return self._receiver

    @property
    def arguments(self) -> list[object]:
        return self._arguments

    @property
    def generic_arguments(self) -> tuple[object, ...]:
        """Concrete types the record type was closed over for this call.

        :returns: One type per generic parameter; empty for non-generic members.
        """
        closed: object = self.__dict__.get("__orig_class__")
        if closed is None:
            return ()
        return tuple(getattr(closed, "__args__", ()))

    def _invoke_base(self, target: object, arguments: list[object]) -> object:
        raise MemberNotImplementedError(MESSAGE_NOT_IMPLEMENTED)

    def _invoke_virtual(self, target: object, arguments: list[object]) -> object:
        raise NotImplementedError

    def resume(self) -> object:
        """Continue into the original implementation on the receiver.

        :returns: Result of the original implementation.
        :raises MemberNotImplementedError: If the member has no original implementation.
        """
        if self._is_override is True:
            return self._invoke_base(self._receiver, self._arguments)
        raise MemberNotImplementedError(MESSAGE_NOT_IMPLEMENTED)

    def resume_on(self, target: object) -> object:
        """Continue the call on ``target`` instead of the receiver.

        :param target: Object receiving the call.
        :returns: Call result.
        :raises MemberNotImplementedError: If ``target`` is the receiver and no original exists.
        :raises TargetRequiredError: If ``target`` is ``None``.
        :raises TargetMismatchError: If ``target`` does not declare or inherit the member.
        """
        if target is self._receiver:
            return self.resume()
        if target is None:
            raise TargetRequiredError(MESSAGE_REQUIRES_TARGET)

        matches: bool = is_instance_of(target, self._coordinate.declaring_type)
        if matches is False:
            raise TargetMismatchError(
                f"{MESSAGE_NOT_DECLARED}: {self._coordinate.qualified_name} on {type(target).__qualname__}"
            )
        return self._invoke_virtual(target, self._arguments)

    def __repr__(self) -> str:
        return (
            f"<{type(self).__name__} {self._coordinate.qualified_name} "
            f"{self._coordinate.accessor_kind.value} arguments={self._arguments!r}>"
        )


def _finish(coordinate: MemberCoordinate, result: object) -> object:
    if coordinate.is_void is True:
        return None
    return result


def _make_base_invoker(coordinate: MemberCoordinate) -> Invoker:
    """Build the non-virtual call into the original function.

    :param coordinate: Member coordinate.
    :returns: Invoker taking ``(target, arguments)``.
    """
    function: Callable[..., Any] = coordinate.function
    parameters: tuple[ParameterShape, ...] = coordinate.parameters

    def invoke_base(self: CallRecord, target: object, arguments: list[object]) -> object:
        positional, keywords, boxes = pack_arguments(parameters, arguments)
        result: object = function(target, *positional, **keywords)
        restore_by_reference(arguments, boxes)
        return _finish(coordinate, result)

    return invoke_base  # type: ignore[return-value]


def _event_accessor(target: object, name: str) -> BoundEvent:
    bound: object = getattr(target, name)
    if isinstance(bound, BoundEvent) is False:
        raise TargetMismatchError(f"{MESSAGE_NOT_DECLARED}: {name!r} is not an event on {type(target).__qualname__}")
    return bound  # type: ignore[return-value]


def _make_virtual_invoker(coordinate: MemberCoordinate) -> Invoker:
    """Build the by-name call dispatched on an arbitrary target.

    :param coordinate: Member coordinate.
    :returns: Invoker taking ``(target, arguments)``.
    """
    name: str = coordinate.declaring_name
    kind: AccessorKind = coordinate.accessor_kind
    parameters: tuple[ParameterShape, ...] = coordinate.parameters

    def invoke_virtual(self: CallRecord, target: object, arguments: list[object]) -> object:
        if kind is AccessorKind.GET:
            return getattr(target, name)
        if kind is AccessorKind.SET:
            setattr(target, name, arguments[0])
            return None
        if kind is AccessorKind.OTHER:
            delattr(target, name)
            return None

        positional, keywords, boxes = pack_arguments(parameters, arguments)
        result: object
        if kind is AccessorKind.ADD:
            result = _event_accessor(target, name).add(*positional, **keywords)
        elif kind is AccessorKind.REMOVE:
            result = _event_accessor(target, name).remove(*positional, **keywords)
        elif kind is AccessorKind.RAISE:
            result = _event_accessor(target, name).fire(*positional, **keywords)
        else:
            result = getattr(target, name)(*positional, **keywords)
        restore_by_reference(arguments, boxes)
        return _finish(coordinate, result)

    return invoke_virtual  # type: ignore[return-value]


def close_record_type(record_type: type[CallRecord], arguments: list[object]) -> Callable[..., CallRecord]:
    """Close a generic record type over the runtime types of the call.

    Each generic parameter takes the type of the first argument annotated
    with it, or ``object`` when no argument binds it.

    :param record_type: Record type built for a member coordinate.
    :param arguments: Argument slots of the current call.
    :returns: The record type itself, or its closed generic alias.
    """
    coordinate: MemberCoordinate = record_type._coordinate
    if coordinate.is_generic is False:
        return record_type

    concrete: list[type] = []
    for binding in coordinate.generic_bindings:
        if binding is None:
            concrete.append(object)
        else:
            concrete.append(type(arguments[binding]))
    return record_type[tuple(concrete)]  # type: ignore[index,no-any-return]


class RecordTypeFactory:
    """Manufacture record types for member coordinates."""

    _settings: ProxyForgeSettings
    _type_ids: "itertools.count[int]"
    _type_id_lock: threading.Lock

    def __init__(self, settings: ProxyForgeSettings) -> None:
        """Initialize the factory.

        :param settings: Naming settings for generated classes.
        """
        self._settings = settings
        self._type_ids = itertools.count()
        self._type_id_lock = threading.Lock()

    def create_type(self, coordinate: MemberCoordinate) -> type[CallRecord]:
        """Build the record type for one coordinate.

        Members without an original implementation get no base invoker, so
        resuming them raises ``MemberNotImplementedError``.

        :param coordinate: Member coordinate.
        :returns: New record type.
        """
        with self._type_id_lock:
            type_id: int = next(self._type_ids)
        class_name: str = (
            f"{self._settings.record_type_prefix}_{coordinate.declaring_name.strip('_') or 'member'}_{type_id:x}"
        )
        namespace: dict[str, object] = {
            "__module__": self._settings.dynamic_module,
            "__doc__": f"Call record for {coordinate.qualified_name} ({coordinate.accessor_kind.value}).",
            "__qualname__": class_name,
            "_coordinate": coordinate,
            "_invoke_virtual": _make_virtual_invoker(coordinate),
        }
        if coordinate.has_base_implementation is True:
            namespace["_invoke_base"] = _make_base_invoker(coordinate)

        bases: tuple[object, ...] = (CallRecord,)
        if coordinate.is_generic is True:
            bases = (CallRecord, Generic[coordinate.generic_parameters])  # type: ignore[index]

        record_type: type[CallRecord] = types.new_class(
            class_name,
            bases,
            {},
            lambda body: body.update(namespace),
        )
        logger.debug(
            "record_type_built",
            record_type=class_name,
            member=coordinate.qualified_name,
            accessor=coordinate.accessor_kind.value,
            has_base=coordinate.has_base_implementation,
            generic_parameters=len(coordinate.generic_parameters),
        )
        return record_type
