"""Member surface inspection: descriptors, coordinates, and parameter shapes."""

import abc
import enum
import inspect
import types
import typing
from collections.abc import Callable
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Any
from typing import Generic
from typing import Protocol
from typing import TypeVar

from proxyforge.events import Event
from proxyforge.references import ParameterMode
from proxyforge.references import parameter_mode

# CPython ``Py_TPFLAGS_BASETYPE``: cleared on classes that refuse subclassing.
_TPFLAGS_BASETYPE: int = 1 << 10

# Class machinery that is never surfaced as an interceptable member.
_SKIPPED_MEMBER_NAMES: frozenset[str] = frozenset(
    {
        "__init__",
        "__new__",
        "__init_subclass__",
        "__class_getitem__",
        "__subclasshook__",
        "__set_name__",
        "__getattribute__",
        "__getattr__",
        "__setattr__",
        "__delattr__",
        "__dir__",
        "__reduce__",
        "__reduce_ex__",
        "__getstate__",
        "__setstate__",
        "__copy__",
        "__deepcopy__",
        "__instancecheck__",
        "__subclasscheck__",
    }
)

_IGNORED_STATE_NAMES: frozenset[str] = frozenset({"_abc_impl", "_is_protocol", "_is_runtime_protocol"})

# Roots contributed by typing/abc; their namespaces never hold contract members.
_INFRASTRUCTURE_TYPES: tuple[type, ...] = (object, Generic, Protocol, abc.ABC)  # type: ignore[arg-type]


class AccessorKind(enum.Enum):
    """Role of one accessor function within its member."""

    INVOKE = "invoke"
    GET = "get"
    SET = "set"
    ADD = "add"
    REMOVE = "remove"
    RAISE = "raise"
    OTHER = "other"


class MemberKind(enum.Enum):
    """Kind of surfaced member."""

    METHOD = "method"
    PROPERTY = "property"
    EVENT = "event"


@dataclass(frozen=True)
class MemberDescriptor:
    """One interceptable member found on a class or contract."""

    kind: MemberKind
    name: str
    declaring_type: type
    member: object

    def accessors(self) -> list[tuple[AccessorKind, Callable[..., Any]]]:
        """List the accessor functions of this member.

        :returns: ``(kind, function)`` pairs in declaration order.
        """
        if self.kind is MemberKind.METHOD:
            return [(AccessorKind.INVOKE, typing.cast(Callable[..., Any], self.member))]

        found: list[tuple[AccessorKind, Callable[..., Any]]] = []
        if self.kind is MemberKind.PROPERTY:
            prop: property = typing.cast(property, self.member)
            if prop.fget is not None:
                found.append((AccessorKind.GET, prop.fget))
            if prop.fset is not None:
                found.append((AccessorKind.SET, prop.fset))
            if prop.fdel is not None:
                found.append((AccessorKind.OTHER, prop.fdel))
            return found

        event: Event = typing.cast(Event, self.member)
        roles: dict[str, AccessorKind] = {
            "add": AccessorKind.ADD,
            "remove": AccessorKind.REMOVE,
            "raise": AccessorKind.RAISE,
        }
        for role, accessor in event.accessors():
            found.append((roles[role], accessor))
        return found


@dataclass(frozen=True)
class ParameterShape:
    """Static shape of one parameter after the receiver."""

    name: str
    kind: inspect._ParameterKind
    mode: ParameterMode
    annotation: object


def unwrap_generic_alias(candidate: object) -> type | None:
    """Return the class behind ``candidate``, looking through generic aliases.

    :param candidate: Class or subscripted generic alias.
    :returns: Underlying class or ``None`` when ``candidate`` is neither.
    """
    if isinstance(candidate, type) is True:
        return candidate
    origin: object = typing.get_origin(candidate)
    if isinstance(origin, type) is True:
        return origin
    return None


def is_sealed_type(candidate: type) -> bool:
    """Report whether ``candidate`` refuses subclassing.

    :param candidate: Class to inspect.
    :returns: ``True`` for ``typing.final`` classes and non-base builtins.
    """
    if getattr(candidate, "__final__", False) is True:
        return True
    return (candidate.__flags__ & _TPFLAGS_BASETYPE) == 0


def is_open_generic(candidate: object) -> bool:
    """Report whether ``candidate`` is a generic class with unbound parameters.

    :param candidate: Class or generic alias.
    :returns: ``True`` when type parameters remain unbound.
    """
    if isinstance(candidate, type) is False:
        return False
    parameters: tuple[object, ...] = getattr(candidate, "__parameters__", ())
    return len(parameters) > 0


def is_protocol_type(candidate: type) -> bool:
    return getattr(candidate, "_is_protocol", False) is True


def is_abstract_member(member: object) -> bool:
    return getattr(member, "__isabstractmethod__", False) is True


def is_final_member(member: object) -> bool:
    """Report whether a member was marked with ``typing.final``.

    :param member: Function, property, or event.
    :returns: ``True`` when any accessor carries the final marker.
    """
    if getattr(member, "__final__", False) is True:
        return True
    if isinstance(member, property) is True:
        accessors: list[object] = [member.fget, member.fset, member.fdel]
        return any(getattr(item, "__final__", False) is True for item in accessors)
    if isinstance(member, Event) is True:
        return any(getattr(item, "__final__", False) is True for _, item in member.accessors())
    return False


def _classify_namespace_entry(value: object) -> MemberKind | None:
    if isinstance(value, types.FunctionType) is True:
        return MemberKind.METHOD
    if isinstance(value, property) is True:
        return MemberKind.PROPERTY
    if isinstance(value, Event) is True:
        return MemberKind.EVENT
    return None


def _contract_classes(candidate: type) -> list[type]:
    return [entry for entry in candidate.__mro__ if entry not in _INFRASTRUCTURE_TYPES]


def iter_declared_members(candidate: type) -> Iterator[MemberDescriptor]:
    """Yield the members ``candidate`` surfaces, most-derived declaration first.

    Each name is reported once, from the first class in the MRO that declares
    it. Class machinery and names bound to non-members are skipped.

    :param candidate: Class to walk.
    :yields: Member descriptors.
    """
    seen: set[str] = set()
    for owner in _contract_classes(candidate):
        for name, value in vars(owner).items():
            if name in seen:
                continue
            seen.add(name)
            if name in _SKIPPED_MEMBER_NAMES:
                continue
            kind: MemberKind | None = _classify_namespace_entry(value)
            if kind is None:
                continue
            yield MemberDescriptor(kind=kind, name=name, declaring_type=owner, member=value)


def is_interface_type(candidate: object) -> bool:
    """Report whether ``candidate`` is a pure capability contract.

    A contract is a protocol or an ABC whose classes declare only abstract
    members, no constructor, and no state.

    :param candidate: Candidate type.
    :returns: ``True`` for pure contracts.
    """
    if isinstance(candidate, type) is False:
        return False
    if candidate in _INFRASTRUCTURE_TYPES:
        return False
    is_protocol: bool = is_protocol_type(candidate)
    if is_protocol is False and isinstance(candidate, abc.ABCMeta) is False:
        return False

    for owner in _contract_classes(candidate):
        owner_is_protocol: bool = is_protocol_type(owner)
        if owner_is_protocol is False and isinstance(owner, abc.ABCMeta) is False:
            return False
        for name, value in vars(owner).items():
            if name == "__slots__":
                if len(tuple(value)) > 0:
                    return False
                continue
            if name == "__init__":
                # Protocols receive a placeholder constructor from ``typing``.
                if owner_is_protocol is True and getattr(value, "__module__", None) == "typing":
                    continue
                return False
            if isinstance(value, (classmethod, staticmethod)) is True:
                continue
            kind: MemberKind | None = _classify_namespace_entry(value)
            is_dunder: bool = name.startswith("__") and name.endswith("__")
            if kind is None:
                if is_dunder is True or name in _IGNORED_STATE_NAMES:
                    continue
                return False
            if name in _SKIPPED_MEMBER_NAMES:
                continue
            if owner_is_protocol is False and is_abstract_member(value) is False:
                return False
    return True


def is_delegate_type(candidate: object) -> bool:
    """Report whether ``candidate`` is a contract with ``__call__`` as its only member.

    :param candidate: Candidate type.
    :returns: ``True`` for delegate-like contracts.
    """
    if is_interface_type(candidate) is False:
        return False
    names: list[str] = [descriptor.name for descriptor in iter_declared_members(typing.cast(type, candidate))]
    return names == ["__call__"]


def is_instance_of(value: object, candidate: type) -> bool:
    """``isinstance`` that tolerates non-runtime-checkable protocols.

    Non-runtime protocols only match nominally, through the MRO.

    :param value: Object to test.
    :param candidate: Class or contract.
    :returns: ``True`` when ``value`` is an instance of ``candidate``.
    """
    if candidate in type(value).__mro__:
        return True
    if is_protocol_type(candidate) is True and getattr(candidate, "_is_runtime_protocol", False) is False:
        return False
    return isinstance(value, candidate)


def implements_nominally(candidate: type, contract: type) -> bool:
    """Report whether ``candidate`` declares ``contract`` as a base.

    Protocols match only through the MRO, never structurally; ABCs also
    honor ``register``.

    :param candidate: Class to test.
    :param contract: Capability contract.
    :returns: ``True`` when ``candidate`` implements ``contract``.
    """
    if contract in candidate.__mro__:
        return True
    if is_protocol_type(contract) is True:
        return False
    return issubclass(candidate, contract)


def _resolved_hints(function: Callable[..., Any]) -> dict[str, object]:
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError, AttributeError, SyntaxError):
        return {}


def _collect_type_vars(annotation: object, found: list[TypeVar]) -> None:
    if isinstance(annotation, TypeVar) is True:
        if annotation not in found:
            found.append(annotation)
        return
    for argument in typing.get_args(annotation):
        if isinstance(argument, list) is True:
            for item in argument:
                _collect_type_vars(item, found)
            continue
        _collect_type_vars(argument, found)


def _is_void_annotation(annotation: object) -> bool:
    if annotation is None or annotation is type(None):
        return True
    return isinstance(annotation, str) is True and annotation.strip() == "None"


class MemberCoordinate:
    """Static call coordinates of one accessor function.

    Equality and hashing follow the identity of the underlying function, so
    one record type exists per distinct declaration regardless of the name
    it is exposed under.
    """

    declaring_type: type
    declaring_name: str
    accessor_kind: AccessorKind
    function: Callable[..., Any]
    signature: inspect.Signature
    parameters: tuple[ParameterShape, ...]
    is_void: bool
    generic_parameters: tuple[TypeVar, ...]
    generic_bindings: tuple[int | None, ...]
    has_base_implementation: bool

    def __init__(
        self,
        declaring_type: type,
        declaring_name: str,
        accessor_kind: AccessorKind,
        function: Callable[..., Any],
    ) -> None:
        """Inspect one accessor function.

        :param declaring_type: Class or contract declaring the member.
        :param declaring_name: Member name on the declaring type.
        :param accessor_kind: Accessor role.
        :param function: Underlying accessor function.
        """
        self.declaring_type = declaring_type
        self.declaring_name = declaring_name
        self.accessor_kind = accessor_kind
        self.function = function
        self.signature = inspect.signature(function)

        hints: dict[str, object] = _resolved_hints(function)
        raw_parameters: list[inspect.Parameter] = list(self.signature.parameters.values())[1:]
        shapes: list[ParameterShape] = []
        for raw in raw_parameters:
            annotation: object = hints.get(raw.name, raw.annotation)
            shapes.append(
                ParameterShape(
                    name=raw.name,
                    kind=raw.kind,
                    mode=parameter_mode(annotation),
                    annotation=annotation,
                )
            )
        self.parameters = tuple(shapes)

        return_annotation: object = hints.get("return", self.signature.return_annotation)
        self.is_void = _is_void_annotation(return_annotation)

        self.generic_parameters = self._find_generic_parameters(hints)
        self.generic_bindings = self._find_generic_bindings()
        self.has_base_implementation = (
            is_abstract_member(function) is False
            and is_protocol_type(declaring_type) is False
        )

    def _find_generic_parameters(self, hints: dict[str, object]) -> tuple[TypeVar, ...]:
        declared: tuple[object, ...] = getattr(self.function, "__type_params__", ())
        type_params: list[TypeVar] = [item for item in declared if isinstance(item, TypeVar) is True]
        if len(type_params) > 0:
            return tuple(type_params)

        found: list[TypeVar] = []
        for shape in self.parameters:
            _collect_type_vars(shape.annotation, found)
        _collect_type_vars(hints.get("return"), found)
        # Type variables bound by the declaring class are not method parameters.
        class_parameters: tuple[object, ...] = getattr(self.declaring_type, "__parameters__", ())
        return tuple(item for item in found if item not in class_parameters)

    def _find_generic_bindings(self) -> tuple[int | None, ...]:
        bindings: list[int | None] = []
        for type_var in self.generic_parameters:
            binding: int | None = None
            for index, shape in enumerate(self.parameters):
                annotation: object = shape.annotation
                if shape.mode is not ParameterMode.VALUE:
                    arguments: tuple[object, ...] = typing.get_args(annotation)
                    annotation = arguments[0] if len(arguments) == 1 else None
                if annotation is type_var and shape.kind in _SINGLE_VALUE_KINDS:
                    binding = index
                    break
            bindings.append(binding)
        return tuple(bindings)

    @property
    def is_generic(self) -> bool:
        return len(self.generic_parameters) > 0

    @property
    def qualified_name(self) -> str:
        return f"{self.declaring_type.__qualname__}.{self.declaring_name}"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, MemberCoordinate) is False:
            return NotImplemented
        return self.function is other.function

    def __hash__(self) -> int:
        return hash(self.function)

    def __repr__(self) -> str:
        return f"MemberCoordinate({self.qualified_name}, {self.accessor_kind.value})"


_SINGLE_VALUE_KINDS: frozenset[inspect._ParameterKind] = frozenset(
    {
        inspect.Parameter.POSITIONAL_ONLY,
        inspect.Parameter.POSITIONAL_OR_KEYWORD,
        inspect.Parameter.KEYWORD_ONLY,
    }
)
