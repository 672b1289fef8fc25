"""Synthesis of proxy classes forwarding every member to an interceptor."""

import functools
import types
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from proxyforge.config import ProxyForgeSettings
from proxyforge.definitions import ProxyDefinition
from proxyforge.errors import MemberNotOverridableError
from proxyforge.errors import ProxyConfigurationError
from proxyforge.events import Event
from proxyforge.filters import MemberFilter
from proxyforge.interception import dispatch
from proxyforge.logging import get_logger
from proxyforge.members import AccessorKind
from proxyforge.members import MemberCoordinate
from proxyforge.members import MemberDescriptor
from proxyforge.members import MemberKind
from proxyforge.members import ParameterShape
from proxyforge.members import is_final_member
from proxyforge.members import is_interface_type
from proxyforge.members import is_open_generic
from proxyforge.members import is_sealed_type
from proxyforge.members import iter_declared_members
from proxyforge.members import unwrap_generic_alias
from proxyforge.records import CallRecord
from proxyforge.records import close_record_type
from proxyforge.references import ParameterMode
from proxyforge.references import Ref
from proxyforge.references import unbox

logger = get_logger(__name__)

INTERCEPTOR_ATTR: str = "_proxyforge_interceptor"
DEFINITION_ATTR: str = "__proxyforge_definition__"
MEMBERS_ATTR: str = "__proxyforge_members__"

RecordTypeProvider = Callable[[MemberCoordinate], type[CallRecord]]


@dataclass(frozen=True)
class InterceptedMember:
    """One member implemented on a manufactured class."""

    descriptor: MemberDescriptor
    is_override: bool
    implementation: object
    coordinates: tuple[MemberCoordinate, ...]


@dataclass(frozen=True)
class SynthesisResult:
    """Manufactured class plus the members it intercepts."""

    implementation_type: type
    events: tuple[MemberDescriptor, ...]
    properties: tuple[MemberDescriptor, ...]
    methods: tuple[MemberDescriptor, ...]


def read_interceptor(instance: object) -> object:
    """Read the interceptor slot, bypassing overridden attribute hooks.

    :param instance: Proxy instance.
    :returns: Bound interceptor.
    """
    return object.__getattribute__(instance, INTERCEPTOR_ATTR)


def _build_shim(
    coordinate: MemberCoordinate,
    record_type: type[CallRecord],
    is_override: bool,
    qualname: str,
) -> Callable[..., Any]:
    """Build the forwarding function for one accessor.

    The shim binds the caller's arguments to the member signature, reads
    by-reference boxes into plain slots, runs the interceptor on a fresh call
    record, and copies by-reference slots back into the caller's boxes.

    :param coordinate: Accessor coordinate.
    :param record_type: Record type for the coordinate.
    :param is_override: Whether the member overrides an inherited declaration.
    :param qualname: Qualified name given to the shim.
    :returns: Shim function.
    """
    signature = coordinate.signature
    parameters: tuple[ParameterShape, ...] = coordinate.parameters
    names: list[str] = [shape.name for shape in parameters]
    has_by_reference: bool = any(shape.mode is not ParameterMode.VALUE for shape in parameters)
    is_void: bool = coordinate.is_void

    def shim(self: object, *args: object, **kwargs: object) -> object:
        bound = signature.bind(self, *args, **kwargs)
        bound.apply_defaults()
        supplied: list[object] = [bound.arguments[name] for name in names]
        arguments: list[object] = [
            unbox(value, shape.mode)
            for value, shape in zip(supplied, parameters)
        ]

        interceptor: object = read_interceptor(self)
        record: CallRecord = close_record_type(record_type, arguments)(is_override, self, arguments)
        result: object = dispatch(interceptor, record)

        if has_by_reference is True:
            for index, shape in enumerate(parameters):
                if shape.mode is ParameterMode.VALUE:
                    continue
                box: Ref[object] = supplied[index]  # type: ignore[assignment]
                box.value = arguments[index]

        if is_void is True:
            return None
        return result

    functools.update_wrapper(shim, coordinate.function, updated=())
    shim.__qualname__ = qualname
    return shim


def _base_order(parent: object, interfaces: list[object]) -> tuple[object, ...]:
    """Order the bases of a manufactured class so that its MRO is consistent.

    Interfaces already inherited through the parent or through another listed
    interface are dropped; the parent is dropped when it is ``object``.

    :param parent: Parent class or generic alias.
    :param interfaces: Interfaces in deterministic order.
    :returns: Base tuple.
    """
    parent_class: type | None = unwrap_generic_alias(parent)
    parent_mro: tuple[type, ...] = parent_class.__mro__ if parent_class is not None else ()
    classes: list[tuple[object, type]] = []
    for interface in interfaces:
        interface_class: type | None = unwrap_generic_alias(interface)
        if interface_class is not None:
            classes.append((interface, interface_class))

    kept: list[object] = []
    for interface, interface_class in classes:
        if interface_class in parent_mro:
            continue
        is_redundant: bool = any(
            other_class is not interface_class and interface_class in other_class.__mro__
            for _, other_class in classes
        )
        if is_redundant is True:
            continue
        kept.append(interface)

    if parent is object and len(kept) > 0:
        return tuple(kept)
    return (parent, *kept)


class ProxyTypeBuilder:
    """Build the manufactured class for one proxy definition."""

    _definition: ProxyDefinition
    _record_types: RecordTypeProvider
    _member_filter: MemberFilter
    _settings: ProxyForgeSettings
    _type_id: int
    _class_name: str
    _parent_class: type
    _interfaces: list[object]
    _interface_classes: set[type]

    def __init__(
        self,
        definition: ProxyDefinition,
        record_types: RecordTypeProvider,
        member_filter: MemberFilter,
        settings: ProxyForgeSettings,
        type_id: int = 0,
    ) -> None:
        """Validate the definition and prepare the build.

        :param definition: Proxy definition.
        :param record_types: Provider of cached record types.
        :param member_filter: Filter selecting intercepted members.
        :param settings: Naming settings.
        :param type_id: Unique number used in the generated class name.
        :raises ProxyConfigurationError: If the parent type or an interface is unusable.
        """
        self._definition = definition
        self._record_types = record_types
        self._member_filter = member_filter
        self._settings = settings
        self._type_id = type_id
        self._parent_class = self._validate_parent(definition.parent_type)
        self._interfaces = definition.sorted_interfaces()
        self._interface_classes = {self._validate_interface(item) for item in self._interfaces}

        declaring_class: type | None = unwrap_generic_alias(definition.declaring_type)
        declaring_name: str = declaring_class.__name__ if declaring_class is not None else "object"
        self._class_name = f"{settings.proxy_type_prefix}_{declaring_name}_{type_id:x}"

    @staticmethod
    def _validate_parent(parent: object) -> type:
        if parent is None:
            raise ProxyConfigurationError("Parent type must not be None")
        parent_class: type | None = unwrap_generic_alias(parent)
        if parent_class is None:
            raise ProxyConfigurationError(f"Parent type must be a class, got {parent!r}")
        if is_sealed_type(parent_class) is True:
            raise ProxyConfigurationError(f"Parent type {parent_class.__qualname__} must not be sealed")
        if is_open_generic(parent) is True:
            raise ProxyConfigurationError(
                f"Parent type {parent_class.__qualname__} must not be a generic type definition"
            )
        return parent_class

    @staticmethod
    def _validate_interface(interface: object) -> type:
        if interface is None:
            raise ProxyConfigurationError("Interface type must not be None")
        interface_class: type | None = unwrap_generic_alias(interface)
        if interface_class is None or is_interface_type(interface_class) is False:
            raise ProxyConfigurationError(f"Type {interface!r} is not an interface type")
        if is_open_generic(interface) is True:
            raise ProxyConfigurationError(
                f"Interface type {interface_class.__qualname__} must not be a generic type definition"
            )
        return interface_class

    def _is_override_member(self, descriptor: MemberDescriptor) -> bool:
        declaring_type: type = descriptor.declaring_type
        if declaring_type is object:
            return False
        if declaring_type in self._parent_class.__mro__:
            return True
        return any(declaring_type in interface_class.__mro__ for interface_class in self._interface_classes)

    def _coordinate(self, descriptor: MemberDescriptor, kind: AccessorKind, function: Callable[..., Any]) -> MemberCoordinate:
        return MemberCoordinate(descriptor.declaring_type, descriptor.name, kind, function)

    def _build_member(self, descriptor: MemberDescriptor) -> InterceptedMember:
        """Implement one member by forwarding each of its accessors.

        :param descriptor: Member to implement.
        :returns: Implemented member.
        :raises MemberNotOverridableError: If an override-capable member is final.
        """
        is_override: bool = self._is_override_member(descriptor)
        if is_override is True and is_final_member(descriptor.member) is True:
            raise MemberNotOverridableError(descriptor.name, descriptor.declaring_type)

        shims: dict[AccessorKind, Callable[..., Any]] = {}
        coordinates: list[MemberCoordinate] = []
        for kind, function in descriptor.accessors():
            coordinate: MemberCoordinate = self._coordinate(descriptor, kind, function)
            record_type: type[CallRecord] = self._record_types(coordinate)
            qualname: str = f"{self._class_name}.{descriptor.name}"
            shims[kind] = _build_shim(coordinate, record_type, is_override, qualname)
            coordinates.append(coordinate)

        implementation: object
        if descriptor.kind is MemberKind.METHOD:
            implementation = shims[AccessorKind.INVOKE]
        elif descriptor.kind is MemberKind.PROPERTY:
            original: property = descriptor.member  # type: ignore[assignment]
            implementation = property(
                shims.get(AccessorKind.GET),
                shims.get(AccessorKind.SET),
                shims.get(AccessorKind.OTHER),
                original.__doc__,
            )
        else:
            declared: Event = descriptor.member  # type: ignore[assignment]
            event = Event(
                shims.get(AccessorKind.ADD),
                shims.get(AccessorKind.REMOVE),
                shims.get(AccessorKind.RAISE),
                declared.__doc__,
            )
            event.name = descriptor.name
            implementation = event

        return InterceptedMember(
            descriptor=descriptor,
            is_override=is_override,
            implementation=implementation,
            coordinates=tuple(coordinates),
        )

    def _collect_members(self) -> tuple[dict[str, InterceptedMember], dict[tuple[type, str], InterceptedMember]]:
        """Implement every accepted member of the parent and the interfaces.

        :returns: Tuple of ``(public_by_name, all_by_declaration)``.
        """
        public: dict[str, InterceptedMember] = {}
        declared: dict[tuple[type, str], InterceptedMember] = {}

        sources: list[type] = []
        if self._parent_class is not object:
            sources.append(self._parent_class)
        for interface in self._interfaces:
            interface_class: type | None = unwrap_generic_alias(interface)
            if interface_class is not None:
                sources.append(interface_class)

        for source in sources:
            for descriptor in iter_declared_members(source):
                key: tuple[type, str] = (descriptor.declaring_type, descriptor.name)
                if key in declared:
                    continue
                accepted: bool = self._member_filter.accept(descriptor)
                if accepted is False:
                    continue
                member: InterceptedMember = self._build_member(descriptor)
                declared[key] = member
                if descriptor.name not in public:
                    public[descriptor.name] = member
        return public, declared

    def _build_constructors(self, namespace: dict[str, object]) -> None:
        parent_class: type = self._parent_class
        parent_init: Callable[..., None] = parent_class.__init__
        parent_new: Callable[..., object] = parent_class.__new__
        # Arguments belong to the parent __new__ when it is the only constructor.
        forwards_arguments: bool = parent_init is not object.__init__ or parent_new is object.__new__

        def __init__(self: object, interceptor: object, /, *args: object, **kwargs: object) -> None:
            if interceptor is None:
                raise ProxyConfigurationError("interceptor must not be None")
            object.__setattr__(self, INTERCEPTOR_ATTR, interceptor)
            if forwards_arguments is True:
                parent_init(self, *args, **kwargs)
            else:
                parent_init(self)

        __init__.__qualname__ = f"{self._class_name}.__init__"
        namespace["__init__"] = __init__

        if parent_new is object.__new__:
            return

        def __new__(cls: type, interceptor: object, /, *args: object, **kwargs: object) -> object:
            if interceptor is None:
                raise ProxyConfigurationError("interceptor must not be None")
            return parent_new(cls, *args, **kwargs)

        __new__.__qualname__ = f"{self._class_name}.__new__"
        namespace["__new__"] = staticmethod(__new__)

    def build(self) -> SynthesisResult:
        """Create the manufactured class.

        :returns: Synthesis result.
        :raises ProxyConfigurationError: If the class cannot be created.
        """
        public, declared = self._collect_members()

        namespace: dict[str, object] = {
            "__module__": self._settings.dynamic_module,
            "__qualname__": self._class_name,
            "__doc__": f"Proxy class for {self._definition!r}.",
            DEFINITION_ATTR: self._definition,
            MEMBERS_ATTR: types.MappingProxyType(dict(declared)),
        }
        if self._parent_class.__itemsize__ == 0:
            namespace["__slots__"] = (INTERCEPTOR_ATTR,)
        self._build_constructors(namespace)
        for name, member in public.items():
            namespace[name] = member.implementation

        bases: tuple[object, ...] = _base_order(self._definition.parent_type, self._interfaces)
        try:
            implementation_type: type = types.new_class(
                self._class_name,
                bases,
                {},
                lambda body: body.update(namespace),
            )
        except TypeError as exc:
            raise ProxyConfigurationError(f"Cannot create proxy class for {self._definition!r}: {exc}") from exc

        events: list[MemberDescriptor] = []
        properties: list[MemberDescriptor] = []
        methods: list[MemberDescriptor] = []
        for member in declared.values():
            if member.descriptor.kind is MemberKind.EVENT:
                events.append(member.descriptor)
            elif member.descriptor.kind is MemberKind.PROPERTY:
                properties.append(member.descriptor)
            else:
                methods.append(member.descriptor)

        logger.debug(
            "proxy_type_built",
            proxy_type=self._class_name,
            strategy=self._definition.strategy.value,
            events=len(events),
            properties=len(properties),
            methods=len(methods),
        )
        return SynthesisResult(
            implementation_type=implementation_type,
            events=tuple(events),
            properties=tuple(properties),
            methods=tuple(methods),
        )
