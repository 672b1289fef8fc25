"""Classification of proxy requests into synthesis strategies."""

import enum
from collections.abc import Iterable

from proxyforge.members import is_delegate_type
from proxyforge.members import is_instance_of
from proxyforge.members import is_interface_type
from proxyforge.members import unwrap_generic_alias


class ProxyStrategy(enum.Enum):
    """How the manufactured class relates to the requested base type."""

    CLASS = "class"
    INTERFACE = "interface"
    DELEGATE = "delegate"


class DelegateAdapter:
    """Minimal parent class of delegate proxies."""

    __slots__ = ()


def _type_name(type_object: object) -> str:
    """Build a stable dotted name for a type or generic alias.

    :param type_object: Type object or alias.
    :returns: Dotted ``module.qualname`` string.
    """
    if isinstance(type_object, type) is True:
        return f"{type_object.__module__}.{type_object.__qualname__}"
    return repr(type_object)


class ProxyDefinition:
    """Structural description of one manufactured proxy class.

    Two definitions are equal when they share the declaring type and the
    same set of additional interfaces; the derived parent type and the
    strategy follow from those two.
    """

    __slots__ = ("_declaring_type", "_parent_type", "_interface_types", "_additional_types", "_strategy", "_hash")

    _declaring_type: object
    _parent_type: object
    _interface_types: frozenset[object]
    _additional_types: frozenset[object]
    _strategy: ProxyStrategy
    _hash: int

    def __init__(
        self,
        declaring_type: object,
        parent_type: object,
        interface_types: Iterable[object],
        additional_types: Iterable[object],
        strategy: ProxyStrategy,
    ) -> None:
        """Initialize an immutable definition.

        :param declaring_type: Requested base type.
        :param parent_type: Class actually subclassed.
        :param interface_types: Every contract the proxy implements.
        :param additional_types: Contracts requested besides the base type.
        :param strategy: Synthesis strategy.
        """
        self._declaring_type = declaring_type
        self._parent_type = parent_type
        self._interface_types = frozenset(interface_types)
        self._additional_types = frozenset(additional_types)
        self._strategy = strategy
        self._hash = hash((declaring_type, self._additional_types))

    @property
    def declaring_type(self) -> object:
        return self._declaring_type

    @property
    def parent_type(self) -> object:
        return self._parent_type

    @property
    def interface_types(self) -> frozenset[object]:
        return self._interface_types

    @property
    def strategy(self) -> ProxyStrategy:
        return self._strategy

    def sorted_interfaces(self) -> list[object]:
        """Return the interfaces in a deterministic order.

        :returns: Interfaces sorted by dotted name.
        """
        return sorted(self._interface_types, key=_type_name)

    def wrap_instance(self, instance: object) -> object:
        """Turn a freshly built instance into the object handed to callers.

        :param instance: Instance of the manufactured class.
        :returns: The instance, or its bound ``__call__`` for delegates.
        """
        if self._strategy is ProxyStrategy.DELEGATE:
            return instance.__call__  # type: ignore[operator]
        return instance

    def unwrap_instance(self, proxy: object) -> object:
        """Recover the manufactured instance behind a handed-out proxy.

        :param proxy: Object previously returned by ``wrap_instance``.
        :returns: Underlying instance.
        """
        if self._strategy is ProxyStrategy.DELEGATE:
            owner: object = getattr(proxy, "__self__", None)
            if owner is not None and is_instance_of(owner, DelegateAdapter) is True:
                return owner
        return proxy

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ProxyDefinition) is False:
            return NotImplemented
        return (
            self._declaring_type == other._declaring_type
            and self._additional_types == other._additional_types
        )

    def __hash__(self) -> int:
        return self._hash

    def __repr__(self) -> str:
        interfaces: str = ", ".join(_type_name(item) for item in self.sorted_interfaces())
        return (
            f"ProxyDefinition({self._strategy.value}, {_type_name(self._declaring_type)}, "
            f"interfaces=[{interfaces}])"
        )


def classify(declaring_type: object, interface_types: Iterable[object]) -> ProxyDefinition:
    """Map a base type and capability set onto a proxy definition.

    Delegate contracts subclass ``DelegateAdapter``, pure contracts subclass
    ``object`` and implement the base type as an interface, and everything
    else subclasses the base type directly.

    :param declaring_type: Requested base type.
    :param interface_types: Additional capability contracts.
    :returns: Proxy definition.
    """
    additional: frozenset[object] = frozenset(interface_types)
    underlying: type | None = unwrap_generic_alias(declaring_type)

    if underlying is not None and is_delegate_type(underlying) is True:
        return ProxyDefinition(
            declaring_type,
            DelegateAdapter,
            additional | {declaring_type},
            additional,
            ProxyStrategy.DELEGATE,
        )

    if underlying is not None and is_interface_type(underlying) is True:
        return ProxyDefinition(
            declaring_type,
            object,
            additional | {declaring_type},
            additional,
            ProxyStrategy.INTERFACE,
        )

    return ProxyDefinition(
        declaring_type,
        declaring_type,
        additional,
        additional,
        ProxyStrategy.CLASS,
    )
