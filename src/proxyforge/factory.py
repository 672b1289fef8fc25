"""Factories creating instances of one manufactured proxy class."""

from proxyforge.definitions import ProxyDefinition
from proxyforge.errors import ProxyAdaptationError
from proxyforge.errors import ProxyConfigurationError
from proxyforge.members import MemberDescriptor
from proxyforge.members import implements_nominally
from proxyforge.members import is_interface_type
from proxyforge.members import unwrap_generic_alias
from proxyforge.synthesis import DEFINITION_ATTR
from proxyforge.synthesis import INTERCEPTOR_ATTR
from proxyforge.synthesis import SynthesisResult
from proxyforge.synthesis import read_interceptor


class ProxyFactory:
    """Create and adapt instances of one manufactured proxy class."""

    _definition: ProxyDefinition
    _implementation_type: type
    _intercepted_events: tuple[MemberDescriptor, ...]
    _intercepted_properties: tuple[MemberDescriptor, ...]
    _intercepted_methods: tuple[MemberDescriptor, ...]

    def __init__(self, definition: ProxyDefinition, result: SynthesisResult) -> None:
        """Initialize the factory.

        :param definition: Definition the class was built from.
        :param result: Synthesized class and intercepted members.
        """
        self._definition = definition
        self._implementation_type = result.implementation_type
        self._intercepted_events = result.events
        self._intercepted_properties = result.properties
        self._intercepted_methods = result.methods

    @property
    def definition(self) -> ProxyDefinition:
        return self._definition

    @property
    def implementation_type(self) -> type:
        return self._implementation_type

    @property
    def declaring_type(self) -> object:
        return self._definition.declaring_type

    @property
    def parent_type(self) -> object:
        return self._definition.parent_type

    @property
    def implemented_interfaces(self) -> tuple[object, ...]:
        return tuple(self._definition.sorted_interfaces())

    @property
    def intercepted_events(self) -> tuple[MemberDescriptor, ...]:
        return self._intercepted_events

    @property
    def intercepted_properties(self) -> tuple[MemberDescriptor, ...]:
        return self._intercepted_properties

    @property
    def intercepted_methods(self) -> tuple[MemberDescriptor, ...]:
        return self._intercepted_methods

    def create_instance(self, interceptor: object, *args: object, **kwargs: object) -> object:
        """Create a proxy bound to ``interceptor``.

        Remaining arguments are passed to the parent constructor.

        :param interceptor: Interceptor receiving every intercepted call.
        :returns: Proxy instance, or its bound ``__call__`` for delegate contracts.
        :raises ProxyConfigurationError: If ``interceptor`` is ``None``.
        """
        if interceptor is None:
            raise ProxyConfigurationError("interceptor must not be None")
        instance: object = self._implementation_type(interceptor, *args, **kwargs)
        return self._definition.wrap_instance(instance)

    __call__ = create_instance

    def adapt(self, capability: object, proxy: object) -> object:
        """View ``proxy`` through one of its capability contracts.

        :param capability: Pure contract implemented by the proxy.
        :param proxy: Object previously returned by ``create_instance``.
        :returns: The underlying proxy instance.
        :raises ProxyConfigurationError: If ``capability`` is not a pure contract.
        :raises ProxyAdaptationError: If ``proxy`` does not come from this factory
            or does not implement ``capability``.
        """
        capability_class: type | None = unwrap_generic_alias(capability)
        if capability_class is None or is_interface_type(capability_class) is False:
            raise ProxyConfigurationError(f"Type {capability!r} is not an interface type")

        instance: object = self._definition.unwrap_instance(proxy)
        if type(instance) is not self._implementation_type:
            raise ProxyAdaptationError(
                f"Object of type {type(proxy).__qualname__} is not a proxy created by this factory"
            )
        if implements_nominally(self._implementation_type, capability_class) is False:
            raise ProxyAdaptationError(
                f"Proxy type {self._implementation_type.__qualname__} does not implement "
                f"{capability_class.__qualname__}"
            )
        return instance

    def __repr__(self) -> str:
        return f"<ProxyFactory {self._implementation_type.__qualname__} for {self._definition!r}>"


def _proxy_instance(candidate: object) -> object | None:
    owner: object = getattr(candidate, "__self__", None)
    for item in (candidate, owner):
        if item is not None and hasattr(type(item), DEFINITION_ATTR) is True:
            return item
    return None


def is_proxy(candidate: object) -> bool:
    """Report whether ``candidate`` was created by a proxy factory.

    Delegate proxies are recognized through their bound ``__call__``.
    """
    return _proxy_instance(candidate) is not None


def get_interceptor(candidate: object) -> object:
    """Return the interceptor bound to a proxy.

    :param candidate: Proxy instance or delegate.
    :returns: Bound interceptor.
    :raises ProxyAdaptationError: If ``candidate`` is not a proxy.
    """
    instance: object | None = _proxy_instance(candidate)
    if instance is None:
        raise ProxyAdaptationError(f"Object of type {type(candidate).__qualname__} is not a proxy")
    try:
        return read_interceptor(instance)
    except AttributeError as exc:
        raise ProxyAdaptationError(f"Proxy {INTERCEPTOR_ATTR} slot is unset") from exc
