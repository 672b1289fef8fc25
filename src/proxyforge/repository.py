"""Repository of memoized proxy factories and record types."""

import itertools
import threading
from collections.abc import Callable
from collections.abc import Iterable

from proxyforge.caching import SingleFlightCache
from proxyforge.config import ProxyForgeSettings
from proxyforge.config import load_settings
from proxyforge.definitions import ProxyDefinition
from proxyforge.definitions import classify
from proxyforge.errors import ProxyConfigurationError
from proxyforge.factory import ProxyFactory
from proxyforge.filters import MemberFilter
from proxyforge.filters import as_member_filter
from proxyforge.logging import get_logger
from proxyforge.members import MemberCoordinate
from proxyforge.members import MemberDescriptor
from proxyforge.members import unwrap_generic_alias
from proxyforge.records import CallRecord
from proxyforge.records import RecordTypeFactory
from proxyforge.synthesis import ProxyTypeBuilder
from proxyforge.synthesis import SynthesisResult

logger = get_logger(__name__)


def _require_type(candidate: object, role: str) -> None:
    if candidate is None:
        raise ProxyConfigurationError(f"{role} must not be None")
    if unwrap_generic_alias(candidate) is None:
        raise ProxyConfigurationError(f"{role} must be a class, got {candidate!r}")


class ProxyRepository:
    """Build proxy factories on demand and share them between callers.

    Structurally equal requests return the identical factory. Each manufactured
    class and record type is built at most once, even under concurrent
    requests; failed builds are not remembered.
    """

    _member_filter: MemberFilter
    _settings: ProxyForgeSettings
    _record_type_factory: RecordTypeFactory
    _record_types: SingleFlightCache[MemberCoordinate, type[CallRecord]]
    _factories: SingleFlightCache[ProxyDefinition, ProxyFactory]
    _type_ids: "itertools.count[int]"
    _type_id_lock: threading.Lock

    def __init__(
        self,
        member_filter: MemberFilter | Callable[[MemberDescriptor], bool] | None = None,
        settings: ProxyForgeSettings | None = None,
    ) -> None:
        """Initialize an empty repository.

        :param member_filter: ``MemberFilter`` or predicate; accepts every member but
            finalizers when omitted.
        :param settings: Naming settings; loaded from the environment when omitted.
        """
        self._member_filter = as_member_filter(member_filter)
        self._settings = load_settings() if settings is None else settings
        self._record_type_factory = RecordTypeFactory(self._settings)
        self._record_types = SingleFlightCache("record_types")
        self._factories = SingleFlightCache("proxy_factories")
        self._type_ids = itertools.count()
        self._type_id_lock = threading.Lock()

    @property
    def member_filter(self) -> MemberFilter:
        return self._member_filter

    @property
    def settings(self) -> ProxyForgeSettings:
        return self._settings

    def _next_type_id(self) -> int:
        with self._type_id_lock:
            return next(self._type_ids)

    def _record_type(self, coordinate: MemberCoordinate) -> type[CallRecord]:
        return self._record_types.get_or_create(coordinate, self._record_type_factory.create_type)

    def _build_factory(self, definition: ProxyDefinition) -> ProxyFactory:
        builder = ProxyTypeBuilder(
            definition,
            self._record_type,
            self._member_filter,
            self._settings,
            self._next_type_id(),
        )
        result: SynthesisResult = builder.build()
        logger.debug(
            "proxy_factory_created",
            definition=repr(definition),
            implementation_type=result.implementation_type.__qualname__,
        )
        return ProxyFactory(definition, result)

    def get_definition(self, base_type: object, interface_types: Iterable[object] = ()) -> ProxyDefinition:
        """Classify a request without building anything.

        :param base_type: Class, contract, or closed generic alias to proxy.
        :param interface_types: Additional capability contracts.
        :returns: Proxy definition.
        :raises ProxyConfigurationError: If an argument is not a class.
        """
        _require_type(base_type, "Base type")
        if interface_types is None:
            raise ProxyConfigurationError("Interface types must not be None")
        interfaces: list[object] = list(interface_types)
        for interface in interfaces:
            _require_type(interface, "Interface type")
        return classify(base_type, interfaces)

    def get_factory(self, base_type: object, interface_types: Iterable[object] = ()) -> ProxyFactory:
        """Return the factory for ``base_type`` plus ``interface_types``.

        :param base_type: Class, contract, or closed generic alias to proxy.
        :param interface_types: Additional capability contracts.
        :returns: Shared proxy factory.
        :raises ProxyConfigurationError: If the request cannot be synthesized.
        """
        definition: ProxyDefinition = self.get_definition(base_type, interface_types)
        return self._factories.get_or_create(definition, self._build_factory)

    def create_proxy(
        self,
        base_type: object,
        interface_types: Iterable[object],
        interceptor: object,
        *args: object,
        **kwargs: object,
    ) -> object:
        """Create a proxy in one step.

        :param base_type: Class, contract, or closed generic alias to proxy.
        :param interface_types: Additional capability contracts.
        :param interceptor: Interceptor receiving every intercepted call.
        :returns: Proxy instance, or a bound ``__call__`` for delegate contracts.
        """
        factory: ProxyFactory = self.get_factory(base_type, interface_types)
        return factory.create_instance(interceptor, *args, **kwargs)

    def adapt(self, factory: ProxyFactory, capability: object, proxy: object) -> object:
        return factory.adapt(capability, proxy)

    def is_cached(self, base_type: object, interface_types: Iterable[object] = ()) -> bool:
        """Report whether a factory for the request has been built or is building."""
        definition: ProxyDefinition = self.get_definition(base_type, interface_types)
        return definition in self._factories

    def cached_factory_count(self) -> int:
        return len(self._factories)

    def cached_record_type_count(self) -> int:
        return len(self._record_types)
