"""User-facing API entrypoints for proxyforge."""

import threading
from collections.abc import Iterable

from proxyforge.factory import ProxyFactory
from proxyforge.repository import ProxyRepository

_DEFAULT_REPOSITORY_LOCK: threading.Lock = threading.Lock()
_DEFAULT_REPOSITORY: ProxyRepository | None = None


def get_default_repository() -> ProxyRepository:
    """Return the process-wide repository, creating it on first use.

    :returns: Shared repository using the default member filter and environment settings.
    """
    global _DEFAULT_REPOSITORY
    with _DEFAULT_REPOSITORY_LOCK:
        if _DEFAULT_REPOSITORY is None:
            _DEFAULT_REPOSITORY = ProxyRepository()
        return _DEFAULT_REPOSITORY


def get_proxy_factory(base_type: object, interface_types: Iterable[object] = ()) -> ProxyFactory:
    """Return the shared factory for ``base_type`` plus ``interface_types``.

    :param base_type: Class, contract, or closed generic alias to proxy.
    :param interface_types: Additional capability contracts.
    :returns: Proxy factory from the default repository.
    """
    return get_default_repository().get_factory(base_type, interface_types)


def create_proxy(
    base_type: object,
    interceptor: object,
    *args: object,
    interface_types: Iterable[object] = (),
    **kwargs: object,
) -> object:
    """Create a proxy from the default repository.

    :param base_type: Class, contract, or closed generic alias to proxy.
    :param interceptor: Interceptor receiving every intercepted call.
    :param interface_types: Additional capability contracts.
    :returns: Proxy instance, or a bound ``__call__`` for delegate contracts.
    """
    return get_default_repository().create_proxy(base_type, interface_types, interceptor, *args, **kwargs)
