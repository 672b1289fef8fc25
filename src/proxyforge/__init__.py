"""Public package API for proxyforge."""

from proxyforge.api import create_proxy
from proxyforge.api import get_default_repository
from proxyforge.api import get_proxy_factory
from proxyforge.config import ProxyForgeSettings
from proxyforge.config import load_settings
from proxyforge.definitions import DelegateAdapter
from proxyforge.definitions import ProxyDefinition
from proxyforge.definitions import ProxyStrategy
from proxyforge.definitions import classify
from proxyforge.errors import MemberNotImplementedError
from proxyforge.errors import MemberNotOverridableError
from proxyforge.errors import ProxyAdaptationError
from proxyforge.errors import ProxyConfigurationError
from proxyforge.errors import ProxyDispatchError
from proxyforge.errors import ProxyForgeError
from proxyforge.errors import TargetMismatchError
from proxyforge.errors import TargetRequiredError
from proxyforge.events import BoundEvent
from proxyforge.events import Event
from proxyforge.events import simple_event
from proxyforge.factory import ProxyFactory
from proxyforge.factory import get_interceptor
from proxyforge.factory import is_proxy
from proxyforge.filters import DefaultMemberFilter
from proxyforge.filters import MemberFilter
from proxyforge.filters import PredicateMemberFilter
from proxyforge.interception import CallableInterceptor
from proxyforge.interception import CountingInterceptor
from proxyforge.interception import InterceptorBase
from proxyforge.interception import MemberInterceptor
from proxyforge.interception import ReturnValueInterceptor
from proxyforge.interception import TargetInterceptor
from proxyforge.logging import configure_logging
from proxyforge.members import AccessorKind
from proxyforge.members import MemberCoordinate
from proxyforge.members import MemberDescriptor
from proxyforge.members import MemberKind
from proxyforge.members import is_delegate_type
from proxyforge.members import is_interface_type
from proxyforge.records import CallRecord
from proxyforge.references import Out
from proxyforge.references import Ref
from proxyforge.repository import ProxyRepository

__all__: list[str] = [
    "create_proxy",
    "get_default_repository",
    "get_proxy_factory",
    "ProxyForgeSettings",
    "load_settings",
    "DelegateAdapter",
    "ProxyDefinition",
    "ProxyStrategy",
    "classify",
    "MemberNotImplementedError",
    "MemberNotOverridableError",
    "ProxyAdaptationError",
    "ProxyConfigurationError",
    "ProxyDispatchError",
    "ProxyForgeError",
    "TargetMismatchError",
    "TargetRequiredError",
    "BoundEvent",
    "Event",
    "simple_event",
    "ProxyFactory",
    "get_interceptor",
    "is_proxy",
    "DefaultMemberFilter",
    "MemberFilter",
    "PredicateMemberFilter",
    "CallableInterceptor",
    "CountingInterceptor",
    "InterceptorBase",
    "MemberInterceptor",
    "ReturnValueInterceptor",
    "TargetInterceptor",
    "configure_logging",
    "AccessorKind",
    "MemberCoordinate",
    "MemberDescriptor",
    "MemberKind",
    "is_delegate_type",
    "is_interface_type",
    "CallRecord",
    "Out",
    "Ref",
    "ProxyRepository",
]
