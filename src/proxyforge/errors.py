"""Custom error types for proxyforge."""


class ProxyForgeError(Exception):
    """Base class for all proxyforge errors."""


class ProxyConfigurationError(ProxyForgeError, TypeError):
    """Raised when a proxy cannot be built or instantiated as requested."""


class MemberNotOverridableError(ProxyConfigurationError):
    """Raised when an override-capable member is marked final."""

    member_name: str
    declaring_type: type

    def __init__(self, member_name: str, declaring_type: type) -> None:
        """Initialize a non-overridable member error.

        :param member_name: Name of the offending member.
        :param declaring_type: Type that declares the member.
        """
        self.member_name = member_name
        self.declaring_type = declaring_type
        super().__init__(
            f"Member {declaring_type.__qualname__}.{member_name} is final and cannot be overridden"
        )


class ProxyDispatchError(ProxyForgeError):
    """Base class for errors raised while resuming an intercepted call."""


class MemberNotImplementedError(ProxyDispatchError, NotImplementedError):
    """Raised when resuming a member that has no original implementation."""


class TargetRequiredError(ProxyDispatchError):
    """Raised when forwarding a call to an absent target object."""


class TargetMismatchError(ProxyDispatchError):
    """Raised when a target does not declare or inherit the intercepted member."""


class ProxyAdaptationError(ProxyForgeError):
    """Raised when an object cannot be adapted to a capability contract."""
