"""Member filters deciding which members a proxy intercepts."""

from collections.abc import Callable
from typing import Protocol
from typing import runtime_checkable

from proxyforge.members import MemberDescriptor
from proxyforge.members import MemberKind

FINALIZER_NAME: str = "__del__"


@runtime_checkable
class MemberFilter(Protocol):
    """Decide per member whether it is eligible for interception."""

    def accept(self, member: MemberDescriptor) -> bool:
        """Return ``True`` when ``member`` should be intercepted."""
        ...


class DefaultMemberFilter:
    """Accept every method, property, and event except the finalizer."""

    def accept_method(self, member: MemberDescriptor) -> bool:
        return member.name != FINALIZER_NAME

    def accept_property(self, member: MemberDescriptor) -> bool:
        return True

    def accept_event(self, member: MemberDescriptor) -> bool:
        return True

    def accept(self, member: MemberDescriptor) -> bool:
        """Route ``member`` to the per-kind predicate.

        :param member: Candidate member.
        :returns: ``True`` when the member should be intercepted.
        """
        if member.kind is MemberKind.METHOD:
            return self.accept_method(member)
        if member.kind is MemberKind.PROPERTY:
            return self.accept_property(member)
        return self.accept_event(member)


class PredicateMemberFilter(DefaultMemberFilter):
    """Filter backed by a caller-supplied predicate.

    The finalizer stays excluded unless ``include_finalizer`` is set.
    """

    _predicate: Callable[[MemberDescriptor], bool]
    _include_finalizer: bool

    def __init__(
        self,
        predicate: Callable[[MemberDescriptor], bool],
        include_finalizer: bool = False,
    ) -> None:
        """Initialize the filter.

        :param predicate: Callable returning ``True`` for accepted members.
        :param include_finalizer: Whether ``__del__`` may be intercepted.
        """
        self._predicate = predicate
        self._include_finalizer = include_finalizer

    def accept(self, member: MemberDescriptor) -> bool:
        if self._include_finalizer is False and member.name == FINALIZER_NAME:
            return False
        return bool(self._predicate(member))


def as_member_filter(candidate: MemberFilter | Callable[[MemberDescriptor], bool] | None) -> MemberFilter:
    """Normalize a filter argument.

    :param candidate: Filter object, plain predicate, or ``None``.
    :returns: Member filter.
    :raises TypeError: If ``candidate`` is neither a filter nor callable.
    """
    if candidate is None:
        return DefaultMemberFilter()
    if isinstance(candidate, MemberFilter) is True:
        return candidate
    if callable(candidate) is True:
        return PredicateMemberFilter(candidate)
    raise TypeError("member_filter must be a MemberFilter or a callable predicate")
