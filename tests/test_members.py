"""Tests for property and event interception and member inspection."""

import pytest

from proxyforge import AccessorKind
from proxyforge import CallRecord
from proxyforge import CountingInterceptor
from proxyforge import Event
from proxyforge import InterceptorBase
from proxyforge import MemberCoordinate
from proxyforge import MemberKind
from proxyforge import ProxyRepository
from proxyforge import is_delegate_type
from proxyforge import is_interface_type
from proxyforge.members import iter_declared_members
from proxyforge.references import ParameterMode
from tests.fixtures.contracts import Box
from tests.fixtures.contracts import Button
from tests.fixtures.contracts import Calculator
from tests.fixtures.contracts import Counter
from tests.fixtures.contracts import Greeter
from tests.fixtures.contracts import IGreeter
from tests.fixtures.contracts import IIntArgument
from tests.fixtures.contracts import INotifier
from tests.fixtures.contracts import IOutArgument
from tests.fixtures.contracts import Mapper
from tests.fixtures.contracts import Transformer


class RecordingInterceptor(InterceptorBase):
    """Record accessor kinds, then resume the original implementation."""

    kinds: list[AccessorKind]

    def __init__(self) -> None:
        self.kinds = []

    def handle(self, record: CallRecord) -> object:
        self.kinds.append(record.accessor_kind)
        return record.resume()


def test_property_accessors_are_intercepted() -> None:
    interceptor = RecordingInterceptor()
    proxy = ProxyRepository().create_proxy(Counter, (), interceptor, 3)

    assert proxy.count == 3
    proxy.count = 10
    assert proxy.increment(2) == 12
    del proxy.count
    assert proxy.count == 0

    assert interceptor.kinds == [
        AccessorKind.GET,
        AccessorKind.SET,
        AccessorKind.INVOKE,
        AccessorKind.OTHER,
        AccessorKind.GET,
    ]


def test_property_setter_receives_assigned_value() -> None:
    interceptor = CountingInterceptor()
    proxy = ProxyRepository().create_proxy(Counter, (), interceptor)
    proxy.count = 42

    record = interceptor.records[0]
    assert record.accessor_kind is AccessorKind.SET
    assert record.arguments == [42]
    assert proxy.count is None


def test_concrete_event_accessors_are_intercepted() -> None:
    """Subscribing, invoking, and raising should each reach the interceptor."""
    interceptor = RecordingInterceptor()
    factory = ProxyRepository().get_factory(Button)
    proxy = factory.create_instance(interceptor)
    clicks: list[object] = []

    proxy.clicked += clicks.append
    proxy.click()
    proxy.clicked -= clicks.append
    proxy.click()

    assert clicks == [proxy]
    assert interceptor.kinds == [
        AccessorKind.ADD,
        AccessorKind.INVOKE,
        AccessorKind.RAISE,
        AccessorKind.REMOVE,
        AccessorKind.INVOKE,
        AccessorKind.RAISE,
    ]
    assert [member.name for member in factory.intercepted_events] == ["clicked"]


def test_abstract_event_on_contract_is_implemented() -> None:
    interceptor = CountingInterceptor()
    proxy = ProxyRepository().create_proxy(INotifier, (), interceptor)

    def handler() -> None:
        pass

    proxy.changed += handler
    proxy.changed -= handler

    kinds = [record.accessor_kind for record in interceptor.records]
    assert kinds == [AccessorKind.ADD, AccessorKind.REMOVE]
    assert interceptor.records[0].arguments == [handler]


def test_events_cannot_be_reassigned() -> None:
    proxy = ProxyRepository().create_proxy(Button, (), InterceptorBase())
    with pytest.raises(AttributeError):
        proxy.clicked = None


def test_event_without_accessors_is_abstract() -> None:
    assert Event().__isabstractmethod__ is True
    assert Button.__dict__["clicked"].__isabstractmethod__ is False


@pytest.mark.parametrize(
    ("candidate", "expected"),
    [
        (IIntArgument, True),
        (IGreeter, True),
        (INotifier, True),
        (Transformer, True),
        (Calculator, False),
        (Greeter, False),
        (int, False),
        (object, False),
    ],
)
def test_interface_detection(candidate: type, expected: bool) -> None:
    assert is_interface_type(candidate) is expected


def test_delegate_detection() -> None:
    assert is_delegate_type(Transformer) is True
    assert is_delegate_type(IIntArgument) is False
    assert is_delegate_type(Greeter) is False


def test_declared_members_report_kinds() -> None:
    kinds = {descriptor.name: descriptor.kind for descriptor in iter_declared_members(Counter)}
    assert kinds == {"count": MemberKind.PROPERTY, "increment": MemberKind.METHOD}

    event_kinds = {descriptor.name: descriptor.kind for descriptor in iter_declared_members(Button)}
    assert event_kinds == {"clicked": MemberKind.EVENT, "click": MemberKind.METHOD}


def test_coordinates_compare_by_function() -> None:
    first = MemberCoordinate(Greeter, "greet", AccessorKind.INVOKE, Greeter.greet)
    second = MemberCoordinate(Greeter, "alias", AccessorKind.INVOKE, Greeter.greet)
    other = MemberCoordinate(Mapper, "convert", AccessorKind.INVOKE, Mapper.convert)

    assert first == second
    assert hash(first) == hash(second)
    assert first != other


def test_coordinate_shapes() -> None:
    out_coordinate = MemberCoordinate(IOutArgument, "method", AccessorKind.INVOKE, IOutArgument.method)
    assert [shape.mode for shape in out_coordinate.parameters] == [ParameterMode.OUT]
    assert out_coordinate.is_void is True
    assert out_coordinate.has_base_implementation is False

    generic_coordinate = MemberCoordinate(Mapper, "convert", AccessorKind.INVOKE, Mapper.convert)
    assert generic_coordinate.is_generic is True
    assert generic_coordinate.generic_bindings == (0,)

    class_bound = MemberCoordinate(Box, "get", AccessorKind.INVOKE, Box.get)
    assert class_bound.is_generic is False
    assert class_bound.has_base_implementation is True
