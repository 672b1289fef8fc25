"""Tests for call records: argument boxing, resumption, and forwarding."""

import threading

import pytest

from proxyforge import AccessorKind
from proxyforge import CallableInterceptor
from proxyforge import CallRecord
from proxyforge import InterceptorBase
from proxyforge import MemberCoordinate
from proxyforge import MemberNotImplementedError
from proxyforge import ProxyRepository
from proxyforge import Ref
from proxyforge import TargetInterceptor
from proxyforge import TargetMismatchError
from proxyforge import TargetRequiredError
from proxyforge import load_settings
from proxyforge.records import RecordTypeFactory
from tests.fixtures.contracts import Calculator
from tests.fixtures.contracts import Greeter
from tests.fixtures.contracts import IGreeter
from tests.fixtures.contracts import IIntArgument
from tests.fixtures.contracts import IOutArgument
from tests.fixtures.contracts import IWavingGreeter
from tests.fixtures.contracts import Mapper
from tests.fixtures.contracts import Swapper


@pytest.fixture()
def repository() -> ProxyRepository:
    return ProxyRepository()


def test_void_method_observes_boxed_arguments(repository: ProxyRepository) -> None:
    """A handler answering ``None`` should see one slot per parameter."""
    observed: list[list[object]] = []

    def handle(record: CallRecord) -> object:
        observed.append(list(record.arguments))
        return None

    proxy = repository.create_proxy(IIntArgument, (), CallableInterceptor(handle))
    result: object = proxy.method(5)

    assert result is None
    assert observed == [[5]]


def test_void_method_discards_handler_result(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(IIntArgument, (), CallableInterceptor(lambda record: "ignored"))
    assert proxy.method(value=1) is None


def test_out_argument_written_by_interceptor_reaches_caller(repository: ProxyRepository) -> None:
    """An interceptor writing into an out slot should update the caller's box."""
    seen_before: list[object] = []

    def handle(record: CallRecord) -> object:
        seen_before.append(record.arguments[0])
        record.arguments[0] = "Two"
        return None

    proxy = repository.create_proxy(IOutArgument, (), CallableInterceptor(handle))
    box: Ref[str] = Ref("stale")
    proxy.method(box)

    assert seen_before == [None]
    assert box.value == "Two"


def test_by_reference_arguments_round_trip_through_original(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(Swapper, (), InterceptorBase())
    left: Ref[int] = Ref(1)
    right: Ref[int] = Ref(2)
    proxy.swap(left, right)

    assert (left.value, right.value) == (2, 1)

    target: Ref[str] = Ref()
    proxy.fill(target)
    assert target.value == "filled"


def test_by_reference_parameters_require_boxes(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(Swapper, (), InterceptorBase())
    with pytest.raises(TypeError, match="requires a Ref box"):
        proxy.swap(1, 2)


def test_resume_without_original_is_not_implemented(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(IIntArgument, (), InterceptorBase())
    with pytest.raises(MemberNotImplementedError, match="Method not implemented"):
        proxy.method(1)


def test_resume_on_none_requires_target(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(IIntArgument, (), CallableInterceptor(lambda record: record.resume_on(None)))
    with pytest.raises(TargetRequiredError, match="Method requires a target object"):
        proxy.method(1)


def test_resume_on_incompatible_target_is_rejected(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(
        IIntArgument,
        (),
        CallableInterceptor(lambda record: record.resume_on(object())),
    )
    with pytest.raises(TargetMismatchError, match="Method not declared or inherited by target"):
        proxy.method(1)


def test_resume_on_receiver_matches_resume(repository: ProxyRepository) -> None:
    """Forwarding to the receiver itself should behave exactly like ``resume``."""
    via_receiver = repository.create_proxy(
        Greeter,
        (),
        CallableInterceptor(lambda record: record.resume_on(record.receiver)),
        "Hi",
    )
    via_resume = repository.create_proxy(Greeter, (), InterceptorBase(), "Hi")
    assert via_receiver.greet("Ada") == via_resume.greet("Ada") == "Hi, Ada"

    abstract = repository.create_proxy(
        IIntArgument,
        (),
        CallableInterceptor(lambda record: record.resume_on(record.receiver)),
    )
    with pytest.raises(MemberNotImplementedError):
        abstract.method(1)


def test_resume_on_forwards_to_registered_implementation(repository: ProxyRepository) -> None:
    target = Greeter("Howdy")
    proxy = repository.create_proxy(IGreeter, (), TargetInterceptor(lambda receiver: target))
    assert proxy.greet("Bo") == "Howdy, Bo"


def test_abstract_class_members_resume_only_when_concrete(repository: ProxyRepository) -> None:
    proxy = repository.create_proxy(Calculator, (), InterceptorBase())

    assert proxy.double(4) == 8
    with pytest.raises(MemberNotImplementedError):
        proxy.add(1, 2)


def test_record_exposes_call_coordinates(repository: ProxyRepository) -> None:
    records: list[CallRecord] = []

    def handle(record: CallRecord) -> object:
        records.append(record)
        return record.resume()

    proxy = repository.create_proxy(Greeter, (), CallableInterceptor(handle))
    proxy.greet(name="Cy")

    record = records[0]
    assert record.receiver is proxy
    assert record.arguments == ["Cy"]
    assert record.member_name == "greet"
    assert record.declaring_type is Greeter
    assert record.accessor_kind is AccessorKind.INVOKE
    assert record.is_override is True
    assert record.function is Greeter.greet
    assert record.generic_arguments == ()


def test_interceptor_may_replace_arguments_before_resuming(repository: ProxyRepository) -> None:
    def handle(record: CallRecord) -> object:
        record.arguments[0] = record.arguments[0].upper()
        return record.resume()

    proxy = repository.create_proxy(Greeter, (), CallableInterceptor(handle))
    assert proxy.greet("ada") == "Hello, ADA"


def test_generic_method_records_close_over_runtime_types(repository: ProxyRepository) -> None:
    """Generic members should report the concrete type arguments of each call."""
    generic_arguments: list[tuple[object, ...]] = []

    def handle(record: CallRecord) -> object:
        generic_arguments.append(record.generic_arguments)
        return record.resume()

    proxy = repository.create_proxy(Mapper, (), CallableInterceptor(handle))

    assert proxy.convert(5) == 5
    assert proxy.convert("x") == "x"
    assert generic_arguments == [(int,), (str,)]


def test_record_rejects_missing_receiver_or_arguments() -> None:
    with pytest.raises(TypeError):
        CallRecord(False, None, [])
    with pytest.raises(TypeError):
        CallRecord(False, object(), None)  # type: ignore[arg-type]


def test_dispatch_errors_propagate_unchanged(repository: ProxyRepository) -> None:
    class Boom(Exception):
        pass

    def handle(record: CallRecord) -> object:
        raise Boom("handler failed")

    proxy = repository.create_proxy(Greeter, (), CallableInterceptor(handle))
    with pytest.raises(Boom, match="handler failed"):
        proxy.greet("Ada")


def test_members_inherited_by_requested_contracts_are_overrides(repository: ProxyRepository) -> None:
    """Members declared on a base contract of an interface count as overrides."""
    overrides: dict[str, bool] = {}

    def handle(record: CallRecord) -> object:
        overrides[record.member_name] = record.is_override
        return "done"

    proxy = repository.create_proxy(Greeter, [IWavingGreeter], CallableInterceptor(handle))
    proxy.greet("Ada")
    proxy.wave()

    factory = repository.get_factory(IWavingGreeter)
    contract_proxy = factory.create_instance(CallableInterceptor(handle))
    overrides.clear()
    contract_proxy.greet("Ada")
    contract_proxy.wave()

    assert overrides == {"greet": True, "wave": True}


def test_record_types_built_concurrently_get_distinct_names() -> None:
    factory = RecordTypeFactory(load_settings())
    coordinate = MemberCoordinate(Greeter, "greet", AccessorKind.INVOKE, Greeter.greet)
    start = threading.Barrier(8)
    names: list[str] = []
    names_lock = threading.Lock()

    def build() -> None:
        start.wait()
        built: list[str] = [factory.create_type(coordinate).__name__ for _ in range(25)]
        with names_lock:
            names.extend(built)

    workers = [threading.Thread(target=build) for _ in range(8)]
    for worker in workers:
        worker.start()
    for worker in workers:
        worker.join()

    assert len(names) == 200
    assert len(set(names)) == 200
