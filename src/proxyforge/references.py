"""By-reference argument boxes and parameter passing modes."""

import enum
import typing
from typing import Generic
from typing import TypeVar

T = TypeVar("T")


class ParameterMode(enum.Enum):
    """How one parameter exchanges its value with the caller."""

    VALUE = "value"
    REF = "ref"
    OUT = "out"


class Ref(Generic[T]):
    """Mutable box standing in for caller-visible argument storage.

    Annotate a parameter with ``Ref[T]`` (read and write) or ``Out[T]``
    (write only) and pass a ``Ref`` instance at the call site. Intercepted
    calls write the final slot value back into the box after the call.
    """

    __slots__ = ("value",)

    value: T | None

    def __init__(self, value: T | None = None) -> None:
        """Initialize the box.

        :param value: Initial value.
        """
        self.value = value

    def __repr__(self) -> str:
        """Return a debug representation.

        :returns: Representation text.
        """
        return f"Ref({self.value!r})"

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Ref) is False:
            return NotImplemented
        return self.value == other.value

    __hash__ = None  # type: ignore[assignment]


class Out(Ref[T]):
    """Annotation marker for output-only parameters."""

    __slots__ = ()


def parameter_mode(annotation: object) -> ParameterMode:
    """Derive the passing mode from one parameter annotation.

    String annotations are matched by their leading name so that postponed
    annotations work without evaluating the surrounding module.

    :param annotation: Raw or evaluated annotation.
    :returns: Parameter passing mode.
    """
    if isinstance(annotation, str) is True:
        head: str = annotation.split("[", 1)[0].strip().rsplit(".", 1)[-1]
        if head == "Out":
            return ParameterMode.OUT
        if head == "Ref":
            return ParameterMode.REF
        return ParameterMode.VALUE

    origin: object = typing.get_origin(annotation)
    candidate: object = annotation if origin is None else origin
    if candidate is Out:
        return ParameterMode.OUT
    if candidate is Ref:
        return ParameterMode.REF
    return ParameterMode.VALUE


def unbox(value: object, mode: ParameterMode) -> object:
    """Read the current value of a by-reference argument.

    :param value: Argument as passed by the caller.
    :param mode: Parameter passing mode.
    :returns: Value stored in the argument slot.
    :raises TypeError: If a by-reference parameter was not given a ``Ref``.
    """
    if mode is ParameterMode.VALUE:
        return value
    if isinstance(value, Ref) is False:
        raise TypeError(f"{mode.value} parameter requires a Ref box, got {type(value).__name__}")
    if mode is ParameterMode.OUT:
        return None
    return value.value
