import dataclasses
import functools
import inspect
from typing import Annotated, Any, Dict, Optional, Sequence

from pydantic import ConfigDict, Field, ValidationError, validate_call
from pydantic.dataclasses import dataclass as pydantic_dataclass

# Booleans are not integers and NaN/inf are not amounts
STRICT_CONFIG = ConfigDict(strict=True, allow_inf_nan=False)

# Below -100% the compounded price would turn negative
GrowthRate = Annotated[float, Field(ge=-1)]


class InvalidInput(ValueError):
    """Raised when a simulation parameter violates a numeric precondition."""

    def __init__(self, field: str, value: Any, reason: str):
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(f"Invalid {field}={value!r}: {reason}")


class DegenerateConfiguration(ArithmeticError):
    """Raised when a vesting formula would divide by a non-positive span."""
    pass


def invalid_input_from(error: ValidationError,
                       positional_names: Sequence[str] = (),
                       field_names: Optional[Dict[str, str]] = None) -> InvalidInput:
    """
    Converts the first pydantic error into an InvalidInput.

    Positional arguments are reported by pydantic under their index; they are mapped
    back to `positional_names`, then renamed through `field_names`.
    """
    first = error.errors()[0]
    cause = (first.get("ctx") or {}).get("error")
    if isinstance(cause, InvalidInput):
        return cause

    loc = first["loc"]
    name = loc[0] if loc else ""
    if isinstance(name, int) and name < len(positional_names):
        name = positional_names[name]
    name = (field_names or {}).get(name, name)
    return InvalidInput(str(name), first.get("input"), first["msg"])


def validated(**field_names: str):
    """
    Validates a function's arguments against their annotations in strict mode.

    A failure raises InvalidInput named after the argument, or after the name given
    for it in `field_names` (e.g. `@validated(total="total_units")`).
    """
    def decorate(func):
        checked = validate_call(config=STRICT_CONFIG)(func)
        positional_names = list(inspect.signature(func).parameters)

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return checked(*args, **kwargs)
            except ValidationError as e:
                raise invalid_input_from(e, positional_names, field_names) from None

        return wrapper

    return decorate


def validated_dataclass(cls):
    """
    Frozen pydantic dataclass, validated in strict mode on construction.

    Construction raises InvalidInput instead of pydantic's ValidationError, so an
    instance that exists is always valid.
    """
    cls = pydantic_dataclass(cls, frozen=True, config=STRICT_CONFIG)
    pydantic_init = cls.__init__
    positional_names = [f.name for f in dataclasses.fields(cls)]

    @functools.wraps(pydantic_init)
    def __init__(self, *args, **kwargs):
        try:
            pydantic_init(self, *args, **kwargs)
        except ValidationError as e:
            raise invalid_input_from(e, positional_names) from None

    cls.__init__ = __init__
    return cls


def check_cliff_within_vesting(cliff: int, vesting_length: int) -> None:
    if cliff > vesting_length:
        raise InvalidInput(
            "cliff_periods", cliff,
            f"must not exceed vesting_length_periods ({vesting_length})"
        )
