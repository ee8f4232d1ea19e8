import typing
from functools import singledispatch


STORABLE_TYPES = (bool, int, str, type(None))


def is_storable(value: typing.Any) -> bool:
    return type(value) in STORABLE_TYPES


@singledispatch
def to_storage(argument: typing.Any) -> typing.Any:
    return argument


@to_storage.register(float)
def _(argument: float) -> str:
    return repr(argument)


def _to_bool(argument: typing.Any) -> bool:
    if isinstance(argument, str):
        return argument.strip().lower() not in ("", "0", "false")
    return bool(argument)


mapping: typing.Dict[typing.Type, typing.Callable[[typing.Any], typing.Any]] = {
    bool: _to_bool,
    int: int,
    float: float,
    str: str,
}


def from_storage(argument: typing.Any, field_type: typing.Type) -> typing.Any:
    """Casts a raw column value to the builtin type declared by a field."""
    if argument is None:
        return None
    try:
        return mapping[field_type](argument)
    except KeyError:
        return argument
