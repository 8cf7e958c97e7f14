"""Built-in functions available to configuration expressions.

Only a small pure subset of the usual HCL function library is provided:
collection helpers (merge, concat, keys, values, lookup, length), string
helpers (lower, upper, join, split, format), conversions (tostring,
tonumber, coalesce), numeric helpers (max, min) and path helpers (basename,
dirname). None of them touch the filesystem or the environment.

Functions raise FunctionArgumentError for arguments they cannot handle; the
calling expression turns that into a diagnostic.
"""

import re
from collections.abc import Callable, Mapping
from pathlib import PurePath
from typing import Any

__all__ = [
    "FUNCTIONS",
    "FunctionArgumentError",
    "format_primitive",
]

_FORMAT_VERB = re.compile(r"%(%|[sdvf])")


class FunctionArgumentError(ValueError):
    """A function received an argument it cannot handle."""

    pass


def format_primitive(value: Any) -> str | None:
    """Render a primitive value the way string templates do.

    Returns:
        The string form, or None if the value is not a primitive
        (null, list or object).

    """
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return str(int(value)) if value.is_integer() else repr(value)
    return None


def _require_str(value: Any, func: str) -> str:
    if not isinstance(value, str):
        raise FunctionArgumentError(f"{func}() requires a string, got {_type_name(value)}")
    return value


def _require_number(value: Any, func: str) -> int | float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise FunctionArgumentError(f"{func}() requires a number, got {_type_name(value)}")
    return value


def _require_list(value: Any, func: str) -> list[Any]:
    if not isinstance(value, list | tuple):
        raise FunctionArgumentError(f"{func}() requires a list, got {_type_name(value)}")
    return list(value)


def _require_map(value: Any, func: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise FunctionArgumentError(f"{func}() requires an object, got {_type_name(value)}")
    return value


def _type_name(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "bool"
    if isinstance(value, int | float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list | tuple):
        return "list"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


def _merge(*maps: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for item in maps:
        if item is None:
            continue
        result.update(_require_map(item, "merge"))
    return result


def _concat(*lists: Any) -> list[Any]:
    result: list[Any] = []
    for item in lists:
        result.extend(_require_list(item, "concat"))
    return result


def _length(value: Any) -> int:
    if isinstance(value, str | list | tuple | Mapping):
        return len(value)
    raise FunctionArgumentError(f"length() requires a string, list or object, got {_type_name(value)}")


def _lower(value: Any) -> str:
    return _require_str(value, "lower").lower()


def _upper(value: Any) -> str:
    return _require_str(value, "upper").upper()


def _join(separator: Any, items: Any) -> str:
    separator = _require_str(separator, "join")
    parts = []
    for item in _require_list(items, "join"):
        text = format_primitive(item)
        if text is None:
            raise FunctionArgumentError(f"join() cannot include a {_type_name(item)} element")
        parts.append(text)
    return separator.join(parts)


def _split(separator: Any, value: Any) -> list[str]:
    separator = _require_str(separator, "split")
    value = _require_str(value, "split")
    if not separator:
        raise FunctionArgumentError("split() separator must not be empty")
    return value.split(separator)


def _format(spec: Any, *args: Any) -> str:
    spec = _require_str(spec, "format")
    remaining = list(args)

    def _substitute(match: re.Match[str]) -> str:
        verb = match.group(1)
        if verb == "%":
            return "%"
        if not remaining:
            raise FunctionArgumentError(f"format() has too few arguments for {spec!r}")
        value = remaining.pop(0)
        if verb == "d":
            return str(int(_require_number(value, "format")))
        if verb == "f":
            return f"{float(_require_number(value, 'format')):f}"
        text = format_primitive(value)
        if text is None:
            raise FunctionArgumentError(f"format() cannot format a {_type_name(value)} with %{verb}")
        return text

    result = _FORMAT_VERB.sub(_substitute, spec)
    if remaining:
        raise FunctionArgumentError(f"format() has too many arguments for {spec!r}")
    return result


def _coalesce(*values: Any) -> Any:
    for value in values:
        if value is not None and value != "":
            return value
    raise FunctionArgumentError("coalesce() got no non-null, non-empty-string arguments")


def _tostring(value: Any) -> str | None:
    if value is None:
        return None
    text = format_primitive(value)
    if text is None:
        raise FunctionArgumentError(f"tostring() cannot convert a {_type_name(value)}")
    return text


def _tonumber(value: Any) -> int | float | None:
    if value is None:
        return None
    if isinstance(value, str):
        try:
            return int(value)
        except ValueError:
            pass
        try:
            return float(value)
        except ValueError:
            raise FunctionArgumentError(f"tonumber() cannot convert {value!r} to a number") from None
    return _require_number(value, "tonumber")


def _max(*numbers: Any) -> int | float:
    if not numbers:
        raise FunctionArgumentError("max() requires at least one number")
    return max(_require_number(n, "max") for n in numbers)


def _min(*numbers: Any) -> int | float:
    if not numbers:
        raise FunctionArgumentError("min() requires at least one number")
    return min(_require_number(n, "min") for n in numbers)


def _keys(value: Any) -> list[str]:
    return sorted(_require_map(value, "keys"))


def _values(value: Any) -> list[Any]:
    mapping = _require_map(value, "values")
    return [mapping[key] for key in sorted(mapping)]


def _lookup(mapping: Any, key: Any, *default: Any) -> Any:
    mapping = _require_map(mapping, "lookup")
    key = _require_str(key, "lookup")
    if len(default) > 1:
        raise FunctionArgumentError("lookup() accepts at most one default value")
    if key in mapping:
        return mapping[key]
    if default:
        return default[0]
    raise FunctionArgumentError(f"lookup() failed to find key {key!r}")


def _basename(path: Any) -> str:
    return PurePath(_require_str(path, "basename")).name


def _dirname(path: Any) -> str:
    return str(PurePath(_require_str(path, "dirname")).parent)


FUNCTIONS: Mapping[str, Callable[..., Any]] = {
    "basename": _basename,
    "coalesce": _coalesce,
    "concat": _concat,
    "dirname": _dirname,
    "format": _format,
    "join": _join,
    "keys": _keys,
    "length": _length,
    "lookup": _lookup,
    "lower": _lower,
    "max": _max,
    "merge": _merge,
    "min": _min,
    "split": _split,
    "tonumber": _tonumber,
    "tostring": _tostring,
    "upper": _upper,
    "values": _values,
}
