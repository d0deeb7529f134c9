"""The ``json`` module."""

import json
from typing import Any, List

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import (
    Object, Integer, Float, Boolean, String, Null, Array, Hash, Error,
    TRUE, FALSE, from_native,
)
from .core import type_error


def _integral(value: Any) -> Any:
    if isinstance(value, float) and value.is_integer() and abs(value) < 2 ** 63:
        return int(value)
    if isinstance(value, list):
        return [_integral(v) for v in value]
    if isinstance(value, dict):
        return {k: _integral(v) for k, v in value.items()}
    return value


def to_json_data(obj: Object) -> Any:
    """Plain data for ``json.dumps``. Hash keys become their printed text."""
    if isinstance(obj, Null):
        return None
    if isinstance(obj, (Integer, Float, Boolean, String)):
        return obj.value
    if isinstance(obj, Array):
        return [to_json_data(e) for e in obj.elements]
    if isinstance(obj, Hash):
        return {p.key.inspect(): to_json_data(p.value) for p in obj.pairs.values()}
    return obj.inspect()


def parse_json(text: str) -> Object:
    try:
        data = json.loads(text)
    except ValueError as e:
        return Error(catalog.module_error("json", f"failed to parse JSON: {e}"))
    # Whole-number floats come back as integers.
    return from_native(_integral(data))


def stringify_json(obj: Object, indent: str = "") -> Object:
    try:
        if indent:
            text = json.dumps(to_json_data(obj), indent=indent, sort_keys=True, ensure_ascii=False, allow_nan=False)
        else:
            text = json.dumps(to_json_data(obj), separators=(",", ":"), sort_keys=True, ensure_ascii=False,
                              allow_nan=False)
    except ValueError as e:
        return Error(catalog.module_error("json", f"failed to stringify JSON: {e}"))
    return String(text)


def populate_json_module() -> Hash:
    """Build the ``json`` module hash."""

    def json_parse(args: List[Object]) -> Object:
        if not isinstance(args[0], String):
            return type_error("json.parse", 0, "STRING", args[0])
        return parse_json(args[0].value)

    def json_stringify(args: List[Object]) -> Object:
        if not 1 <= len(args) <= 2:
            return Error(catalog.invalid_argument("json.stringify", 1 if not args else 2, len(args)))
        indent = ""
        if len(args) == 2:
            if isinstance(args[1], Integer):
                indent = " " * max(args[1].value, 0)
            elif isinstance(args[1], String):
                indent = args[1].value
        return stringify_json(args[0], indent)

    def json_valid(args: List[Object]) -> Object:
        if not isinstance(args[0], String):
            return type_error("json.valid", 0, "STRING", args[0])
        try:
            json.loads(args[0].value)
        except ValueError:
            return FALSE
        return TRUE

    return Hash.from_dict({
        "parse": BuiltinFunction("parse", 1, json_parse),
        "stringify": BuiltinFunction("stringify", None, json_stringify),
        "valid": BuiltinFunction("valid", 1, json_valid),
    })
