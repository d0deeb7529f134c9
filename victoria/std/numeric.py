"""The ``math`` module."""

import math
import random
from typing import Callable, List, Optional

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import Object, Integer, Float, Error, Hash
from .core import arity_error, type_error


def _as_float(name: str, arg: Object):
    if isinstance(arg, (Integer, Float)):
        return float(arg.value)
    return type_error(name, 0, "INTEGER or FLOAT", arg)


def _unary(name: str, fn: Callable[[float], float]) -> BuiltinFunction:
    def apply(args: List[Object]) -> Object:
        x = _as_float(name, args[0])
        if isinstance(x, Error):
            return x
        try:
            return Float(fn(x))
        except (ValueError, OverflowError):
            return Error(catalog.module_error("math", f"{name}({args[0].inspect()}) is undefined"))
    return BuiltinFunction(name, 1, apply)


def _rounding(name: str, fn: Callable[[float], float]) -> BuiltinFunction:
    def apply(args: List[Object]) -> Object:
        arg = args[0]
        if isinstance(arg, Integer):
            return arg
        if not isinstance(arg, Float):
            return type_error(name, 0, "INTEGER or FLOAT", arg)
        if math.isnan(arg.value) or math.isinf(arg.value):
            return Error(catalog.conversion_error(arg.inspect(), "integer"))
        return Integer(int(fn(arg.value)))
    return BuiltinFunction(name, 1, apply)


def _round_half_away(x: float) -> float:
    return math.floor(x + 0.5) if x >= 0 else math.ceil(x - 0.5)


def populate_math_module(rng: Optional[random.Random] = None) -> Hash:
    """Build the ``math`` module hash."""
    if rng is None:
        rng = random.Random()

    def math_abs(args: List[Object]) -> Object:
        arg = args[0]
        if isinstance(arg, Integer):
            return Integer(abs(arg.value))
        if isinstance(arg, Float):
            return Float(abs(arg.value))
        return type_error("abs", 0, "INTEGER or FLOAT", arg)

    def math_pow(args: List[Object]) -> Object:
        base = _as_float("pow", args[0])
        if isinstance(base, Error):
            return base
        exp = _as_float("pow", args[1])
        if isinstance(exp, Error):
            return type_error("pow", 1, "INTEGER or FLOAT", args[1])
        try:
            return Float(math.pow(base, exp))
        except (ValueError, OverflowError):
            return Error(catalog.module_error("math", f"pow({args[0].inspect()}, {args[1].inspect()}) is undefined"))

    def extreme(name: str, pick: Callable):
        def apply(args: List[Object]) -> Object:
            if len(args) < 2:
                return Error(catalog.invalid_argument(name, 2, len(args)))
            for i, arg in enumerate(args):
                if not isinstance(arg, (Integer, Float)):
                    return type_error(name, i, "INTEGER or FLOAT", arg)
            best = pick(args, key=lambda a: a.value)
            if all(isinstance(a, Integer) for a in args):
                return best
            return Float(float(best.value))
        return BuiltinFunction(name, None, apply)

    def math_random(args: List[Object]) -> Object:
        err = arity_error("random", args, 0, 1, 2)
        if err:
            return err
        if not args:
            return Float(rng.random())
        for i, arg in enumerate(args):
            if not isinstance(arg, Integer):
                return type_error("random", i, "INTEGER", arg)
        if len(args) == 1:
            n = args[0].value
            if n <= 0:
                return Error(catalog.range_error("argument to random must be positive"))
            return Integer(rng.randrange(n))
        low, high = args[0].value, args[1].value
        if high < low:
            return Error(catalog.range_error("max must be >= min in random(min, max)"))
        return Integer(rng.randint(low, high))

    entries = {
        "pi": Float(math.pi),
        "e": Float(math.e),
    }
    functions = [
        BuiltinFunction("abs", 1, math_abs),
        _unary("sin", math.sin),
        _unary("cos", math.cos),
        _unary("tan", math.tan),
        _unary("sqrt", math.sqrt),
        _unary("log", math.log),
        _unary("log10", math.log10),
        BuiltinFunction("pow", 2, math_pow),
        _rounding("floor", math.floor),
        _rounding("ceil", math.ceil),
        _rounding("round", _round_half_away),
        extreme("min", min),
        extreme("max", max),
        BuiltinFunction("random", None, math_random),
    ]
    for fn in functions:
        entries[fn.name] = fn
    return Hash.from_dict(entries)
