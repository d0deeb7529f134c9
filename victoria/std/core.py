"""The builtin functions every Victoria program starts with.

Each builtin is a closure over the running interpreter, wrapped in a
:class:`~victoria.builtin_function.BuiltinFunction`. Builtins report bad
input by returning an ``Error``; the interpreter attaches the call site
to it.
"""

from __future__ import annotations

import builtins
import json
import re
from typing import TYPE_CHECKING, Dict, List, Optional, Union

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import (
    NULL, TRUE, FALSE,
    Object, Integer, Float, Boolean, String, Char, Byte, Rune, Array, Hash, Range,
    Function, ArrowFunction, Error,
    format_float, native_bool, is_truthy, objects_equal,
)

if TYPE_CHECKING:
    from ..interpreter import Interpreter

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1

Result = Union[Object, Error]


def arity_error(name: str, args: List[Object], *allowed: int) -> Optional[Error]:
    if len(args) in allowed:
        return None
    expected = allowed[0] if len(args) < allowed[0] else allowed[-1]
    return Error(catalog.invalid_argument(name, expected, len(args)))


def type_error(name: str, position: int, expected: str, got: Object) -> Error:
    return Error(catalog.argument_type(name, str(position + 1), expected, got.type))


def first_char(name: str, arg: Object) -> Union[str, Error]:
    """The character a character builtin works on."""
    if isinstance(arg, (String, Char)):
        if arg.value == "":
            return Error(catalog.character_conversion("", f"{name} of an empty string"))
        return arg.value[0]
    if isinstance(arg, Rune):
        return chr(arg.value)
    return type_error(name, 0, "CHAR, RUNE or STRING", arg)


def parse_int(text: str) -> Optional[int]:
    s = text.strip()
    try:
        value = int(s, 0)
    except ValueError:
        # Leading-zero literals are octal, as in C.
        if re.fullmatch(r"[+-]?0[0-7_]+", s):
            value = int(s.replace("_", ""), 8)
        else:
            return None
    if not INT64_MIN <= value <= INT64_MAX:
        return None
    return value


###############################################################################
# format()
###############################################################################

FORMAT_VERB = re.compile(r"%([-+ 0#]*)(\d+)?(?:\.(\d*))?([a-zA-Z%])")


def _number(arg: Object) -> Optional[Union[int, float]]:
    if isinstance(arg, (Integer, Float, Byte, Rune)):
        return arg.value
    if isinstance(arg, Char):
        return ord(arg.value)
    return None


def _pad(text: str, flags: str, width: Optional[str]) -> str:
    if not width:
        return text
    w = int(width)
    if "-" in flags:
        return text.ljust(w)
    return text.rjust(w)


def _numeric_spec(flags: str, width: Optional[str], precision: Optional[str], conv: str) -> str:
    spec = ""
    if "-" in flags:
        spec += "<"
    if "+" in flags:
        spec += "+"
    elif " " in flags:
        spec += " "
    if "#" in flags:
        spec += "#"
    if "0" in flags and "-" not in flags:
        spec += "0"
    if width:
        spec += width
    if precision is not None:
        spec += "." + (precision or "0")
    return spec + conv


def _bad_verb(verb: str, arg: Object) -> str:
    return f"%!{verb}({arg.type}={arg.inspect()})"


def format_value(verb: str, flags: str, width: Optional[str], precision: Optional[str], arg: Object) -> str:
    if verb in ("v", "s"):
        text = arg.inspect()
        if verb == "s" and precision:
            text = text[:int(precision)]
        return _pad(text, flags, width)
    if verb == "t":
        if not isinstance(arg, Boolean):
            return _bad_verb(verb, arg)
        return _pad(arg.inspect(), flags, width)
    if verb == "q":
        if isinstance(arg, (Char, Rune)):
            return _pad("'" + arg.inspect() + "'", flags, width)
        if not isinstance(arg, String):
            return _bad_verb(verb, arg)
        return _pad(json.dumps(arg.value, ensure_ascii=False), flags, width)
    if verb == "c":
        n = _number(arg)
        if not isinstance(n, int) or n < 0 or n > 0x10FFFF:
            return _bad_verb(verb, arg)
        return _pad(chr(n), flags, width)

    if verb in ("x", "X") and isinstance(arg, String):
        text = arg.value.encode("utf-8").hex()
        return _pad(text.upper() if verb == "X" else text, flags, width)

    n = _number(arg)
    if n is None:
        return _bad_verb(verb, arg)
    if verb in ("d", "x", "X", "o", "b"):
        if not isinstance(n, int):
            return _bad_verb(verb, arg)
        return format(n, _numeric_spec(flags, width, None, "" if verb == "d" else verb))
    if verb in ("f", "F", "e", "E", "g", "G"):
        if verb in ("g", "G") and precision is None:
            text = format_float(float(n))
            if "+" in flags and n >= 0:
                text = "+" + text
            return _pad(text, flags, width)
        if precision is None:
            precision = "6"
        return format(float(n), _numeric_spec(flags, width, precision, verb))
    return f"%!{verb}(BADVERB)"


def go_format(template: str, args: List[Object]) -> str:
    """Expand printf-style verbs (``%d``, ``%5.2f``, ``%v``...) against ``args``."""
    remaining = list(args)
    out: List[str] = []
    pos = 0
    for m in FORMAT_VERB.finditer(template):
        out.append(template[pos:m.start()])
        pos = m.end()
        flags, width, precision, verb = m.groups()
        if verb == "%":
            out.append("%")
            continue
        if not remaining:
            out.append(f"%!{verb}(MISSING)")
            continue
        out.append(format_value(verb, flags, width, precision, remaining.pop(0)))
    out.append(template[pos:])
    if remaining:
        out.append("%!(EXTRA " + ", ".join(f"{a.type}={a.inspect()}" for a in remaining) + ")")
    return "".join(out)


###############################################################################
# Builtins
###############################################################################

def core_builtins(interpreter: "Interpreter") -> Dict[str, BuiltinFunction]:
    """Build the builtin table for one interpreter."""

    def param_count(fn: Object) -> int:
        if isinstance(fn, (Function, ArrowFunction)):
            return fn.arity
        if isinstance(fn, BuiltinFunction) and fn.arity is not None:
            return fn.arity
        return 1

    # Output and input

    def std_print(args: List[Object]) -> Result:
        for arg in args:
            print(arg.inspect())
        return NULL

    def std_input(args: List[Object]) -> Result:
        err = arity_error("input", args, 0, 1)
        if err:
            return err
        prompt = args[0].inspect() if args else ""
        try:
            return String(builtins.input(prompt).strip())
        except EOFError:
            return String("")

    def std_format(args: List[Object]) -> Result:
        if not args:
            return Error(catalog.invalid_argument("format", 1, 0))
        if not isinstance(args[0], String):
            return type_error("format", 0, "STRING", args[0])
        return String(go_format(args[0].value, args[1:]))

    # Introspection and conversion

    def std_len(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, String):
            return Integer(len(arg.value))
        if isinstance(arg, Array):
            return Integer(len(arg.elements))
        if isinstance(arg, Hash):
            return Integer(len(arg.pairs))
        if isinstance(arg, Range):
            return Integer(len(arg))
        return type_error("len", 0, "STRING, ARRAY or HASH", arg)

    def std_type(args: List[Object]) -> Result:
        return String(args[0].type)

    def std_string(args: List[Object]) -> Result:
        return String(args[0].inspect())

    def std_bool(args: List[Object]) -> Result:
        return native_bool(is_truthy(args[0]))

    def std_int(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, Integer):
            return arg
        if isinstance(arg, String):
            value = parse_int(arg.value)
            if value is None:
                return Error(catalog.conversion_error(arg.value, "integer"))
            return Integer(value)
        if isinstance(arg, Boolean):
            return Integer(1 if arg.value else 0)
        if isinstance(arg, Float):
            if arg.value != arg.value or arg.value in (float("inf"), float("-inf")):
                return Error(catalog.conversion_error(arg.inspect(), "integer"))
            return Integer(int(arg.value))
        if isinstance(arg, Char):
            return Integer(ord(arg.value))
        if isinstance(arg, (Byte, Rune)):
            return Integer(arg.value)
        return type_error("int", 0, "STRING, FLOAT, BOOLEAN or a character", arg)

    def std_float(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, Float):
            return arg
        if isinstance(arg, Integer):
            return Float(float(arg.value))
        if isinstance(arg, Boolean):
            return Float(1.0 if arg.value else 0.0)
        if isinstance(arg, String):
            try:
                return Float(float(arg.value.strip()))
            except ValueError:
                return Error(catalog.conversion_error(arg.value, "float"))
        return type_error("float", 0, "INTEGER, STRING or BOOLEAN", arg)

    def std_range(args: List[Object]) -> Result:
        err = arity_error("range", args, 1, 2, 3)
        if err:
            return err
        for i, arg in enumerate(args):
            if not isinstance(arg, Integer):
                return Error(catalog.range_error(f"argument {i + 1} to range must be INTEGER, got {arg.type}"))
        values = [a.value for a in args]
        if len(values) == 1:
            values = [0] + values
        start, end = values[0], values[1]
        step = values[2] if len(values) == 3 else 1
        if step == 0:
            return Error(catalog.range_error("range step cannot be zero"))
        return Array([Integer(i) for i in range(start, end, step)])

    # Arrays

    def array_arg(name: str, args: List[Object]) -> Union[Array, Error]:
        if not isinstance(args[0], Array):
            return type_error(name, 0, "ARRAY", args[0])
        return args[0]

    def std_first(args: List[Object]) -> Result:
        arr = array_arg("first", args)
        if isinstance(arr, Error):
            return arr
        return arr.elements[0] if arr.elements else NULL

    def std_last(args: List[Object]) -> Result:
        arr = array_arg("last", args)
        if isinstance(arr, Error):
            return arr
        return arr.elements[-1] if arr.elements else NULL

    def std_rest(args: List[Object]) -> Result:
        arr = array_arg("rest", args)
        if isinstance(arr, Error):
            return arr
        return Array(arr.elements[1:]) if arr.elements else NULL

    def std_push(args: List[Object]) -> Result:
        arr = array_arg("push", args)
        if isinstance(arr, Error):
            return arr
        return Array(arr.elements + [args[1]])

    def std_pop(args: List[Object]) -> Result:
        arr = array_arg("pop", args)
        if isinstance(arr, Error):
            return arr
        return Array(arr.elements[:-1]) if arr.elements else NULL

    # Strings and search

    def std_split(args: List[Object]) -> Result:
        for i, arg in enumerate(args):
            if not isinstance(arg, String):
                return type_error("split", i, "STRING", arg)
        text, sep = args[0].value, args[1].value
        parts = list(text) if sep == "" else text.split(sep)
        return Array([String(p) for p in parts])

    def std_join(args: List[Object]) -> Result:
        arr = array_arg("join", args)
        if isinstance(arr, Error):
            return arr
        if not isinstance(args[1], String):
            return type_error("join", 1, "STRING", args[1])
        parts = []
        for element in arr.elements:
            if not isinstance(element, String):
                return Error(catalog.argument_type("join", "1", "ARRAY of STRING", f"{element.type} element"))
            parts.append(element.value)
        return String(args[1].value.join(parts))

    def search(name: str, args: List[Object]) -> Union[int, Error]:
        container, item = args
        if isinstance(container, Array):
            for i, element in enumerate(container.elements):
                if objects_equal(element, item):
                    return i
            return -1
        if isinstance(container, String):
            if not isinstance(item, (String, Char)):
                return type_error(name, 1, "STRING", item)
            return container.value.find(item.value)
        if name == "contains" and isinstance(container, Hash):
            if not callable(getattr(item, "hash_key", None)):
                return Error(catalog.hash_key_error(item.type))
            return 0 if container.get(item) is not None else -1
        return type_error(name, 0, "ARRAY or STRING", container)

    def std_contains(args: List[Object]) -> Result:
        found = search("contains", args)
        if isinstance(found, Error):
            return found
        return native_bool(found >= 0)

    def std_index(args: List[Object]) -> Result:
        found = search("index", args)
        if isinstance(found, Error):
            return found
        return Integer(found)

    def std_upper(args: List[Object]) -> Result:
        if not isinstance(args[0], String):
            return type_error("upper", 0, "STRING", args[0])
        return String(args[0].value.upper())

    def std_lower(args: List[Object]) -> Result:
        if not isinstance(args[0], String):
            return type_error("lower", 0, "STRING", args[0])
        return String(args[0].value.lower())

    # Hashes

    def std_keys(args: List[Object]) -> Result:
        if not isinstance(args[0], Hash):
            return type_error("keys", 0, "HASH", args[0])
        return Array([p.key for p in args[0].pairs.values()])

    def std_values(args: List[Object]) -> Result:
        if not isinstance(args[0], Hash):
            return type_error("values", 0, "HASH", args[0])
        return Array([p.value for p in args[0].pairs.values()])

    # Higher-order functions

    def callable_arg(name: str, args: List[Object]) -> Optional[Error]:
        if not isinstance(args[0], Array):
            return type_error(name, 0, "ARRAY", args[0])
        if not isinstance(args[1], (Function, ArrowFunction, BuiltinFunction)):
            return type_error(name, 1, "FUNCTION", args[1])
        return None

    def std_map(args: List[Object]) -> Result:
        err = callable_arg("map", args)
        if err:
            return err
        fn = args[1]
        with_index = param_count(fn) > 1
        results = []
        for i, element in enumerate(args[0].elements):
            result = interpreter.apply_function(fn, [element, Integer(i)] if with_index else [element])
            if isinstance(result, Error):
                return result
            results.append(result)
        return Array(results)

    def std_filter(args: List[Object]) -> Result:
        err = callable_arg("filter", args)
        if err:
            return err
        fn = args[1]
        with_index = param_count(fn) > 1
        kept = []
        for i, element in enumerate(args[0].elements):
            result = interpreter.apply_function(fn, [element, Integer(i)] if with_index else [element])
            if isinstance(result, Error):
                return result
            if is_truthy(result):
                kept.append(element)
        return Array(kept)

    def std_reduce(args: List[Object]) -> Result:
        err = arity_error("reduce", args, 2, 3)
        if err:
            return err
        err = callable_arg("reduce", args)
        if err:
            return err
        elements = args[0].elements
        fn = args[1]
        if len(args) == 3:
            acc, start = args[2], 0
        elif elements:
            acc, start = elements[0], 1
        else:
            return Error(catalog.empty_collection("reduce", "ARRAY"))
        with_index = param_count(fn) > 2
        for i in range(start, len(elements)):
            call_args = [acc, elements[i]]
            if with_index:
                call_args.append(Integer(i))
            acc = interpreter.apply_function(fn, call_args)
            if isinstance(acc, Error):
                return acc
        return acc

    # Characters

    def std_char(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, (Integer, Byte, Rune)):
            if not 0 <= arg.value <= 0x10FFFF:
                return Error(catalog.character_conversion(arg.inspect(), "convert to char"))
            return Char(chr(arg.value))
        ch = first_char("char", arg)
        return ch if isinstance(ch, Error) else Char(ch)

    def std_byte(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, (Integer, Rune)):
            return Byte(arg.value & 0xFF)
        if isinstance(arg, Byte):
            return arg
        if isinstance(arg, String):
            if arg.value == "":
                return Error(catalog.character_conversion("", "convert an empty string to byte"))
            return Byte(arg.value.encode("utf-8")[0])
        if isinstance(arg, Char):
            return Byte(ord(arg.value) & 0xFF)
        return type_error("byte", 0, "INTEGER, STRING or a character", arg)

    def std_rune(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, (Integer, Byte)):
            return Rune(arg.value)
        if isinstance(arg, Rune):
            return arg
        ch = first_char("rune", arg)
        return ch if isinstance(ch, Error) else Rune(ord(ch))

    def std_ord(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, (Byte, Rune)):
            return Integer(arg.value)
        ch = first_char("ord", arg)
        return ch if isinstance(ch, Error) else Integer(ord(ch))

    def std_chr(args: List[Object]) -> Result:
        arg = args[0]
        if isinstance(arg, Char):
            return String(arg.value)
        if isinstance(arg, (Integer, Byte, Rune)):
            if not 0 <= arg.value <= 0x10FFFF:
                return Error(catalog.character_conversion(arg.inspect(), "convert to a character"))
            return String(chr(arg.value))
        return type_error("chr", 0, "INTEGER or a character", arg)

    def predicate(name: str, test):
        def check(args: List[Object]) -> Result:
            arg = args[0]
            if isinstance(arg, String) and arg.value == "":
                return FALSE
            ch = first_char(name, arg)
            if isinstance(ch, Error):
                return ch
            return TRUE if test(ch) else FALSE
        return check

    def ascii_letter(ch: str) -> bool:
        return "a" <= ch <= "z" or "A" <= ch <= "Z"

    def case_mapper(name: str, lo: str, hi: str, delta: int):
        def convert(args: List[Object]) -> Result:
            arg = args[0]
            if isinstance(arg, String):
                return String(arg.value.upper() if delta < 0 else arg.value.lower())
            if isinstance(arg, Char):
                return Char(chr(ord(arg.value) + delta)) if lo <= arg.value <= hi else arg
            if isinstance(arg, Rune):
                return Rune(arg.value + delta) if ord(lo) <= arg.value <= ord(hi) else arg
            return type_error(name, 0, "STRING or a character", arg)
        return convert

    table = [
        BuiltinFunction("print", None, std_print),
        BuiltinFunction("input", None, std_input),
        BuiltinFunction("format", None, std_format),
        BuiltinFunction("len", 1, std_len),
        BuiltinFunction("type", 1, std_type),
        BuiltinFunction("string", 1, std_string),
        BuiltinFunction("bool", 1, std_bool),
        BuiltinFunction("int", 1, std_int),
        BuiltinFunction("float", 1, std_float),
        BuiltinFunction("range", None, std_range),
        BuiltinFunction("first", 1, std_first),
        BuiltinFunction("last", 1, std_last),
        BuiltinFunction("rest", 1, std_rest),
        BuiltinFunction("push", 2, std_push),
        BuiltinFunction("pop", 1, std_pop),
        BuiltinFunction("split", 2, std_split),
        BuiltinFunction("join", 2, std_join),
        BuiltinFunction("contains", 2, std_contains),
        BuiltinFunction("index", 2, std_index),
        BuiltinFunction("upper", 1, std_upper),
        BuiltinFunction("lower", 1, std_lower),
        BuiltinFunction("keys", 1, std_keys),
        BuiltinFunction("values", 1, std_values),
        BuiltinFunction("map", 2, std_map),
        BuiltinFunction("filter", 2, std_filter),
        BuiltinFunction("reduce", None, std_reduce),
        BuiltinFunction("char", 1, std_char),
        BuiltinFunction("byte", 1, std_byte),
        BuiltinFunction("rune", 1, std_rune),
        BuiltinFunction("ord", 1, std_ord),
        BuiltinFunction("chr", 1, std_chr),
        BuiltinFunction("isDigit", 1, predicate("isDigit", lambda c: "0" <= c <= "9")),
        BuiltinFunction("isLetter", 1, predicate("isLetter", ascii_letter)),
        BuiltinFunction("isAlpha", 1, predicate("isAlpha", lambda c: ascii_letter(c) or "0" <= c <= "9")),
        BuiltinFunction("isSpace", 1, predicate("isSpace", lambda c: c in " \t\n\r")),
        BuiltinFunction("toUpper", 1, case_mapper("toUpper", "a", "z", -32)),
        BuiltinFunction("toLower", 1, case_mapper("toLower", "A", "Z", 32)),
    ]
    return {fn.name: fn for fn in table}
