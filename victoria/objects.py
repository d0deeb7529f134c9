"""Runtime values for the Victoria interpreter.

Every value a program can hold is an instance of one of the classes in
this module. Each class exposes a ``type`` tag (``"INTEGER"``,
``"ARRAY"``...) used in diagnostics and by the ``type()`` builtin, and an
``inspect()`` method giving the text ``print`` writes.

``ReturnValue``, ``Break``, ``Continue`` and ``Error`` are control-flow
signals rather than values: the evaluator hands them back up the call
stack until something consumes them, and they are never stored in a
variable or a container.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterator, List, Optional

from .errors import Diagnostic

if TYPE_CHECKING:
    from . import ast
    from .environment import Environment


INTEGER_OBJ = "INTEGER"
FLOAT_OBJ = "FLOAT"
BOOLEAN_OBJ = "BOOLEAN"
NULL_OBJ = "NULL"
STRING_OBJ = "STRING"
CHAR_OBJ = "CHAR"
BYTE_OBJ = "BYTE"
RUNE_OBJ = "RUNE"
ARRAY_OBJ = "ARRAY"
HASH_OBJ = "HASH"
FUNCTION_OBJ = "FUNCTION"
ARROW_FUNCTION_OBJ = "ARROW_FUNCTION"
BUILTIN_OBJ = "BUILTIN"
STRUCT_OBJ = "STRUCT"
INSTANCE_OBJ = "STRUCT_INSTANCE"
ENUM_OBJ = "ENUM"
ENUM_VALUE_OBJ = "ENUM_VALUE"
RANGE_OBJ = "RANGE"
RETURN_VALUE_OBJ = "RETURN_VALUE"
ERROR_OBJ = "ERROR"
BREAK_OBJ = "BREAK"
CONTINUE_OBJ = "CONTINUE"

_MASK64 = (1 << 64) - 1
_FNV_OFFSET = 0xcbf29ce484222325
_FNV_PRIME = 0x100000001b3


def fnv1a_64(data: bytes) -> int:
    h = _FNV_OFFSET
    for b in data:
        h ^= b
        h = (h * _FNV_PRIME) & _MASK64
    return h


def format_float(value: float) -> str:
    """Shortest text for a float; very large or small magnitudes use exponent form."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    d = Decimal(repr(value)).normalize()
    sign, digits, exp = d.as_tuple()
    point = len(digits) + exp - 1
    prefix = "-" if sign else ""
    if point < -4 or point >= 21:
        mantissa = str(digits[0])
        if len(digits) > 1:
            mantissa += "." + "".join(str(x) for x in digits[1:])
        return f"{prefix}{mantissa}e{'-' if point < 0 else '+'}{abs(point):02d}"
    return format(d, "f")


@dataclass(frozen=True)
class HashKey:
    """Key under which a hashable value is stored in a :class:`Hash`."""
    type: str
    value: int


class Object:
    type = ""

    def inspect(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.inspect()


@dataclass
class Integer(Object):
    value: int
    type = INTEGER_OBJ

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value & _MASK64)


@dataclass
class Float(Object):
    value: float
    type = FLOAT_OBJ

    def inspect(self) -> str:
        return format_float(self.value)


@dataclass
class Boolean(Object):
    value: bool
    type = BOOLEAN_OBJ

    def inspect(self) -> str:
        return "true" if self.value else "false"

    def hash_key(self) -> HashKey:
        return HashKey(self.type, 1 if self.value else 0)


class Null(Object):
    type = NULL_OBJ

    def inspect(self) -> str:
        return "null"

    def __repr__(self) -> str:
        return "Null()"


@dataclass
class String(Object):
    value: str
    type = STRING_OBJ

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.type, fnv1a_64(self.value.encode("utf-8")))


@dataclass
class Char(Object):
    value: str
    type = CHAR_OBJ

    def inspect(self) -> str:
        return self.value

    def hash_key(self) -> HashKey:
        return HashKey(self.type, ord(self.value))


@dataclass
class Byte(Object):
    value: int
    type = BYTE_OBJ

    def inspect(self) -> str:
        return str(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value)


@dataclass
class Rune(Object):
    value: int
    type = RUNE_OBJ

    def inspect(self) -> str:
        return chr(self.value)

    def hash_key(self) -> HashKey:
        return HashKey(self.type, self.value)


@dataclass
class Array(Object):
    elements: List[Object] = field(default_factory=list)
    type = ARRAY_OBJ

    def inspect(self) -> str:
        return "[" + ", ".join(e.inspect() for e in self.elements) + "]"


@dataclass
class HashPair:
    key: Object
    value: Object


@dataclass
class Hash(Object):
    """A map from hashable values to values. Iteration follows insertion order."""
    pairs: Dict[HashKey, HashPair] = field(default_factory=dict)
    type = HASH_OBJ

    def inspect(self) -> str:
        return "{" + ", ".join(f"{p.key.inspect()}: {p.value.inspect()}" for p in self.pairs.values()) + "}"

    def get(self, key: Object) -> Optional[Object]:
        pair = self.pairs.get(key.hash_key())
        return pair.value if pair is not None else None

    def set(self, key: Object, value: Object) -> None:
        self.pairs[key.hash_key()] = HashPair(key, value)

    @classmethod
    def from_dict(cls, entries: Dict[str, Object]) -> "Hash":
        h = cls()
        for name, value in entries.items():
            h.set(String(name), value)
        return h


@dataclass(eq=False)
class Function(Object):
    parameters: List["ast.Identifier"]
    body: "ast.BlockStatement"
    env: "Environment"
    typed_parameters: Optional[List["ast.TypedParameter"]] = None
    return_types: Optional[List[Any]] = None
    name: str = ""
    type = FUNCTION_OBJ

    def inspect(self) -> str:
        if self.typed_parameters:
            params = [str(p) for p in self.typed_parameters]
        else:
            params = [p.value for p in self.parameters]
        text = "define(" + ", ".join(params) + ")"
        if self.return_types:
            text += " -> " + ", ".join(str(t) for t in self.return_types)
        return text + " " + str(self.body)

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(eq=False)
class ArrowFunction(Object):
    parameters: List["ast.Identifier"]
    body: "ast.Expression"
    env: "Environment"
    type = ARROW_FUNCTION_OBJ

    def inspect(self) -> str:
        if len(self.parameters) == 1:
            params = self.parameters[0].value
        else:
            params = "(" + ", ".join(p.value for p in self.parameters) + ")"
        return f"{params} => {self.body}"

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(eq=False)
class Struct(Object):
    name: str
    fields: List[str]
    methods: Dict[str, Function] = field(default_factory=dict)
    type = STRUCT_OBJ

    def inspect(self) -> str:
        return "struct " + self.name


@dataclass(eq=False)
class StructInstance(Object):
    struct: Struct
    fields: Dict[str, Object]
    type = INSTANCE_OBJ

    def inspect(self) -> str:
        body = ", ".join(f"{name}: {self.fields[name].inspect()}" for name in self.struct.fields
                         if name in self.fields)
        return f"{self.struct.name} {{ {body} }}"


@dataclass
class EnumValue(Object):
    enum_name: str
    name: str
    value: int
    type = ENUM_VALUE_OBJ

    def inspect(self) -> str:
        return f"{self.enum_name}.{self.name}"

    def hash_key(self) -> HashKey:
        return HashKey(self.type, fnv1a_64(f"{self.enum_name}.{self.name}".encode("utf-8")))


@dataclass(eq=False)
class Enum(Object):
    name: str
    values: Dict[str, EnumValue] = field(default_factory=dict)
    type = ENUM_OBJ

    def inspect(self) -> str:
        return f"enum {self.name} {{ " + ", ".join(self.values) + " }"


@dataclass
class Range(Object):
    start: int
    end: int
    type = RANGE_OBJ

    def inspect(self) -> str:
        return f"{self.start}..{self.end}"

    def __iter__(self) -> Iterator[int]:
        step = 1 if self.start <= self.end else -1
        return iter(range(self.start, self.end, step))

    def __len__(self) -> int:
        return abs(self.end - self.start)


@dataclass
class ReturnValue(Object):
    value: Object
    type = RETURN_VALUE_OBJ

    def inspect(self) -> str:
        return self.value.inspect()


@dataclass(eq=False)
class Error(Object):
    """A runtime error travelling up the evaluator as a signal."""
    diagnostic: Diagnostic
    type = ERROR_OBJ

    @property
    def message(self) -> str:
        return self.diagnostic.message

    def inspect(self) -> str:
        return "ERROR: " + self.message


class Break(Object):
    type = BREAK_OBJ

    def inspect(self) -> str:
        return "break"


class Continue(Object):
    type = CONTINUE_OBJ

    def inspect(self) -> str:
        return "continue"


NULL = Null()
TRUE = Boolean(True)
FALSE = Boolean(False)
BREAK = Break()
CONTINUE = Continue()

SIGNALS = (ReturnValue, Error, Break, Continue)


def native_bool(value: bool) -> Boolean:
    return TRUE if value else FALSE


def is_error(obj: Optional[Object]) -> bool:
    return isinstance(obj, Error)


def is_signal(obj: Optional[Object]) -> bool:
    return isinstance(obj, SIGNALS)


def is_hashable(obj: Object) -> bool:
    return callable(getattr(obj, "hash_key", None))


def is_truthy(obj: Object) -> bool:
    """Null, false, zero, and empty strings or collections are falsy."""
    if obj is NULL or isinstance(obj, Null):
        return False
    if isinstance(obj, Boolean):
        return obj.value
    if isinstance(obj, (Integer, Float, Byte)):
        return obj.value != 0
    if isinstance(obj, String):
        return obj.value != ""
    if isinstance(obj, Array):
        return len(obj.elements) > 0
    if isinstance(obj, Hash):
        return len(obj.pairs) > 0
    return True


def objects_equal(a: Object, b: Object) -> bool:
    """Structural equality as used by ``==``, ``switch`` and ``contains``.

    Integers and floats compare by numeric value; values of any other
    pair of different types are never equal.
    """
    if isinstance(a, (Integer, Float)) and isinstance(b, (Integer, Float)):
        return a.value == b.value
    if type(a) is not type(b):
        return False
    if isinstance(a, Null):
        return True
    if isinstance(a, (Boolean, String, Char, Byte, Rune)):
        return a.value == b.value
    if isinstance(a, Array):
        return len(a.elements) == len(b.elements) and all(
            objects_equal(x, y) for x, y in zip(a.elements, b.elements))
    if isinstance(a, Hash):
        if a.pairs.keys() != b.pairs.keys():
            return False
        return all(objects_equal(p.value, b.pairs[k].value) for k, p in a.pairs.items())
    if isinstance(a, EnumValue):
        return a.enum_name == b.enum_name and a.name == b.name
    if isinstance(a, Range):
        return a.start == b.start and a.end == b.end
    if isinstance(a, StructInstance):
        return a.struct is b.struct and a.fields.keys() == b.fields.keys() and all(
            objects_equal(v, b.fields[k]) for k, v in a.fields.items())
    return a is b


def from_native(value: Any) -> Object:
    """Convert a plain Python value into the matching Victoria object."""
    if value is None:
        return NULL
    if isinstance(value, Object):
        return value
    if isinstance(value, bool):
        return native_bool(value)
    if isinstance(value, int):
        return Integer(value)
    if isinstance(value, float):
        return Float(value)
    if isinstance(value, str):
        return String(value)
    if isinstance(value, (list, tuple)):
        return Array([from_native(v) for v in value])
    if isinstance(value, dict):
        h = Hash()
        for k, v in value.items():
            h.set(from_native(k), from_native(v))
        return h
    raise TypeError(f"cannot convert {type(value).__name__} to a Victoria value")


def to_native(obj: Object) -> Any:
    """Unwrap a Victoria object into plain Python data."""
    if isinstance(obj, Null):
        return None
    if isinstance(obj, (Integer, Float, Boolean, String, Char, Byte)):
        return obj.value
    if isinstance(obj, Rune):
        return chr(obj.value)
    if isinstance(obj, Array):
        return [to_native(e) for e in obj.elements]
    if isinstance(obj, Range):
        return list(obj)
    if isinstance(obj, Hash):
        return {to_native(p.key): to_native(p.value) for p in obj.pairs.values()}
    if isinstance(obj, StructInstance):
        return {name: to_native(value) for name, value in obj.fields.items()}
    if isinstance(obj, EnumValue):
        return obj.value
    return obj


BuiltinCallable = Callable[[List[Object]], Object]
