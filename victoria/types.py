"""Type annotations and the runtime type checker for Victoria.

Annotations are optional. Where a program writes one (``let x: int``,
``define f(a: []string) -> bool``) the interpreter checks the value
against it with :func:`check_type` when the binding is made, when the
function is called, or when it returns.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .objects import (
    Array, Boolean, Byte, Char, EnumValue, Float, Hash, Integer, Null, Object, Rune, String,
    StructInstance, Function, ArrowFunction,
)
from .builtin_function import BuiltinFunction


BUILTIN_TYPES = ("int", "float", "string", "bool", "char", "byte", "rune", "array", "map", "any", "void")


@dataclass(frozen=True)
class TypeAnnotation:
    """A type written in source.

    ``int`` is ``TypeAnnotation("int")``, ``[]int`` is
    ``TypeAnnotation("array", is_array=True, element_type=TypeAnnotation("int"))``
    and ``map[string]int`` is
    ``TypeAnnotation("map", key_type=TypeAnnotation("string"), element_type=TypeAnnotation("int"))``.
    Any other name refers to a struct or an enum.
    """
    type_name: str
    is_array: bool = False
    element_type: Optional["TypeAnnotation"] = None
    key_type: Optional["TypeAnnotation"] = None

    def __str__(self) -> str:
        if self.is_array:
            return "[]" + (str(self.element_type) if self.element_type else "any")
        if self.is_map:
            return f"map[{self.key_type}]{self.element_type}"
        return self.type_name

    @property
    def is_map(self) -> bool:
        return self.key_type is not None and self.element_type is not None

    @staticmethod
    def array_of(element: "TypeAnnotation") -> "TypeAnnotation":
        return TypeAnnotation("array", is_array=True, element_type=element)

    @staticmethod
    def map_of(key: "TypeAnnotation", value: "TypeAnnotation") -> "TypeAnnotation":
        return TypeAnnotation("map", key_type=key, element_type=value)


def check_type(obj: Object, ann: Optional[TypeAnnotation]) -> bool:
    """Return True when ``obj`` satisfies ``ann``.

    Map annotations only check that the value is a hash; keys and
    values are not inspected.
    """
    if ann is None or ann.type_name == "any":
        return True
    if ann.is_array:
        if not isinstance(obj, Array):
            return False
        if ann.element_type is not None:
            return all(check_type(e, ann.element_type) for e in obj.elements)
        return True
    if ann.is_map:
        return isinstance(obj, Hash)

    name = ann.type_name
    if name == "int":
        return isinstance(obj, Integer)
    if name == "float":
        return isinstance(obj, (Float, Integer))
    if name == "string":
        return isinstance(obj, String)
    if name == "bool":
        return isinstance(obj, Boolean)
    if name == "char":
        return isinstance(obj, Char) or (isinstance(obj, String) and len(obj.value) == 1)
    if name == "byte":
        return isinstance(obj, Byte)
    if name == "rune":
        return isinstance(obj, (Rune, Char, Integer))
    if name == "array":
        return isinstance(obj, Array)
    if name == "map":
        return isinstance(obj, Hash)
    if name == "void":
        return isinstance(obj, Null)
    if isinstance(obj, StructInstance):
        return obj.struct.name == name
    if isinstance(obj, EnumValue):
        return obj.enum_name == name
    return False


def type_name(obj: Object) -> str:
    """The annotation-style name of a value's type, as used in type errors."""
    if isinstance(obj, Integer):
        return "int"
    if isinstance(obj, Float):
        return "float"
    if isinstance(obj, String):
        return "string"
    if isinstance(obj, Boolean):
        return "bool"
    if isinstance(obj, Char):
        return "char"
    if isinstance(obj, Byte):
        return "byte"
    if isinstance(obj, Rune):
        return "rune"
    if isinstance(obj, Array):
        return "array"
    if isinstance(obj, Hash):
        return "map"
    if isinstance(obj, Null):
        return "void"
    if isinstance(obj, (Function, ArrowFunction, BuiltinFunction)):
        return "function"
    if isinstance(obj, StructInstance):
        return obj.struct.name
    if isinstance(obj, EnumValue):
        return obj.enum_name
    return obj.type
