from dataclasses import dataclass
from typing import Any, Optional

from .objects import BUILTIN_OBJ, Object


@dataclass(eq=False)
class BuiltinFunction(Object):
    name: str
    arity: Optional[int]
    fn: Any
    type = BUILTIN_OBJ

    def inspect(self) -> str:
        return "builtin function"

    def __repr__(self) -> str:
        return f"<builtin {self.name}>"
