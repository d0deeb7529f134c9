"""The ``path`` module, a thin layer over :mod:`os.path`."""

import os
from typing import Callable, List

from .. import catalog
from ..builtin_function import BuiltinFunction
from ..objects import Object, String, Error, Hash, native_bool
from .core import type_error


def clean(path: str) -> str:
    """Normalise ``path`` the way a file-path join does; empty becomes ``.``."""
    return os.path.normpath(path) if path else "."


def base(path: str) -> str:
    if path == "":
        return "."
    stripped = path.rstrip(os.sep)
    if stripped == "":
        return os.sep
    return os.path.basename(stripped)


def directory(path: str) -> str:
    return clean(os.path.dirname(path))


def extension(path: str) -> str:
    name = os.path.basename(path)
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def populate_path_module() -> Hash:
    """Build the ``path`` module hash."""

    def string_fn(name: str, fn: Callable[[str], Object]) -> BuiltinFunction:
        def apply(args: List[Object]) -> Object:
            if not isinstance(args[0], String):
                return type_error(f"path.{name}", 0, "STRING", args[0])
            return fn(args[0].value)
        return BuiltinFunction(name, 1, apply)

    def path_join(args: List[Object]) -> Object:
        parts = []
        for i, arg in enumerate(args):
            if not isinstance(arg, String):
                return type_error("path.join", i, "STRING", arg)
            if arg.value:
                parts.append(arg.value)
        if not parts:
            return String("")
        return String(clean(os.path.join(*parts)))

    def path_abs(path: str) -> Object:
        try:
            return String(os.path.abspath(path))
        except OSError as e:
            return Error(catalog.module_error("path", f"could not get absolute path: {e}"))

    functions = [
        BuiltinFunction("join", None, path_join),
        string_fn("base", lambda p: String(base(p))),
        string_fn("dir", lambda p: String(directory(p))),
        string_fn("ext", lambda p: String(extension(p))),
        string_fn("abs", path_abs),
        string_fn("isAbs", lambda p: native_bool(os.path.isabs(p))),
    ]
    return Hash.from_dict({fn.name: fn for fn in functions})
