"""Resolution of ``include`` names.

A name is either a built-in module (``std``, ``math``, ``json``,
``time``, ``path``, ``os``) or a Victoria source file found on the
module search path. Either way it is bound in the including scope as a
hash of its exported names.
"""

from __future__ import annotations

import logging
import os
import pathlib
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from .. import catalog
from ..environment import Environment
from ..errors import VictoriaError
from ..objects import Error, Hash, Object, String

if TYPE_CHECKING:
    from ..interpreter import Interpreter

log = logging.getLogger(__name__)

SOURCE_SUFFIX = ".vc"
VERSION = "1.0.0"

ModuleFactory = Callable[[], Hash]


def search_paths(name: str) -> List[pathlib.Path]:
    """Candidate files for ``include "name"``, in lookup order."""
    filename = name if name.endswith(SOURCE_SUFFIX) else name + SOURCE_SUFFIX
    package = pathlib.Path("victoria_modules") / name
    candidates = [
        pathlib.Path(filename),
        package.with_name(package.name + SOURCE_SUFFIX),
        package / "index.vc",
        package / "main.vc",
    ]
    try:
        home = pathlib.Path.home()
    except RuntimeError:
        return candidates
    global_dir = home / ".victoria" / "modules" / name
    candidates.append(global_dir.with_name(global_dir.name + SOURCE_SUFFIX))
    candidates.append(global_dir / "index.vc")
    return candidates


def find_module_file(name: str) -> Optional[pathlib.Path]:
    for path in search_paths(name):
        if path.is_file():
            return path
    return None


class ModuleRegistry:
    """The built-in modules available to one interpreter, plus file loading."""

    def __init__(self, interpreter: "Interpreter"):
        self.interpreter = interpreter
        self.factories: Dict[str, ModuleFactory] = {}
        self.register_builtin_modules()

    def register(self, name: str, factory: ModuleFactory) -> None:
        self.factories[name] = factory

    def register_builtin_modules(self) -> None:
        from .clock import populate_time_module
        from .encoding import populate_json_module
        from .io import populate_os_module
        from .network import populate_net_module
        from .numeric import populate_math_module
        from .paths import populate_path_module

        self.register("std", self.std_module)
        self.register("math", populate_math_module)
        self.register("json", populate_json_module)
        self.register("time", populate_time_module)
        self.register("path", populate_path_module)
        self.register("os", populate_os_module)
        self.register("net", lambda: populate_net_module(self.interpreter.apply_function))

    def std_module(self) -> Hash:
        exported = ("first", "last", "rest", "push", "pop", "split", "join",
                    "contains", "index", "upper", "lower", "keys", "values")
        entries: Dict[str, Object] = {"version": String(VERSION)}
        for name in exported:
            entries[name] = self.interpreter.builtins.get(name)
        return Hash.from_dict(entries)

    def include(self, name: str, env: Environment) -> Optional[Error]:
        """Bind module ``name`` in ``env``; returns an Error when it cannot be loaded."""
        factory = self.factories.get(name)
        if factory is not None:
            env.set(name, factory())
            return None

        path = find_module_file(name)
        if path is None:
            searched = ", ".join(str(p) for p in search_paths(name))
            return Error(catalog.module_not_found(name, searched))
        log.debug("loading module %s from %s", name, path)
        try:
            exports = self.load_file(path)
        except VictoriaError as e:
            return Error(e.diagnostic)
        except OSError as e:
            return Error(catalog.module_not_found(name, f"{path} ({e.strerror})"))
        if isinstance(exports, Error):
            return exports
        env.set(pathlib.Path(name).name.removesuffix(SOURCE_SUFFIX), exports)
        return None

    def load_file(self, path: pathlib.Path) -> Hash:
        """Run a module file in a fresh interpreter and collect its globals."""
        from ..interpreter import Interpreter
        from ..parser import parse_program

        source = path.read_text(encoding="utf-8")
        program = parse_program(source, str(path))
        parent = self.interpreter
        child = Interpreter(debug_level=0, max_depth=parent.max_depth, source=source, filename=str(path))
        child.modules = self
        child.debug_level = parent.debug_level
        child.run(program)
        parent.warnings.extend(child.warnings)
        exports = Hash()
        for key, value in child.global_env.store.items():
            exports.set(String(key), value)
        return exports
