from .core import core_builtins, go_format
from .modules import ModuleRegistry, find_module_file

__all__ = ["core_builtins", "go_format", "ModuleRegistry", "find_module_file"]
