from typing import Dict, Optional, Set

from .objects import Object


class Environment:
    """A scope mapping names to values, chained to its enclosing scope.

    ``set`` always binds in this scope, ``update`` rebinds an existing
    name wherever it lives in the chain. Constant names are tracked per
    scope and ``is_const`` looks through the chain, so a constant stays
    constant when seen from a nested scope.
    """

    def __init__(self, outer: Optional["Environment"] = None):
        self.outer = outer
        self.store: Dict[str, Object] = {}
        self.consts: Set[str] = set()

    def enclosed(self) -> "Environment":
        return Environment(self)

    def get(self, name: str) -> Optional[Object]:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                return env.store[name]
            env = env.outer
        return None

    def __contains__(self, name: str) -> bool:
        return self.get(name) is not None

    def set(self, name: str, value: Object) -> Object:
        self.store[name] = value
        self.consts.discard(name)
        return value

    def set_const(self, name: str, value: Object) -> Object:
        self.store[name] = value
        self.consts.add(name)
        return value

    def is_const(self, name: str) -> bool:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                return name in env.consts
            env = env.outer
        return False

    def update(self, name: str, value: Object) -> bool:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.store:
                env.store[name] = value
                return True
            env = env.outer
        return False

    @property
    def export_names(self) -> Set[str]:
        return set(self.store.keys())
