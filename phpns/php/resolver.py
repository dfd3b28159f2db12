"""Name resolution for unqualified class references.

PHP resolves an unqualified class name against the use clauses of the file
first and then against the file's own namespace; unlike functions and
constants there is no fallback to the global namespace. The resolver follows
that rule, with one deliberate shortcut: names on the built-in list are
treated as global classes purely by name, whatever namespace the file is in.
A file that declares its own `App\\Exception` therefore looks built-in here.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable

from ..utils.names import SEPARATOR, build_fqn, normalize_fqn

logger = logging.getLogger(__name__)

DEFAULT_BUILTIN_CLASSES = frozenset({
    "Exception", "Error", "Throwable", "RuntimeException",
    "InvalidArgumentException", "LogicException", "OutOfBoundsException",
    "DateTime", "DateTimeImmutable", "DateTimeInterface", "DateInterval", "DateTimeZone",
    "stdClass", "ArrayObject", "ArrayIterator", "Iterator", "IteratorAggregate",
    "Countable", "Serializable", "JsonSerializable", "Stringable",
    "Closure", "Generator", "WeakReference", "WeakMap",
    "PDO", "PDOStatement", "PDOException",
    "ReflectionClass", "ReflectionMethod", "ReflectionProperty", "ReflectionException",
    "SplFileInfo", "SplFileObject", "DirectoryIterator", "RecursiveDirectoryIterator",
})


class ResolutionKind(str, Enum):
    ALREADY_QUALIFIED = "already_qualified"
    IMPORTED = "imported"
    BUILTIN = "builtin"
    GLOBAL = "global"
    SIBLING = "sibling"


@dataclass(frozen=True)
class Resolution:
    kind: ResolutionKind
    fqn: str


class Resolver:
    def __init__(self, builtin_classes: Iterable[str] = DEFAULT_BUILTIN_CLASSES):
        self._builtins = {name.lower() for name in builtin_classes}

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "Resolver":
        extra = config.get("resolver", {}).get("extra_builtin_classes", [])
        if extra:
            logger.debug(f"Extra built-in classes: {', '.join(extra)}")
        return cls([*DEFAULT_BUILTIN_CLASSES, *extra])

    def is_builtin(self, name: str) -> bool:
        return normalize_fqn(name).lower() in self._builtins

    def resolve(self, name: str, namespace: str, imports: dict[str, str]) -> Resolution:
        """Resolve a class name as written in a file.

        `imports` maps lower-cased local names to the FQNs the file's use
        clauses bind them to.
        """
        if name.startswith(SEPARATOR):
            return Resolution(ResolutionKind.ALREADY_QUALIFIED, normalize_fqn(name))

        if SEPARATOR in name:
            head, _, rest = name.partition(SEPARATOR)
            imported = imports.get(head.lower())
            if imported:
                return Resolution(ResolutionKind.ALREADY_QUALIFIED, f"{imported}{SEPARATOR}{rest}")
            return Resolution(ResolutionKind.ALREADY_QUALIFIED, build_fqn(namespace, name))

        imported = imports.get(name.lower())
        if imported:
            return Resolution(ResolutionKind.IMPORTED, imported)

        if self.is_builtin(name):
            return Resolution(ResolutionKind.BUILTIN, name)

        namespace = normalize_fqn(namespace)
        if not namespace:
            return Resolution(ResolutionKind.GLOBAL, name)
        return Resolution(ResolutionKind.SIBLING, build_fqn(namespace, name))

    def bound_fqn(self, name: str, namespace: str, imports: dict[str, str]) -> str:
        """The FQN PHP itself binds `name` to, ignoring the built-in shortcut."""
        resolution = self.resolve(name, namespace, imports)
        if resolution.kind == ResolutionKind.BUILTIN:
            return build_fqn(namespace, name)
        return resolution.fqn
