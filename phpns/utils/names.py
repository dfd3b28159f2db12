"""Helpers for PHP fully-qualified class names."""

from pydantic import BaseModel, ConfigDict

SEPARATOR = "\\"


def normalize_fqn(fqn: str | None) -> str:
    if not fqn:
        return ""
    return fqn[1:] if fqn.startswith(SEPARATOR) else fqn


def extract_namespace(fqn: str | None) -> str:
    fqn = normalize_fqn(fqn)
    index = fqn.rfind(SEPARATOR)
    return fqn[:index] if index >= 0 else ""


def short_name(fqn: str | None) -> str:
    fqn = normalize_fqn(fqn)
    index = fqn.rfind(SEPARATOR)
    return fqn[index + 1:] if index >= 0 else fqn


def is_global_namespace(fqn: str | None) -> bool:
    return SEPARATOR not in normalize_fqn(fqn)


def build_fqn(namespace: str | None, name: str) -> str:
    namespace = normalize_fqn(namespace)
    if not namespace:
        return name
    return f"{namespace}{SEPARATOR}{name}"


def namespace_depth(namespace: str | None) -> int:
    namespace = normalize_fqn(namespace)
    if not namespace:
        return 0
    return len(namespace.split(SEPARATOR))


def is_qualified(name: str) -> bool:
    """True for `\\Foo`, `Foo\\Bar` and `\\Foo\\Bar`; false for bare `Foo`."""
    return SEPARATOR in name


class QualifiedName(BaseModel):
    """Immutable, normalized fully-qualified class name."""
    model_config = ConfigDict(frozen=True)

    fqn: str

    @classmethod
    def parse(cls, text: str | None) -> "QualifiedName":
        return cls(fqn=normalize_fqn((text or "").strip()))

    @property
    def namespace(self) -> str:
        return extract_namespace(self.fqn)

    @property
    def short_name(self) -> str:
        return short_name(self.fqn)

    @property
    def is_global(self) -> bool:
        return is_global_namespace(self.fqn)

    @property
    def rooted(self) -> str:
        return SEPARATOR + self.fqn

    def __str__(self) -> str:
        return self.fqn
