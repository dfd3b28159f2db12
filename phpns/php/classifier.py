from .source import PhpSource
from .types import ReferenceKind


def classify_site(source: PhpSource, start: int, end: int) -> ReferenceKind:
    """Classify the class name occupying `start:end` by its surrounding syntax.

    A name inside a top-level use clause is an import. A name in a position
    where PHP expects a class (type hints, `new`, `extends`, `implements`,
    `instanceof`, `catch`, static access, attributes, trait use) is a direct
    reference. Anything else is reported as `OTHER`.
    """
    for clause in source.class_imports:
        if clause.start <= start and end <= clause.end:
            return ReferenceKind.IMPORT_STATEMENT

    for site in source.reference_sites:
        if site.start <= start and end <= site.end:
            return ReferenceKind.DIRECT_REFERENCE
        if site.start > end:
            break

    return ReferenceKind.OTHER
