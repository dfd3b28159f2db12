from dataclasses import dataclass


class MoveError(Exception):
    """Base class for failures that stop a class move before anything changes."""


class NotFoundError(MoveError):
    pass


class AlreadyExistsError(MoveError):
    path: str

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Destination already exists: {path}")


class NoOpError(MoveError):
    pass


@dataclass(frozen=True)
class PartialApplication:
    """A best-effort step that failed after the file had already moved."""
    stage: str
    error: str

    def __str__(self) -> str:
        return f"{self.stage} failed: {self.error}"
