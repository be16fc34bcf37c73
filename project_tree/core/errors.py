from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class TreeError(Exception):
    """Base error envelope. Prefer returning/printing these rather than raising raw exceptions."""

    code: str
    message: str
    file: Optional[str] = None
    path: Optional[str] = None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.file:
            parts.append(self.file)
        if self.path:
            parts.append(self.path)
        loc = ":".join(parts) if parts else "<tree>"
        return f"{loc}: {self.code}: {self.message}"


class TreeLoadError(TreeError):
    pass


class TreeValidationError(TreeError):
    pass


class TreeFetchError(TreeError):
    """A tree source could not produce a project snapshot."""


class ProjectNotFoundError(TreeFetchError):
    pass


class TransientFetchError(TreeFetchError):
    pass


class UnauthorizedError(TreeFetchError):
    pass
