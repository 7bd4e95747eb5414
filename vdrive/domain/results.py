"""Success-or-error result returned by the storage facade.

Every facade operation returns ``Ok(value)`` or ``Err(error)`` so callers
branch on the error kind (and its retry semantics) instead of catching
exceptions.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from vdrive.domain.exceptions import VDriveException

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful outcome carrying the operation's value."""

    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed outcome carrying a tagged domain error."""

    error: VDriveException

    @property
    def ok(self) -> bool:
        return False

    @property
    def error_code(self) -> str:
        return self.error.error_code

    def unwrap(self):
        """Raise the carried error (used at the HTTP boundary)."""
        raise self.error


Result = Ok[T] | Err
