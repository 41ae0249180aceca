# glint/diagnostics.py
import enum
from dataclasses import dataclass


class Level(enum.Enum):
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Diagnostic:
    """A finding reported by the checker. Carries no source position."""
    message: str
    level: Level

    @classmethod
    def warning(cls, message: str) -> 'Diagnostic':
        return cls(message, Level.WARNING)

    @classmethod
    def error(cls, message: str) -> 'Diagnostic':
        return cls(message, Level.ERROR)

    def __repr__(self):
        return f"{self.level.name.capitalize()}({self.message!r})"


def undefined(name: str) -> Diagnostic:
    return Diagnostic.error(f"`{name}` not defined")


def unused(name: str) -> Diagnostic:
    return Diagnostic.warning(f"`{name}` never used")
