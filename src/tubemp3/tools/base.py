"""
Base classes for external tool wrappers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from tubemp3.exceptions import ToolNotFoundError


@dataclass
class ToolResult:
    """Result from running an external tool."""

    success: bool
    stdout: str = ""
    stderr: str = ""
    returncode: int = 0
    error: str | None = None

    @classmethod
    def from_error(cls, error: str) -> "ToolResult":
        """Create a failed result from an error message."""
        return cls(success=False, error=error, returncode=-1)

    @property
    def output(self) -> str:
        """Combined diagnostic text (stderr, stdout, then any launch error)."""
        parts = [self.stderr, self.stdout, self.error or ""]
        return "\n".join(p.strip() for p in parts if p and p.strip())


class ExternalTool(ABC):
    """Abstract base class for the external programs tubemp3 drives."""

    #: Shown in ToolNotFoundError when the tool cannot be located
    install_hint: str = ""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name for logging and error messages."""
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the tool is installed and available."""
        pass

    @abstractmethod
    def get_path(self) -> str | None:
        """Get the path to the tool executable, or None if not found."""
        pass

    def require_path(self) -> str:
        """Like get_path(), but raise ToolNotFoundError when missing."""
        path = self.get_path()
        if not path:
            raise ToolNotFoundError(self.name, suggestion=self.install_hint)
        return path
