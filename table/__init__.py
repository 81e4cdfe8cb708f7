"""Table package: paces the hold'em engine and bridges it to a presentation client."""

from .server import TableServer
from .session import TableSession

__all__ = ["TableServer", "TableSession"]
