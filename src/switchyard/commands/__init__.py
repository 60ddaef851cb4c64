"""Command handlers, one module per subcommand.

Handlers may import from ``core`` and ``infra`` but never from ``cli``.
"""

from switchyard.commands.config import ConfigHandler
from switchyard.commands.database import DatabaseHandler
from switchyard.commands.doctor import DoctorHandler
from switchyard.commands.server import ServerHandler
from switchyard.core.dispatcher import HandlerSet


def default_handlers() -> HandlerSet:
    """Return the production handler for every command variant."""
    return HandlerSet(
        database=DatabaseHandler(),
        server=ServerHandler(),
        config=ConfigHandler(),
        doctor=DoctorHandler(),
    )


__all__: list[str] = [
    "ConfigHandler",
    "DatabaseHandler",
    "DoctorHandler",
    "ServerHandler",
    "default_handlers",
]
