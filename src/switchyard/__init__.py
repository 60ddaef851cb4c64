"""switchyard: subcommand CLI with a closed, statically dispatched command set.

Every subcommand is a typed invocation value routed by one dispatcher to
exactly one handler, with configuration and shared clients threaded
through a single execution context.
"""

from switchyard.version import __version__

__all__: list[str] = ["__version__"]
