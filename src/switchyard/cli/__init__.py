"""CLI layer: argument parsing, presentation, and error boundary.

This package is the outermost layer of the application.  It may import
from ``commands``, ``core`` and ``infra``, but no other layer may import
from ``cli``.
"""
