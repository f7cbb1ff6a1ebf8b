"""Inspector - caller-side glue over the capability interface.

Picks a backend, renders results as text, and provides the mcpeek
command-line entry point.
"""

from inspector.factory import open_client

__all__ = [
    "open_client",
]
