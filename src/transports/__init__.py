"""Transports delivering {method, params} requests to the gateway."""

from transports.http import create_app
from transports.stdio import StdioServer

__all__ = [
    "create_app",
    "StdioServer",
]
