"""
Peer server exposing a local history store to remote backends.
"""

from clpd.network.server import create_app, run_server, DEFAULT_HOST, DEFAULT_PORT

__all__ = [
    'create_app',
    'run_server',
    'DEFAULT_HOST',
    'DEFAULT_PORT',
]
