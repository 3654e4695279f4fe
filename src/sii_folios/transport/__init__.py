"""Transport module.

This module provides the HTTP session client used to talk to the SII portal.
"""

from .session_client import RawResponse, SessionClient, TLS12Adapter

__all__ = ["RawResponse", "SessionClient", "TLS12Adapter"]
