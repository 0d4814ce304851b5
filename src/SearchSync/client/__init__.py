"""Transport clients for the remote search domain."""

from __future__ import annotations

from SearchSync.client.http import HttpSearchTransport

__all__ = ["HttpSearchTransport"]
