"""Test utilities for detour applications.

Provides an in-process ASGI test client::

    from detour.testing import TestClient
"""

from detour.testing.client import TestClient, build_scope

__all__ = ["TestClient", "build_scope"]
