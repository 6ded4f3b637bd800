"""Testing utilities for roost applications.

Usage::

    from roost.testing import TestClient

    async with TestClient(mapper) as client:
        response = await client.get("/thing/42")
        assert response.status == 200
"""

from roost.testing.client import TestClient

__all__ = ["TestClient"]
