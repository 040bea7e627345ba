"""
Shared test fixtures for the cert-registry test suite.

Builders live in tests/factories.py so test modules can import them directly.
"""

from __future__ import annotations

import pytest

from tests.factories import make_pem


@pytest.fixture(scope="session")
def pem() -> str:
    """A valid self-signed certificate for participant dfsp-1."""
    return make_pem("dfsp-1")
