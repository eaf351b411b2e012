import sys
from pathlib import Path

import pytest
import requests

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    """Any test that reaches a real requests.Session fails instead of going online."""

    def blocked_get(self, url, *args, **kwargs):
        raise AssertionError(f"unexpected network call to {url}")

    monkeypatch.setattr(requests.Session, "get", blocked_get)
