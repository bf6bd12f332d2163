"""
Pytest configuration and fixtures.
"""

import os
import sys

# Add app directory to path
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

# Set test environment
os.environ["TESTING"] = "1"
os.environ.pop("QRZ_BASE_URL", None)
os.environ.pop("QRZ_API_VERSION", None)

import pytest


@pytest.fixture
def session_cache_dir(tmp_path, monkeypatch):
    """Point the session cache at a temporary directory."""
    import session_cache
    cache_dir = str(tmp_path / "qrz-xml")
    monkeypatch.setattr(session_cache.config, "QRZ_SESSION_CACHE_DIR", cache_dir)
    return cache_dir
