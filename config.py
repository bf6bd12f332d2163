"""
Centralized configuration for the QRZ XML client.

All configurable values are loaded from environment variables with sensible defaults.
"""

import os


def _require_env(name: str, test_default: str) -> str:
    """
    Get a required environment variable.

    In testing mode, returns a test default. Otherwise raises an error if not set.
    """
    value = os.getenv(name)
    if value:
        return value

    # Allow test defaults only in testing mode
    if os.getenv("TESTING"):
        return test_default

    raise ValueError(
        f"Required environment variable {name} is not set. "
        f"Set {name} in your environment before running this script."
    )


class Config:
    """Client configuration loaded from environment variables."""

    # QRZ XML API endpoint
    QRZ_BASE_URL: str = os.getenv("QRZ_BASE_URL", "https://xmldata.qrz.com/xml")
    # current, legacy, or an explicit version such as 1.34
    QRZ_API_VERSION: str = os.getenv("QRZ_API_VERSION", "current")
    QRZ_USER_AGENT: str = os.getenv("QRZ_USER_AGENT", "qrz-xml-py/0.1.4")

    # Transport
    QRZ_TIMEOUT_SECONDS: float = float(os.getenv("QRZ_TIMEOUT_SECONDS", "30"))
    # Advisory only, enforced by callers such as scripts/bulk_lookup.py
    QRZ_MAX_RETRIES: int = int(os.getenv("QRZ_MAX_RETRIES", "3"))

    # QRZ XML API credentials (for callsign lookups)
    QRZ_USERNAME: str = os.getenv("QRZ_USERNAME", "")
    QRZ_PASSWORD: str = os.getenv("QRZ_PASSWORD", "")

    # Session cache used by scripts/persist_session.py
    QRZ_SESSION_CACHE_DIR: str = os.getenv(
        "QRZ_SESSION_CACHE_DIR",
        os.path.join(
            os.getenv("XDG_CACHE_HOME") or os.path.join(os.path.expanduser("~"), ".cache"),
            "qrz-xml",
        ),
    )
    SESSION_CACHE_MAX_AGE_HOURS: int = int(os.getenv("SESSION_CACHE_MAX_AGE_HOURS", "23"))

    # Delay between lookups in bulk scripts
    BULK_LOOKUP_DELAY_SECONDS: float = float(os.getenv("BULK_LOOKUP_DELAY_SECONDS", "0.5"))

    # Logging
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Testing mode
    TESTING: bool = bool(os.getenv("TESTING", ""))

    def credentials(self) -> tuple[str, str]:
        """
        Get QRZ credentials from the environment.

        Returns:
            Tuple of (username, password)

        Raises:
            ValueError: If either value is missing outside of testing mode
        """
        username = self.QRZ_USERNAME or _require_env("QRZ_USERNAME", "testuser")
        password = self.QRZ_PASSWORD or _require_env("QRZ_PASSWORD", "testpass")
        return username, password


# Global config instance
config = Config()
