"""
On-disk cache of QRZ session keys, so short-lived scripts can skip the login.

This sits outside QRZXMLClient: scripts export the client's session after
logging in and restore it on the next run.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass, field
from typing import Optional

from config import config


logger = logging.getLogger(__name__)


@dataclass
class CachedSession:
    """A persisted session key and the server-reported session details."""
    session_key: str
    username: str
    created_at: int = field(default_factory=lambda: int(time.time()))
    expires_at: Optional[str] = None  # QRZ SubExp
    lookup_count: Optional[int] = None

    def is_expired(self, max_age_hours: Optional[int] = None, now: Optional[float] = None) -> bool:
        """
        Check if the session is old enough that QRZ has probably dropped it.

        QRZ keys last roughly 24 hours; the default cutoff is 23.
        """
        if max_age_hours is None:
            max_age_hours = config.SESSION_CACHE_MAX_AGE_HOURS
        if now is None:
            now = time.time()
        return now - self.created_at > max_age_hours * 3600

    def to_json(self) -> str:
        return json.dumps(asdict(self), indent=2)

    @classmethod
    def from_json(cls, text: str) -> "CachedSession":
        """
        Raises:
            ValueError: If the text is not a cached session document
        """
        data = json.loads(text)
        if not isinstance(data, dict):
            raise ValueError("Cached session must be a JSON object")
        try:
            return cls(
                session_key=data["session_key"],
                username=data["username"],
                created_at=int(data["created_at"]),
                expires_at=data.get("expires_at"),
                lookup_count=data.get("lookup_count"),
            )
        except (KeyError, TypeError) as e:
            raise ValueError(f"Invalid cached session: {e}") from e


class SessionStore:
    """One JSON file per username under a cache directory."""

    def __init__(self, cache_dir: Optional[str] = None):
        self.cache_dir = cache_dir or config.QRZ_SESSION_CACHE_DIR

    def session_file_path(self, username: str) -> str:
        return os.path.join(self.cache_dir, f"session_{username}.json")

    def load_session(self, username: str) -> Optional[CachedSession]:
        """
        Load a cached session, discarding it if stale.

        Returns:
            CachedSession, or None if missing, unreadable or expired
        """
        path = self.session_file_path(username)
        try:
            with open(path, "r", encoding="utf-8") as f:
                session = CachedSession.from_json(f.read())
        except FileNotFoundError:
            return None
        except (ValueError, OSError) as e:
            logger.warning(f"Failed to read session cache {path}: {e}")
            return None

        if session.is_expired():
            logger.info(f"Cached session for {username} is stale, discarding")
            self.clear_session(username)
            return None

        return session

    def save_session(self, session: CachedSession) -> None:
        os.makedirs(self.cache_dir, exist_ok=True)
        path = self.session_file_path(session.username)
        with open(path, "w", encoding="utf-8") as f:
            f.write(session.to_json())
        logger.debug(f"Saved session cache to {path}")

    def clear_session(self, username: str) -> None:
        path = self.session_file_path(username)
        try:
            os.remove(path)
            logger.info(f"Cleared cached session {path}")
        except FileNotFoundError:
            pass
