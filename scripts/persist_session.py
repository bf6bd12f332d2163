#!/usr/bin/env python3
"""
Look up callsigns while reusing a session key cached on disk.

The first run logs in and saves the session under $XDG_CACHE_HOME/qrz-xml
(or QRZ_SESSION_CACHE_DIR); later runs restore it and skip the login until it
is stale or QRZ rejects it.

Usage:
    QRZ_USERNAME=you QRZ_PASSWORD=secret python -m scripts.persist_session AA7BQ W1AW
"""

import asyncio
import logging
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import config
from log_config import configure_logging
from qrz_xml_client import QRZXMLClient
from session_cache import CachedSession, SessionStore

logger = logging.getLogger(__name__)


async def save_current_session(client: QRZXMLClient, store: SessionStore, username: str) -> None:
    """Write the client's session to the store if it has one."""
    session = await client.export_session()
    if session is None:
        return
    store.save_session(CachedSession(
        session_key=session.key,
        username=username,
        expires_at=session.sub_exp,
        lookup_count=session.count,
    ))


async def main():
    """Restore or create a session, run the lookups, and save the session."""
    callsigns = sys.argv[1:] or ["AA7BQ"]
    try:
        username, password = config.credentials()
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    store = SessionStore()
    logger.info(f"Session cache directory: {store.cache_dir}")

    async with QRZXMLClient(username, password) as client:
        cached = store.load_session(username)
        if cached:
            logger.info("Reusing cached session")
            await client.restore_session(cached.session_key, cached.lookup_count, cached.expires_at)
        else:
            await client.authenticate()

        for callsign in callsigns:
            # An expired cached key is replaced by the client's single re-login
            info = await client.lookup_callsign(callsign)
            print(f"{info.call} - {info.full_name() or ''}")

        await save_current_session(client, store, username)

    print(f"\nSession cached at: {store.session_file_path(username)}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
