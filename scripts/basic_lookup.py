#!/usr/bin/env python3
"""
Look up a single callsign and print the record.

Usage:
    QRZ_USERNAME=you QRZ_PASSWORD=secret python -m scripts.basic_lookup AA7BQ
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import config
from log_config import configure_logging
from qrz_errors import CallsignNotFoundError, QRZXMLError
from qrz_xml_client import QRZXMLClient


def _flag(value):
    if value is None:
        return "unknown"
    return "yes" if value else "no"


async def main():
    """Authenticate, show session details and print one callsign record."""
    callsign = sys.argv[1] if len(sys.argv) > 1 else "AA7BQ"
    try:
        username, password = config.credentials()
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    async with QRZXMLClient(username, password) as client:
        try:
            await client.authenticate()
        except QRZXMLError as e:
            print(f"Authentication failed: {e}")
            sys.exit(1)

        count, sub_exp = await client.session_info()
        print(f"Lookups used today: {count if count is not None else '-'}")
        print(f"Subscription expires: {sub_exp or '-'}")

        try:
            info = await client.lookup_callsign(callsign)
        except CallsignNotFoundError:
            print(f"{callsign.upper()} was not found in the QRZ database")
            sys.exit(1)

    print(f"\n{info.call}")
    print("-" * 40)
    print(f"Name:     {info.full_name() or '-'}")
    if info.nickname:
        print(f"Nickname: {info.nickname}")
    location = ", ".join(filter(None, [info.addr2, info.state, info.country]))
    print(f"Location: {location or '-'}")
    print(f"Grid:     {info.grid or '-'}")
    coords = info.coordinates()
    if coords:
        print(f"Lat/Lon:  {coords[0]:.4f}, {coords[1]:.4f}")
    print(f"Class:    {info.license_class or '-'}")
    print(f"DXCC:     {info.dxcc if info.dxcc is not None else '-'}")
    print(f"eQSL: {_flag(info.accepts_eqsl())}  "
          f"Paper QSL: {_flag(info.returns_paper_qsl())}  "
          f"LoTW: {_flag(info.accepts_lotw())}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
