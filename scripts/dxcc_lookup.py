#!/usr/bin/env python3
"""
Look up a DXCC entity by number or by callsign prefix.

Usage:
    python -m scripts.dxcc_lookup --entity 291
    python -m scripts.dxcc_lookup --callsign JA1ABC
"""

import asyncio
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import config
from log_config import configure_logging
from qrz_errors import DxccNotFoundError
from qrz_xml_client import QRZXMLClient

USAGE = f"Usage: {sys.argv[0]} --entity <number> | --callsign <callsign>"


async def main():
    """Print the details of one DXCC entity."""
    if len(sys.argv) != 3 or sys.argv[1] not in ("--entity", "--callsign"):
        print(USAGE)
        sys.exit(1)

    mode, value = sys.argv[1], sys.argv[2]
    if mode == "--entity" and not value.isdigit():
        print("Entity number must be a valid integer")
        sys.exit(1)

    try:
        username, password = config.credentials()
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    async with QRZXMLClient(username, password) as client:
        try:
            if mode == "--entity":
                info = await client.lookup_dxcc_entity(int(value))
            else:
                info = await client.lookup_dxcc_by_callsign(value)
        except DxccNotFoundError as e:
            print(str(e))
            sys.exit(1)

    print(f"DXCC {info.dxcc}: {info.name}")
    print("-" * 40)
    if info.cc or info.ccc:
        print(f"Country codes: {info.cc or '-'} / {info.ccc or '-'}")
    print(f"Continent:     {info.continent or '-'}")
    print(f"CQ zone:       {info.cqzone if info.cqzone is not None else '-'}")
    print(f"ITU zone:      {info.ituzone if info.ituzone is not None else '-'}")

    hours = info.timezone_hours()
    if hours is not None:
        print(f"UTC offset:    {hours:+.2f}h")

    coords = info.coordinates()
    if coords:
        print(f"Center:        {coords[0]:.4f}, {coords[1]:.4f}")
    if info.notes:
        print(f"Notes:         {info.notes}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
