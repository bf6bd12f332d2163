#!/usr/bin/env python3
"""
Look up a list of callsigns and write the results to CSV.

Retries each lookup with exponential backoff (except for errors a retry
cannot fix) and pauses between lookups to stay polite to QRZ.

Usage:
    QRZ_USERNAME=you QRZ_PASSWORD=secret python -m scripts.bulk_lookup callsigns.txt results.csv

Input file format (one callsign per line, # starts a comment):
    AA7BQ
    W1AW
"""

import asyncio
import csv
import logging
import os
import sys
import time
from dataclasses import dataclass
from typing import List, Optional

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config import config
from log_config import configure_logging
from qrz_errors import (
    AuthenticationFailedError,
    CallsignNotFoundError,
    QRZXMLError,
    is_permission_error,
)
from qrz_types import CallsignInfo
from qrz_xml_client import QRZXMLClient

logger = logging.getLogger(__name__)

CSV_HEADER = ["callsign", "success", "name", "country", "grid", "lat", "lon", "email", "class", "dxcc", "error"]


@dataclass
class LookupResult:
    """Outcome of one callsign lookup."""
    callsign: str
    success: bool
    info: Optional[CallsignInfo] = None
    error: Optional[QRZXMLError] = None
    lookup_time: float = 0.0


@dataclass
class Statistics:
    """Running totals for a bulk run."""
    total: int = 0
    successful: int = 0
    failed: int = 0
    not_found: int = 0
    permission_denied: int = 0
    other_errors: int = 0
    total_time: float = 0.0

    def add_result(self, result: LookupResult) -> None:
        self.total += 1
        self.total_time += result.lookup_time

        if result.success:
            self.successful += 1
            return

        self.failed += 1
        if isinstance(result.error, CallsignNotFoundError):
            self.not_found += 1
        elif result.error is not None and is_permission_error(result.error):
            self.permission_denied += 1
        else:
            self.other_errors += 1

    def summary_lines(self) -> List[str]:
        if not self.total:
            return ["No lookups performed"]

        lines = [
            f"Total lookups: {self.total}",
            f"Successful: {self.successful} ({self.successful / self.total * 100:.1f}%)",
            f"Failed: {self.failed} ({self.failed / self.total * 100:.1f}%)",
        ]
        if self.not_found:
            lines.append(f"  Not found: {self.not_found}")
        if self.permission_denied:
            lines.append(f"  Subscription/permission: {self.permission_denied}")
        if self.other_errors:
            lines.append(f"  Other errors: {self.other_errors}")
        lines.append(f"Average lookup time: {self.total_time / self.total * 1000:.0f}ms")
        return lines


def read_callsigns(path: str) -> List[str]:
    """Read callsigns from a file, skipping blank lines and # comments."""
    callsigns = []
    with open(path, "r", encoding="utf-8") as f:
        for line in f:
            callsign = line.strip().upper()
            if callsign and not callsign.startswith("#"):
                callsigns.append(callsign)
    return callsigns


def _no_retry(error: QRZXMLError) -> bool:
    return (
        isinstance(error, (CallsignNotFoundError, AuthenticationFailedError))
        or is_permission_error(error)
    )


async def lookup_with_retry(
    client: QRZXMLClient,
    callsign: str,
    max_retries: int,
    base_delay: float = 1.0,
) -> LookupResult:
    """
    Look up a callsign, retrying the whole operation with exponential backoff.

    Args:
        client: Authenticated or unauthenticated client
        callsign: Callsign to look up
        max_retries: Total number of attempts
        base_delay: Delay before the second attempt; doubles each time

    Returns:
        LookupResult with either info or the last error
    """
    start = time.monotonic()
    last_error = None

    for attempt in range(1, max_retries + 1):
        try:
            info = await client.lookup_callsign(callsign)
            return LookupResult(callsign, True, info=info, lookup_time=time.monotonic() - start)
        except QRZXMLError as e:
            last_error = e
            if _no_retry(e):
                break
            if attempt < max_retries:
                delay = base_delay * 2 ** (attempt - 1)
                logger.debug(f"Lookup of {callsign} failed ({e}), retrying in {delay:.1f}s")
                await asyncio.sleep(delay)

    return LookupResult(callsign, False, error=last_error, lookup_time=time.monotonic() - start)


def write_csv(path: str, results: List[LookupResult]) -> None:
    """Write lookup results to CSV, one row per callsign."""
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(CSV_HEADER)
        for result in results:
            info = result.info
            if info is None:
                writer.writerow([result.callsign, result.success] + [""] * 8 + [str(result.error or "")])
                continue
            writer.writerow([
                result.callsign,
                result.success,
                info.full_name() or "",
                info.country or "",
                info.grid or "",
                "" if info.lat is None else info.lat,
                "" if info.lon is None else info.lon,
                info.email or "",
                info.license_class or "",
                "" if info.dxcc is None else info.dxcc,
                "",
            ])


async def main():
    """Look up every callsign in the input file and write a CSV report."""
    if len(sys.argv) != 3:
        print(f"Usage: {sys.argv[0]} <input_file> <output_file>")
        sys.exit(1)
    input_file, output_file = sys.argv[1], sys.argv[2]

    callsigns = read_callsigns(input_file)
    if not callsigns:
        print("No callsigns found in input file")
        sys.exit(1)
    logger.info(f"Found {len(callsigns)} callsigns to look up")

    try:
        username, password = config.credentials()
    except ValueError as e:
        print(str(e))
        sys.exit(1)

    results = []
    stats = Statistics()

    async with QRZXMLClient(username, password) as client:
        try:
            await client.authenticate()
        except QRZXMLError as e:
            print(f"Authentication failed: {e}")
            sys.exit(1)

        count, sub_exp = await client.session_info()
        logger.info(f"Lookups used today: {count}, subscription expires: {sub_exp}")

        for i, callsign in enumerate(callsigns):
            if i % 10 == 0 or i == len(callsigns) - 1:
                logger.info(f"Progress: {i + 1}/{len(callsigns)}")

            result = await lookup_with_retry(client, callsign, config.QRZ_MAX_RETRIES)
            stats.add_result(result)
            results.append(result)

            if result.success:
                print(f"  OK   {callsign} - {result.info.full_name() or ''}")
            else:
                print(f"  FAIL {callsign} - {result.error}")

            # Rate limiting - be respectful to QRZ servers
            if i < len(callsigns) - 1:
                await asyncio.sleep(config.BULK_LOOKUP_DELAY_SECONDS)

    print("\n=== Lookup Statistics ===")
    for line in stats.summary_lines():
        print(line)

    write_csv(output_file, results)
    print(f"\nResults written to {output_file}")


if __name__ == "__main__":
    configure_logging()
    asyncio.run(main())
