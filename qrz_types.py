"""
Data types for QRZ XML API responses.
"""

import re
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from qrz_errors import InvalidApiVersionError


_VERSION_PATTERN = re.compile(r'^[0-9A-Za-z._-]+$')


@dataclass(frozen=True)
class ApiVersion:
    """
    Which version of the QRZ XML interface to use.

    Use ApiVersion.CURRENT, ApiVersion.LEGACY (no version in the URL, QRZ
    answers with 1.24) or ApiVersion.version("1.34").
    """
    value: str

    CURRENT = None  # type: ApiVersion
    LEGACY = None  # type: ApiVersion

    @classmethod
    def version(cls, version: str) -> "ApiVersion":
        """Create a specific version, validating it can be used as a path segment."""
        version = version.strip()
        if not _VERSION_PATTERN.match(version):
            raise InvalidApiVersionError(version)
        return cls(version)

    @classmethod
    def parse(cls, text: Optional[str]) -> "ApiVersion":
        """Parse a config value: "current", "legacy"/empty, or a version string."""
        normalized = (text or "").strip().lower()
        if normalized in ("", "legacy"):
            return cls.LEGACY
        if normalized == "current":
            return cls.CURRENT
        return cls.version(text)

    @property
    def is_legacy(self) -> bool:
        return self.value == ""

    def path_segment(self) -> str:
        """URL path segment for this version, joined onto the base URL."""
        if self.is_legacy:
            return ""
        return f"xml/{self.value}/"

    def __str__(self) -> str:
        return self.value


ApiVersion.CURRENT = ApiVersion("current")
ApiVersion.LEGACY = ApiVersion("")


@dataclass
class SessionInfo:
    """Contents of the <Session> block present in every QRZ response."""
    key: Optional[str] = None
    count: Optional[int] = None  # lookups in the current 24 hour window
    sub_exp: Optional[str] = None  # subscription expiry or "non-subscriber"
    gm_time: Optional[str] = None
    message: Optional[str] = None
    error: Optional[str] = None
    remark: Optional[str] = None

    def has_valid_session(self) -> bool:
        """Check if session has a usable key."""
        return bool(self.key)

    def has_error(self) -> bool:
        return self.error is not None

    def error_message(self) -> Optional[str]:
        return self.error

    def info_message(self) -> Optional[str]:
        return self.message


def _yes_no(value: Optional[str]) -> Optional[bool]:
    """QRZ encodes QSL preferences as Y/N; blank or missing means unknown."""
    if value is None:
        return None
    return value.strip().lower() == "y"


@dataclass
class CallsignInfo:
    """Callsign record returned by a callsign lookup."""
    call: str
    xref: Optional[str] = None
    aliases: Optional[str] = None
    dxcc: Optional[int] = None
    fname: Optional[str] = None
    name: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    state: Optional[str] = None
    zip: Optional[str] = None
    country: Optional[str] = None
    ccode: Optional[int] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    grid: Optional[str] = None
    county: Optional[str] = None
    fips: Optional[str] = None
    land: Optional[str] = None
    efdate: Optional[str] = None
    expdate: Optional[str] = None
    p_call: Optional[str] = None
    license_class: Optional[str] = None  # <class>
    codes: Optional[str] = None
    qslmgr: Optional[str] = None
    email: Optional[str] = None
    url: Optional[str] = None
    u_views: Optional[int] = None
    bio: Optional[str] = None
    biodate: Optional[str] = None
    image: Optional[str] = None
    imageinfo: Optional[str] = None
    serial: Optional[int] = None
    moddate: Optional[str] = None
    msa: Optional[str] = None
    area_code: Optional[str] = None
    time_zone: Optional[str] = None
    gmt_offset: Optional[str] = None
    dst: Optional[str] = None
    eqsl: Optional[str] = None
    mqsl: Optional[str] = None
    cqzone: Optional[int] = None
    ituzone: Optional[int] = None
    born: Optional[int] = None
    user: Optional[str] = None
    lotw: Optional[str] = None
    iota: Optional[str] = None
    geoloc: Optional[str] = None
    attn: Optional[str] = None
    nickname: Optional[str] = None
    name_fmt: Optional[str] = None

    def full_name(self) -> Optional[str]:
        """First and last name joined, or whichever one is present."""
        name = " ".join(filter(None, [self.fname, self.name]))
        return name or None

    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.lat is None or self.lon is None:
            return None
        return (self.lat, self.lon)

    def accepts_eqsl(self) -> Optional[bool]:
        return _yes_no(self.eqsl)

    def returns_paper_qsl(self) -> Optional[bool]:
        return _yes_no(self.mqsl)

    def accepts_lotw(self) -> Optional[bool]:
        return _yes_no(self.lotw)


@dataclass
class DxccInfo:
    """DXCC entity record returned by a DXCC lookup."""
    dxcc: int
    name: str
    cc: Optional[str] = None  # ISO-3166 alpha-2
    ccc: Optional[str] = None  # ISO-3166 alpha-3
    continent: Optional[str] = None
    ituzone: Optional[int] = None
    cqzone: Optional[int] = None
    timezone: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    notes: Optional[str] = None

    def coordinates(self) -> Optional[Tuple[float, float]]:
        if self.lat is None or self.lon is None:
            return None
        return (self.lat, self.lon)

    def timezone_hours(self) -> Optional[float]:
        """
        Parse the UTC offset as hours.

        QRZ writes offsets as "-5", "+8" or, for fractional zones, packed
        hours and minutes such as "545" (5h45m) or "-330" (-3h30m).

        Returns:
            Offset in hours, or None if missing or unparseable
        """
        if not self.timezone:
            return None
        tz = self.timezone.strip()
        sign = -1.0 if tz.startswith("-") else 1.0
        digits = tz.lstrip("+-")

        if len(digits) >= 3 and digits.isdigit():
            hours = int(digits[:-2])
            minutes = int(digits[-2:])
            return sign * (hours + minutes / 60.0)

        try:
            return sign * float(digits)
        except ValueError:
            return None


@dataclass
class BiographyData:
    """Raw biography HTML for a callsign."""
    callsign: str
    html_content: str

    def html(self) -> str:
        return self.html_content

    def is_empty(self) -> bool:
        return not self.html_content.strip()


@dataclass
class QRZResponse:
    """
    Decoded <QRZDatabase> envelope.

    session is always present; callsign and dxcc are mutually exclusive per
    request kind. dxcc_entities is filled only for a dxcc=all request.
    """
    session: SessionInfo
    callsign: Optional[CallsignInfo] = None
    dxcc: Optional[DxccInfo] = None
    dxcc_entities: List[DxccInfo] = field(default_factory=list)
    version: Optional[str] = None
    xmlns: Optional[str] = None
