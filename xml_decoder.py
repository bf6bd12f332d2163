"""
Decoder for QRZ XML API responses.

QRZ answers every request with a <QRZDatabase> document holding a <Session>
block and, depending on the request, a <Callsign> or <DXCC> block. Elements
live in the http://xmldata.qrz.com namespace, which is stripped here.
"""

import xml.etree.ElementTree as ET
from typing import Callable, Dict, List, Optional, Tuple

from qrz_errors import XmlParsingError
from qrz_types import CallsignInfo, DxccInfo, QRZResponse, SessionInfo


def _to_int(text: str) -> Optional[int]:
    try:
        return int(text)
    except ValueError:
        return None


def _to_float(text: str) -> Optional[float]:
    try:
        return float(text)
    except ValueError:
        return None


# XML tag -> (dataclass attribute, converter)
CALLSIGN_FIELDS: Dict[str, Tuple[str, Callable]] = {
    "call": ("call", str),
    "xref": ("xref", str),
    "aliases": ("aliases", str),
    "dxcc": ("dxcc", _to_int),
    "fname": ("fname", str),
    "name": ("name", str),
    "addr1": ("addr1", str),
    "addr2": ("addr2", str),
    "state": ("state", str),
    "zip": ("zip", str),
    "country": ("country", str),
    "ccode": ("ccode", _to_int),
    "lat": ("lat", _to_float),
    "lon": ("lon", _to_float),
    "grid": ("grid", str),
    "county": ("county", str),
    "fips": ("fips", str),
    "land": ("land", str),
    "efdate": ("efdate", str),
    "expdate": ("expdate", str),
    "p_call": ("p_call", str),
    "class": ("license_class", str),
    "codes": ("codes", str),
    "qslmgr": ("qslmgr", str),
    "email": ("email", str),
    "url": ("url", str),
    "u_views": ("u_views", _to_int),
    "bio": ("bio", str),
    "biodate": ("biodate", str),
    "image": ("image", str),
    "imageinfo": ("imageinfo", str),
    "serial": ("serial", _to_int),
    "moddate": ("moddate", str),
    "MSA": ("msa", str),
    "AreaCode": ("area_code", str),
    "TimeZone": ("time_zone", str),
    "GMTOffset": ("gmt_offset", str),
    "DST": ("dst", str),
    "eqsl": ("eqsl", str),
    "mqsl": ("mqsl", str),
    "cqzone": ("cqzone", _to_int),
    "ituzone": ("ituzone", _to_int),
    "born": ("born", _to_int),
    "user": ("user", str),
    "lotw": ("lotw", str),
    "iota": ("iota", str),
    "geoloc": ("geoloc", str),
    "attn": ("attn", str),
    "nickname": ("nickname", str),
    "name_fmt": ("name_fmt", str),
}

DXCC_FIELDS: Dict[str, Tuple[str, Callable]] = {
    "dxcc": ("dxcc", _to_int),
    "cc": ("cc", str),
    "ccc": ("ccc", str),
    "name": ("name", str),
    "continent": ("continent", str),
    "ituzone": ("ituzone", _to_int),
    "cqzone": ("cqzone", _to_int),
    "timezone": ("timezone", str),
    "lat": ("lat", _to_float),
    "lon": ("lon", _to_float),
    "notes": ("notes", str),
}

SESSION_FIELDS: Dict[str, Tuple[str, Callable]] = {
    "Key": ("key", str),
    "Count": ("count", _to_int),
    "SubExp": ("sub_exp", str),
    "GMTime": ("gm_time", str),
    "Message": ("message", str),
    "Error": ("error", str),
    "Remark": ("remark", str),
}


def _local_name(tag: str) -> str:
    """Strip the {namespace} prefix ElementTree puts on tags."""
    return tag.split("}", 1)[-1] if "}" in tag else tag


def _extract_fields(elem: ET.Element, fields: Dict[str, Tuple[str, Callable]]) -> dict:
    """
    Convert child elements to keyword arguments using a field table.

    Unknown tags are ignored. Empty elements and values that fail conversion
    are left out, so the dataclass default (None) applies.
    """
    values = {}
    for child in elem:
        mapping = fields.get(_local_name(child.tag))
        if mapping is None:
            continue
        attr, convert = mapping
        text = (child.text or "").strip()
        if not text:
            continue
        value = convert(text)
        if value is not None:
            values[attr] = value
    return values


def parse_session(elem: Optional[ET.Element]) -> SessionInfo:
    """Convert a <Session> element to SessionInfo."""
    if elem is None:
        return SessionInfo()

    values = _extract_fields(elem, SESSION_FIELDS)

    # An <Error/> that is present but empty still signals an error
    for child in elem:
        if _local_name(child.tag) == "Error" and "error" not in values:
            values["error"] = (child.text or "").strip()

    return SessionInfo(**values)


def parse_callsign(elem: ET.Element) -> CallsignInfo:
    """
    Convert a <Callsign> element to CallsignInfo.

    Raises:
        XmlParsingError: If the mandatory <call> field is missing
    """
    values = _extract_fields(elem, CALLSIGN_FIELDS)
    if "call" not in values:
        raise XmlParsingError("Callsign record is missing required field 'call'")
    return CallsignInfo(**values)


def parse_dxcc(elem: ET.Element) -> DxccInfo:
    """
    Convert a <DXCC> element to DxccInfo.

    Raises:
        XmlParsingError: If 'dxcc' or 'name' is missing or 'dxcc' is not a number
    """
    values = _extract_fields(elem, DXCC_FIELDS)
    for required in ("dxcc", "name"):
        if required not in values:
            raise XmlParsingError(f"DXCC record is missing required field '{required}'")
    return DxccInfo(**values)


def _children(root: ET.Element, name: str) -> List[ET.Element]:
    return [child for child in root if _local_name(child.tag) == name]


def parse_response(text: str) -> QRZResponse:
    """
    Parse a QRZ XML document into a QRZResponse.

    Args:
        text: Raw response body

    Returns:
        QRZResponse with the session block and any callsign/DXCC records

    Raises:
        XmlParsingError: If the body is not well-formed XML, is not a
            QRZDatabase document, or a record lacks mandatory fields
    """
    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise XmlParsingError(str(e)) from e

    if _local_name(root.tag) != "QRZDatabase":
        raise XmlParsingError(f"Unexpected root element <{_local_name(root.tag)}>")

    xmlns = None
    if root.tag.startswith("{"):
        xmlns = root.tag[1:].split("}", 1)[0]

    sessions = _children(root, "Session")
    session = parse_session(sessions[0] if sessions else None)

    callsigns = _children(root, "Callsign")
    callsign = parse_callsign(callsigns[0]) if callsigns else None

    # dxcc=all answers with one <DXCC> block per entity
    dxcc_entities = [parse_dxcc(elem) for elem in _children(root, "DXCC")]

    return QRZResponse(
        session=session,
        callsign=callsign,
        dxcc=dxcc_entities[0] if len(dxcc_entities) == 1 else None,
        dxcc_entities=dxcc_entities,
        version=root.get("version"),
        xmlns=xmlns,
    )


def looks_like_xml(text: str) -> bool:
    """Check whether an html= response is actually an XML error envelope."""
    stripped = text.lstrip()
    return stripped.startswith("<?xml") or stripped.startswith("<QRZDatabase")
