"""
QRZ.com XML API client for callsign, DXCC and biography lookups.

The client logs in lazily on first use, attaches the session key to every
request, and when QRZ reports the session as expired it clears the session,
logs in again and retries the request once.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Tuple, TypeVar
from urllib.parse import urljoin, urlsplit

import httpx

from config import config
from log_config import install_redaction
from qrz_errors import (
    CallsignNotFoundError,
    DxccNotFoundError,
    InvalidInputError,
    NetworkError,
    NoSessionKeyError,
    RateLimitExceededError,
    SessionExpiredError,
    UnexpectedResponseError,
    UrlParsingError,
    XmlParsingError,
    classify_login_error,
    classify_request_error,
)
from qrz_types import ApiVersion, BiographyData, CallsignInfo, DxccInfo, QRZResponse, SessionInfo
from session_state import SessionState
from xml_decoder import looks_like_xml, parse_response


logger = logging.getLogger(__name__)

# Request URLs carry the password or session key
install_redaction()

T = TypeVar("T")


@dataclass
class QRZXMLClientConfig:
    """Construction-time settings for QRZXMLClient."""
    base_url: str = field(default_factory=lambda: config.QRZ_BASE_URL)
    user_agent: str = field(default_factory=lambda: config.QRZ_USER_AGENT)
    timeout_seconds: float = field(default_factory=lambda: config.QRZ_TIMEOUT_SECONDS)
    # Advisory; the client itself never retries beyond one re-login
    max_retries: int = field(default_factory=lambda: config.QRZ_MAX_RETRIES)


class QRZXMLClient:
    """Async client for the QRZ.com XML data service."""

    def __init__(
        self,
        username: str,
        password: str,
        api_version: Optional[ApiVersion] = None,
        client_config: Optional[QRZXMLClientConfig] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        """
        Create a client. No network activity happens until the first request.

        Args:
            username: QRZ.com username
            password: QRZ.com password
            api_version: Interface version; defaults to config.QRZ_API_VERSION
            client_config: Base URL, user agent, timeout and retry settings
            http_client: Shared httpx.AsyncClient; the caller keeps ownership

        Raises:
            UrlParsingError: If the configured base URL is not an http(s) URL
            InvalidApiVersionError: If the configured version is not usable
        """
        self._username = username
        self._password = password
        self.api_version = api_version or ApiVersion.parse(config.QRZ_API_VERSION)
        self.config = client_config or QRZXMLClientConfig()
        self._url = self.build_url()
        self._session = SessionState()
        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            timeout=self.config.timeout_seconds,
            headers={"User-Agent": self.config.user_agent},
        )

    async def __aenter__(self) -> "QRZXMLClient":
        return self

    async def __aexit__(self, exc_type, exc_value, traceback) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_http_client:
            await self._http.aclose()

    def build_url(self) -> str:
        """Endpoint URL: the base URL joined with the API version segment."""
        base_url = self.config.base_url
        try:
            parts = urlsplit(base_url)
        except ValueError as e:
            raise UrlParsingError(f"{base_url!r}: {e}") from e
        if parts.scheme not in ("http", "https") or not parts.netloc:
            raise UrlParsingError(f"{base_url!r} is not an http(s) URL")

        segment = self.api_version.path_segment()
        if not segment:
            return base_url
        return urljoin(base_url, segment)

    # Session surface

    async def authenticate(self) -> None:
        """Log in and establish a session."""
        logger.info("Authenticating with QRZ.com")
        await self._login()

    async def reauthenticate(self) -> None:
        """Force a new login, discarding the current session."""
        await self._session.clear()
        await self.authenticate()

    async def is_authenticated(self) -> bool:
        return await self._session.has_valid_session()

    async def session_info(self) -> Tuple[Optional[int], Optional[str]]:
        """Lookup count and subscription expiry last reported by QRZ."""
        _, count, sub_exp = await self._session.read()
        return count, sub_exp

    async def export_session(self) -> Optional[SessionInfo]:
        """Current session for persisting elsewhere, or None if not logged in."""
        key, count, sub_exp = await self._session.read()
        if key is None:
            return None
        return SessionInfo(key=key, count=count, sub_exp=sub_exp)

    async def restore_session(
        self,
        key: str,
        count: Optional[int] = None,
        sub_exp: Optional[str] = None,
    ) -> None:
        """Reuse a previously exported session key instead of logging in."""
        await self._session.restore(key, count, sub_exp)

    # Lookups

    async def lookup_callsign(self, callsign: str) -> CallsignInfo:
        """
        Look up information for a callsign.

        Raises:
            InvalidInputError: If callsign is empty
            CallsignNotFoundError: If QRZ has no record for the callsign
            QRZXMLError: For any other failure
        """
        callsign = _normalize_callsign(callsign)
        logger.debug(f"Looking up callsign: {callsign}")

        response = await self._retry_on_expiry(
            lambda: self._authenticated_request({"callsign": callsign})
        )

        if response.callsign is None:
            error = response.session.error
            if error is not None and "not found" in error.lower():
                raise CallsignNotFoundError(callsign)
            raise UnexpectedResponseError("No callsign data in response")

        logger.info(f"Successfully looked up callsign: {response.callsign.call}")
        return response.callsign

    async def lookup_dxcc_entity(self, entity: int) -> DxccInfo:
        """
        Look up a DXCC entity by its entity number.

        Raises:
            InvalidInputError: If entity is negative
            DxccNotFoundError: If QRZ has no such entity
        """
        if isinstance(entity, bool) or entity < 0:
            raise InvalidInputError(f"DXCC entity must be a non-negative integer, got {entity!r}")
        logger.debug(f"Looking up DXCC entity: {entity}")

        info = await self._lookup_dxcc(str(entity))
        logger.info(f"Successfully looked up DXCC entity: {entity} - {info.name}")
        return info

    async def lookup_dxcc_by_callsign(self, callsign: str) -> DxccInfo:
        """
        Look up the DXCC entity a callsign belongs to (prefix matching).

        Raises:
            InvalidInputError: If callsign is empty
            DxccNotFoundError: If no entity matches
        """
        callsign = _normalize_callsign(callsign)
        logger.debug(f"Looking up DXCC entity for callsign: {callsign}")

        info = await self._lookup_dxcc(callsign)
        logger.info(f"Successfully looked up DXCC entity for {callsign}: {info.dxcc} - {info.name}")
        return info

    async def lookup_all_dxcc_entities(self) -> List[DxccInfo]:
        """
        Fetch every DXCC entity.

        QRZ asks that this be used sparingly; cache the result.
        """
        logger.warning("Fetching all DXCC entities - use sparingly to avoid server overload")

        response = await self._retry_on_expiry(
            lambda: self._authenticated_request({"dxcc": "all"})
        )
        if not response.dxcc_entities:
            raise UnexpectedResponseError("No DXCC data in response")
        return response.dxcc_entities

    async def lookup_biography(self, callsign: str) -> BiographyData:
        """
        Fetch the biography page for a callsign.

        QRZ answers with raw HTML; errors come back as an XML envelope instead.
        """
        callsign = _normalize_callsign(callsign)
        logger.debug(f"Fetching biography for callsign: {callsign}")

        html_content = await self._retry_on_expiry(
            lambda: self._authenticated_html_request(callsign)
        )
        return BiographyData(callsign=callsign, html_content=html_content)

    # Request orchestration

    async def _lookup_dxcc(self, entity: str) -> DxccInfo:
        response = await self._retry_on_expiry(
            lambda: self._authenticated_request({"dxcc": entity})
        )
        if response.dxcc is None:
            if response.session.error is not None:
                raise DxccNotFoundError(entity)
            raise UnexpectedResponseError("No DXCC data in response")
        return response.dxcc

    async def _retry_on_expiry(self, operation: Callable[[], Awaitable[T]]) -> T:
        """
        Run an authenticated operation, re-logging in at most once.

        A second expiry within the same call clears the session and
        propagates to the caller.
        """
        try:
            return await operation()
        except (SessionExpiredError, NoSessionKeyError):
            logger.warning("Session expired, re-authenticating and retrying")
            await self._session.clear()
            await self._login()
            try:
                return await operation()
            except (SessionExpiredError, NoSessionKeyError):
                # Do not keep a key QRZ has just rejected
                await self._session.clear()
                raise

    async def _login(self) -> SessionInfo:
        """
        Log in with username/password and store the new session.

        Raises:
            ConnectionRefusedError: If QRZ is refusing this account
            AuthenticationFailedError: If username or password is rejected
            NoSessionKeyError: If QRZ returned no session key
        """
        logger.debug("Performing login to QRZ.com")
        response = await self._request({
            "username": self._username,
            "password": self._password,
            "agent": self.config.user_agent,
        })
        session = response.session

        if session.error is not None:
            raise classify_login_error(session.error)

        if not session.has_valid_session():
            raise NoSessionKeyError()

        await self._session.update(session)
        logger.info("Successfully authenticated with QRZ.com")
        return session

    async def _session_key(self) -> str:
        """Current session key, logging in first if there is none."""
        key, _, _ = await self._session.read()
        if key is None:
            await self._login()
            key, _, _ = await self._session.read()
            if key is None:
                raise NoSessionKeyError()
        return key

    async def _authenticated_request(self, params: Dict[str, str]) -> QRZResponse:
        """
        Send an authenticated request and check the session in the reply.

        A "not found" error is returned to the caller, which knows what was
        asked for; every other embedded error is raised here.
        """
        key = await self._session_key()
        response = await self._request({"s": key, **params})

        await self._session.update(response.session)

        error = classify_request_error(response.session.error)
        if error is not None:
            raise error

        # QRZ drops the key when it silently invalidates a session
        if not response.session.has_valid_session():
            raise SessionExpiredError()

        return response

    async def _authenticated_html_request(self, callsign: str) -> str:
        key = await self._session_key()
        text = await self._get({"s": key, "html": callsign})

        if not looks_like_xml(text):
            return text

        try:
            response = parse_response(text)
        except XmlParsingError:
            # XHTML biographies also start with an XML declaration
            return text

        await self._session.update(response.session)
        error = classify_request_error(response.session.error)
        if error is not None:
            raise error
        if response.session.error is not None:
            raise CallsignNotFoundError(callsign)
        if not response.session.has_valid_session():
            raise SessionExpiredError()
        raise UnexpectedResponseError("Biography request returned an XML envelope without HTML")

    async def _request(self, params: Dict[str, str]) -> QRZResponse:
        text = await self._get(params)
        try:
            return parse_response(text)
        except XmlParsingError as e:
            logger.warning(f"Failed to parse XML response: {e}")
            raise

    async def _get(self, params: Dict[str, str]) -> str:
        """GET the endpoint with form-encoded params and return the body."""
        try:
            response = await self._http.get(self._url, params=params)
        except httpx.HTTPError as e:
            raise NetworkError(f"{type(e).__name__}: {e}") from e

        if response.status_code == 429:
            raise RateLimitExceededError()

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NetworkError(f"HTTP {response.status_code} from QRZ") from e

        logger.debug(f"Received response ({response.status_code}): {response.text}")
        return response.text


def _normalize_callsign(callsign: str) -> str:
    if not callsign or not callsign.strip():
        raise InvalidInputError("Callsign cannot be empty")
    return callsign.strip().upper()


