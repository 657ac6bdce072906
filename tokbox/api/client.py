"""Synchronous HTTP client for the TokBox (OpenTok) REST API.

WHY: Creating sessions and managing archives are authenticated REST calls
that all share the same plumbing: a fresh JWT header, an Accept header,
status-code checks, and JSON decoding. This module does that once so the
Session resource only describes *what* to send.

HOW: Wraps httpx.Client with a 30-second timeout. Every request is built
with build_request(), stamped with a service token from the TokenSigner,
and sent. Network failures become TransportError, non-200 responses become
RemoteError, and unparseable bodies become DecodeError. The client is a
context manager; exiting it closes the connection pool.

RULES:
- Credentials are immutable after construction and never logged
- A new X-OPENTOK-AUTH token is minted for every request
- No retries: each call is exactly one round trip
- An httpx transport can be injected (tests use httpx.MockTransport)
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from tokbox.api.models import ArchiveList, MediaMode
from tokbox.config import TOKBOX_BASE_URL, Credentials, load_credentials, load_timeout
from tokbox.errors import ConfigurationError, DecodeError, RemoteError, TransportError
from tokbox.session import Session
from tokbox.tokens import SERVICE_TOKEN_HEADER, TokenSigner

logger = logging.getLogger(__name__)


class TokboxClient:
    """Client for one TokBox project.

    WHY: Holds the project's credentials, the HTTP connection pool, and the
    token signer, and hands out Session objects bound to itself.

    HOW: Construct with an API key and secret (or from_env()). Use as a
    context manager, or call close() when done.

    RULES:
    - base_url defaults to TOKBOX_BASE_URL from config
    - timeout defaults to TOKBOX_TIMEOUT_S, read at construction (30s)
    - signer defaults to a TokenSigner over the same credentials
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
        signer: TokenSigner | None = None,
    ) -> None:
        if not api_key or not api_secret:
            raise ConfigurationError("TokboxClient requires both an API key and an API secret")
        self._credentials = Credentials(api_key=api_key, api_secret=api_secret)
        self.signer = signer or TokenSigner(self._credentials)
        self._http = httpx.Client(
            base_url=(base_url or TOKBOX_BASE_URL).rstrip("/"),
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(load_timeout() if timeout is None else timeout),
            transport=transport,
        )

    @classmethod
    def from_env(cls, **kwargs: Any) -> TokboxClient:
        """Build a client from TOKBOX_API_KEY / TOKBOX_API_SECRET."""
        credentials = load_credentials()
        return cls(credentials.api_key, credentials.api_secret, **kwargs)

    def __enter__(self) -> TokboxClient:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        self.close()

    def __repr__(self) -> str:
        return "TokboxClient(api_key={!r})".format(self.api_key)

    def close(self) -> None:
        self._http.close()

    @property
    def api_key(self) -> str:
        return self._credentials.api_key

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    def new_session(
        self,
        location: str = "",
        media_mode: MediaMode | str = MediaMode.ROUTED,
    ) -> Session:
        """Create a new session and return it bound to this client.

        WHY: Sessions are created server-side; the returned ID is what
        tokens and archives are scoped to.

        HOW: POSTs form fields p2p.preference and (if given) location to
        /session/create. The response is a JSON array of session objects;
        the first one is returned.

        RULES:
        - location is an IP address hint for the media server; "" omits it
        - Raises RemoteError on non-200
        - Raises DecodeError if the array is empty or not an array

        Args:
            location: Optional IP address hint.
            media_mode: MediaMode.ROUTED or MediaMode.RELAYED.

        Returns:
            The new Session.
        """
        form = {"p2p.preference": MediaMode(media_mode).value}
        if location:
            form["location"] = location

        resp = self._request("POST", "/session/create", data=form)
        sessions = self._decode(resp)
        if not isinstance(sessions, list):
            raise DecodeError("expected a JSON array of sessions")
        if not sessions:
            raise DecodeError("TokBox did not return a session")

        session = Session.from_dict(sessions[0], client=self)
        logger.info("Created session %s", session.session_id)
        return session

    def session_from_id(self, session_id: str) -> Session:
        """Return a Session handle for a known ID, without a network call."""
        return Session(session_id=session_id, client=self)

    # ------------------------------------------------------------------
    # Archives (project-scoped)
    # ------------------------------------------------------------------

    def archive_path(self, archive_id: str | None = None) -> str:
        """Path of the project's archive collection, or of one archive in it.

        The archive ID is percent-encoded as a single path segment.
        """
        path = "/v2/project/{}/archive".format(quote(self.api_key, safe=""))
        if archive_id is not None:
            path += "/" + quote(archive_id, safe="")
        return path

    def stop_archive(self, archive_id: str) -> None:
        """Stop a running archive.

        RULES:
        - The stop endpoint is project-scoped; no session ID is needed
        - archive_id must be non-empty (ValueError otherwise)
        - Raises RemoteError on non-200 (e.g. 404 unknown, 409 not recording)
        """
        if not archive_id:
            raise ValueError("archive_id must not be empty")
        self._request("POST", self.archive_path(archive_id) + "/stop")
        logger.info("Stopped archive %s", archive_id)

    def list_archives(self) -> ArchiveList:
        """List every archive in the project."""
        resp = self._request("GET", self.archive_path())
        return ArchiveList.from_dict(self._decode(resp))

    # ------------------------------------------------------------------
    # Request plumbing
    # ------------------------------------------------------------------

    def _request(
        self,
        method: str,
        path: str,
        *,
        data: dict[str, str] | None = None,
        json: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one authenticated request and return the 200 response.

        RULES:
        - Raises ConfigurationError if the request cannot be built
        - Raises SigningError if the service token cannot be signed
        - Raises TransportError on any httpx network/timeout error
        - Raises RemoteError for every status other than 200
        """
        token = self.signer.service_token()
        try:
            request = self._http.build_request(
                method,
                path,
                data=data,
                json=json,
                headers={SERVICE_TOKEN_HEADER: token},
            )
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            raise ConfigurationError(
                "failed to build {} request for {}".format(method, path)
            ) from exc

        logger.debug("%s %s", method, path)
        try:
            resp = self._http.send(request)
        except httpx.HTTPError as exc:
            raise TransportError(
                "failed to perform {} {}: {}".format(method, path, exc.__class__.__name__)
            ) from exc

        logger.debug("%s %s -> %d", method, path, resp.status_code)
        if resp.status_code != 200:
            raise RemoteError(resp.status_code, resp.text)
        return resp

    @staticmethod
    def _decode(resp: httpx.Response) -> Any:
        try:
            return resp.json()
        except ValueError as exc:
            raise DecodeError("failed to decode TokBox response as JSON") from exc
