"""Session resource: token minting and archive operations for one session.

WHY: Almost every call a server makes is scoped to a session: hand a
client a token for it, start or stop a recording of it. A Session object
bundles the session ID with the client that owns the credentials.

HOW: Session is a dataclass parsed from the session-create response (or
built from a known ID by TokboxClient.session_from_id). It keeps a
back-reference to its TokboxClient and routes every operation through it.

RULES:
- The client back-reference is not part of equality or repr
- A Session without a client cannot mint tokens or touch archives
- Archive state transitions are server-authoritative; nothing is cached
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Optional, Union

from tokbox.api.models import ArchiveList, ArchiveMetadata, Role
from tokbox.errors import ConfigurationError, DecodeError

if TYPE_CHECKING:
    from tokbox.api.client import TokboxClient

logger = logging.getLogger(__name__)

DEFAULT_OUTPUT_MODE = "composed"
DEFAULT_RESOLUTION = "1280x720"
DEFAULT_LAYOUT = "bestFit"


@dataclass
class Session:
    """One TokBox session and the client it belongs to.

    RULES:
    - session_id is the only field guaranteed to be set
    - create_dt / status / media_server_url are only filled by new_session()
    """

    session_id: str
    project_id: str = ""
    partner_id: str = ""
    create_dt: str = ""
    status: str = ""
    media_server_url: str = ""
    client: Optional[TokboxClient] = field(default=None, repr=False, compare=False)

    @classmethod
    def from_dict(cls, data: Any, client: Optional[TokboxClient] = None) -> Session:
        """Parse one element of the session-create response array."""
        if not isinstance(data, dict) or not data.get("session_id"):
            raise DecodeError("session object has no 'session_id' field")
        return cls(
            session_id=data["session_id"],
            project_id=str(data.get("project_id") or ""),
            partner_id=str(data.get("partner_id") or ""),
            create_dt=data.get("create_dt") or "",
            status=data.get("session_status") or "",
            media_server_url=data.get("media_server_url") or "",
            client=client,
        )

    def _require_client(self) -> TokboxClient:
        if self.client is None:
            raise ConfigurationError(
                "Session {} is not bound to a TokboxClient; "
                "use TokboxClient.session_from_id()".format(self.session_id)
            )
        return self.client

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def token(
        self,
        role: Union[Role, str, None] = Role.PUBLISHER,
        connection_data: str = "",
        expire_in: int = 0,
    ) -> str:
        """Mint a client token for this session.

        Args:
            role: Capability granted to the client (default publisher).
            connection_data: Metadata other clients see for this connection.
            expire_in: Lifetime in seconds; 0 for no expire_time field.
        """
        return self._require_client().signer.session_token(
            self.session_id, role=role, connection_data=connection_data, expire_in=expire_in
        )

    # ------------------------------------------------------------------
    # Archives
    # ------------------------------------------------------------------

    def start_archive(
        self,
        name: str,
        *,
        has_audio: bool = True,
        has_video: bool = True,
        output_mode: str = DEFAULT_OUTPUT_MODE,
        resolution: str = DEFAULT_RESOLUTION,
        layout: str = DEFAULT_LAYOUT,
    ) -> ArchiveMetadata:
        """Start recording this session and return the new archive's metadata.

        WHY: Recording is started server-side; the response carries the
        archive ID needed to stop it later.

        HOW: POSTs a JSON body to /v2/project/{key}/archive. Defaults give a
        composed 1280x720 best-fit recording with audio and video.

        RULES:
        - Raises RemoteError (status + body) on non-200
        - Raises DecodeError if the body is not an archive object
        """
        client = self._require_client()
        body = {
            "sessionId": self.session_id,
            "hasAudio": has_audio,
            "hasVideo": has_video,
            "layout": {"type": layout},
            "name": name,
            "outputMode": output_mode,
            "resolution": resolution,
        }
        resp = client._request("POST", client.archive_path(), json=body)
        archive = ArchiveMetadata.from_dict(client._decode(resp))
        logger.info("Started archive %s for session %s", archive.id, self.session_id)
        return archive

    def stop_archive(self, archive_id: str) -> None:
        """Stop a running archive. Same as TokboxClient.stop_archive."""
        self._require_client().stop_archive(archive_id)

    def list_archives(self) -> ArchiveList:
        """List the project's archives.

        The endpoint is project-wide; items are not filtered to this session.
        """
        return self._require_client().list_archives()
