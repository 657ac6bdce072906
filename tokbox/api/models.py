"""TokBox API enums and response dataclasses.

WHY: The TokBox REST API returns flat JSON objects for archives and archive
lists. Typed dataclasses make these structures explicit, enable IDE
autocompletion, and catch field mismatches early.

HOW: Each dataclass maps 1:1 to a TokBox JSON object. Factory methods
(from_dict) translate the camelCase wire names to snake_case attributes and
raise DecodeError when a required field is missing, a field has the wrong JSON
type, or the payload is not an object. to_dict goes the other way for
callers that re-serialize snapshots.

RULES:
- Role and MediaMode values are the exact strings the platform expects
- ArchiveMetadata.url is None until the archive is available
- Unknown archive status strings are kept verbatim (server is authoritative)
- from_dict never raises KeyError/TypeError; it raises DecodeError
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any

from tokbox.errors import DecodeError


class Role(str, enum.Enum):
    """Capability level granted to a client by a session token.

    RULES:
    - publisher: publish, subscribe, and signal
    - subscriber: subscribe only
    - moderator: publisher rights plus force-unpublish / force-disconnect
    """

    PUBLISHER = "publisher"
    SUBSCRIBER = "subscriber"
    MODERATOR = "moderator"


class MediaMode(str, enum.Enum):
    """How a session routes media; sent as the p2p.preference form field.

    RULES:
    - ROUTED ("disabled"): streams go through the OpenTok Media Router
    - RELAYED ("enabled"): clients connect directly, falling back to TURN
    - Fixed at session creation, cannot be changed afterwards
    """

    ROUTED = "disabled"
    RELAYED = "enabled"


class ArchiveStatus(str, enum.Enum):
    """Archive states reported by the platform.

    The library only observes these; transitions
    (starting → started → stopped → available | failed) are never enforced.
    """

    STARTING = "starting"
    STARTED = "started"
    STOPPED = "stopped"
    PAUSED = "paused"
    UPLOADED = "uploaded"
    AVAILABLE = "available"
    EXPIRED = "expired"
    FAILED = "failed"


def require_object(data: Any, what: str) -> dict[str, Any]:
    """Return data if it is a JSON object, else raise DecodeError."""
    if not isinstance(data, dict):
        raise DecodeError(f"expected a JSON object for {what}, got {type(data).__name__}")
    return data


def require_id(data: dict[str, Any], what: str) -> str:
    """Return data["id"], which must be a non-empty string."""
    value = data.get("id")
    if not isinstance(value, str) or not value:
        raise DecodeError(f"{what} object has no string 'id' field")
    return value


def get_field(data: dict[str, Any], key: str, expected: type, default: Any) -> Any:
    """Read an optional field, checking its JSON type.

    WHY: A string where the platform documents a number means the body is
    not the shape we expect; coercing it would hide the problem.

    RULES:
    - Absent or null returns default
    - bool is not accepted where int is expected
    - Any other type mismatch raises DecodeError naming the key
    """
    value = data.get(key)
    if value is None:
        return default
    if (expected is int and isinstance(value, bool)) or not isinstance(value, expected):
        raise DecodeError(
            f"field {key!r} should be {expected.__name__}, got {type(value).__name__}"
        )
    return value


@dataclass
class ArchiveMetadata:
    """Snapshot of one archive as returned by the archive endpoints.

    WHY: start_archive and list_archives both return archive objects; callers
    need typed access to id, status, and download URL.

    HOW: Fields mirror the JSON object. Only "id" is required; everything
    else defaults so that partial objects (e.g. a freshly started archive
    without size or url) still parse.

    RULES:
    - id must be a non-empty string
    - created_at / updated_at are epoch milliseconds as sent by the server
    - sha256sum is the checksum of the archive file, empty until available
    - partner_id / project_id are integers on the wire
    - hasAudio / hasVideo must be JSON booleans
    """

    id: str
    name: str = ""
    created_at: int = 0
    duration: int = 0
    event: str = ""
    has_audio: bool = False
    has_video: bool = False
    output_mode: str = ""
    partner_id: int = 0
    password: str = ""
    project_id: int = 0
    reason: str = ""
    resolution: str = ""
    session_id: str = ""
    sha256sum: str = ""
    size: int = 0
    status: str = ""
    updated_at: int = 0
    url: str | None = None

    @classmethod
    def from_dict(cls, data: Any) -> ArchiveMetadata:
        """Parse an ArchiveMetadata from a raw API response dict.

        RULES:
        - Raises DecodeError if data is not an object, has no string id,
          or any present field has the wrong JSON type
        """
        data = require_object(data, "archive")
        return cls(
            id=require_id(data, "archive"),
            name=get_field(data, "name", str, ""),
            created_at=get_field(data, "createdAt", int, 0),
            duration=get_field(data, "duration", int, 0),
            event=get_field(data, "event", str, ""),
            has_audio=get_field(data, "hasAudio", bool, False),
            has_video=get_field(data, "hasVideo", bool, False),
            output_mode=get_field(data, "outputMode", str, ""),
            partner_id=get_field(data, "partnerId", int, 0),
            password=get_field(data, "password", str, ""),
            project_id=get_field(data, "projectId", int, 0),
            reason=get_field(data, "reason", str, ""),
            resolution=get_field(data, "resolution", str, ""),
            session_id=get_field(data, "sessionId", str, ""),
            sha256sum=get_field(data, "sha256sum", str, ""),
            size=get_field(data, "size", int, 0),
            status=get_field(data, "status", str, ""),
            updated_at=get_field(data, "updatedAt", int, 0),
            url=get_field(data, "url", str, None),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the camelCase wire shape."""
        return {
            "id": self.id,
            "name": self.name,
            "createdAt": self.created_at,
            "duration": self.duration,
            "event": self.event,
            "hasAudio": self.has_audio,
            "hasVideo": self.has_video,
            "outputMode": self.output_mode,
            "partnerId": self.partner_id,
            "password": self.password,
            "projectId": self.project_id,
            "reason": self.reason,
            "resolution": self.resolution,
            "sessionId": self.session_id,
            "sha256sum": self.sha256sum,
            "size": self.size,
            "status": self.status,
            "updatedAt": self.updated_at,
            "url": self.url,
        }


@dataclass
class ArchiveList:
    """Response of GET /v2/project/{key}/archive.

    RULES:
    - count is the server's total, which may exceed len(items) when paged
    - An empty collection is {"count": 0, "items": []}, not an error
    """

    count: int
    items: list[ArchiveMetadata] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> ArchiveList:
        """Parse the archive collection; every item goes through ArchiveMetadata.from_dict."""
        data = require_object(data, "archive list")
        items = get_field(data, "items", list, [])
        return cls(
            count=get_field(data, "count", int, 0),
            items=[ArchiveMetadata.from_dict(item) for item in items],
        )

    def to_dict(self) -> dict[str, Any]:
        return {"count": self.count, "items": [a.to_dict() for a in self.items]}
