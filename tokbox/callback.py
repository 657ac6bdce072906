"""Archive status-change notification payload.

WHY: TokBox POSTs a JSON body to a project's callback URL whenever an
archive changes state. Receiving that request is the application's job,
but parsing the body into a typed object is shared work.

HOW: ArchiveStatusChange is a frozen dataclass with from_dict / from_json
factories. Each present field must carry its documented JSON type.

RULES:
- Received, never sent: there is no to_json
- Missing or null fields default to empty values; "id" is required
- url is "" until the archive is available for download
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any

from tokbox.api.models import get_field, require_id, require_object
from tokbox.errors import DecodeError


@dataclass(frozen=True)
class ArchiveStatusChange:
    """One archive status-change notification, keys mapped to snake_case."""

    id: str
    event: str = ""
    created_at: int = 0
    duration: int = 0
    name: str = ""
    partner_id: int = 0
    reason: str = ""
    resolution: str = ""
    session_id: str = ""
    size: int = 0
    status: str = ""
    url: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> ArchiveStatusChange:
        """Parse a decoded callback body.

        RULES:
        - data must be an object with a non-empty string "id"
        - Present fields must have their documented JSON type
        - Raises DecodeError otherwise
        """
        data = require_object(data, "archive callback")
        return cls(
            id=require_id(data, "archive callback"),
            event=get_field(data, "event", str, ""),
            created_at=get_field(data, "createdAt", int, 0),
            duration=get_field(data, "duration", int, 0),
            name=get_field(data, "name", str, ""),
            partner_id=get_field(data, "partnerId", int, 0),
            reason=get_field(data, "reason", str, ""),
            resolution=get_field(data, "resolution", str, ""),
            session_id=get_field(data, "sessionId", str, ""),
            size=get_field(data, "size", int, 0),
            status=get_field(data, "status", str, ""),
            url=get_field(data, "url", str, ""),
        )

    @classmethod
    def from_json(cls, body: str | bytes) -> ArchiveStatusChange:
        """Parse a raw callback request body."""
        try:
            data = json.loads(body)
        except ValueError as exc:
            raise DecodeError("archive callback body is not valid JSON") from exc
        return cls.from_dict(data)
