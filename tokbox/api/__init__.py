"""TokBox API package: HTTP client and wire dataclasses.

WHY: Session creation and archive management are plain REST calls. This
package keeps every HTTP concern (auth headers, status mapping, JSON
decoding) in one place.

HOW: Uses httpx.Client for synchronous HTTP. TokboxClient lives in
client.py; response data is parsed into the dataclasses defined in
models.py, which are re-exported here.

RULES:
- All HTTP calls go through TokboxClient (no direct httpx usage elsewhere)
- Authentication is a fresh X-OPENTOK-AUTH JWT on every request
"""

from tokbox.api.models import ArchiveList, ArchiveMetadata, ArchiveStatus, MediaMode, Role

__all__ = ["ArchiveList", "ArchiveMetadata", "ArchiveStatus", "MediaMode", "Role"]
