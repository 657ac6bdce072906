"""TokBox client: sessions, client tokens, and archives for the OpenTok API.

WHY: Servers using OpenTok need to create sessions, hand clients signed
tokens, and record sessions. The token formats are validated bit-for-bit
by the platform, so they are built in one well-tested place.

HOW: Three layers: token signing (tokens.py), HTTP plumbing
(api/client.py), and the session resource (session.py) that ties a
session ID to the client owning the credentials.

RULES:
- TokboxClient is the only entry point that talks to the network
- All errors derive from TokboxError
"""

from tokbox.api.client import TokboxClient
from tokbox.api.models import ArchiveList, ArchiveMetadata, ArchiveStatus, MediaMode, Role
from tokbox.callback import ArchiveStatusChange
from tokbox.config import Credentials
from tokbox.errors import (
    ConfigurationError,
    DecodeError,
    RemoteError,
    SigningError,
    TokboxError,
    TransportError,
)
from tokbox.session import Session
from tokbox.tokens import TokenSigner

__version__ = "0.1.0"

__all__ = [
    "ArchiveList",
    "ArchiveMetadata",
    "ArchiveStatus",
    "ArchiveStatusChange",
    "ConfigurationError",
    "Credentials",
    "DecodeError",
    "MediaMode",
    "RemoteError",
    "Role",
    "Session",
    "SigningError",
    "TokboxClient",
    "TokboxError",
    "TokenSigner",
    "TransportError",
]
