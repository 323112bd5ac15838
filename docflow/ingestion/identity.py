"""Document identity: minting, and derivation from blob keys.

Direct-drop keys look like ``uploads/<source>/<documentId>/<fileName>``. The
identity scheme lives here alone so it can change without touching the
pipeline.
"""

import uuid
from urllib.parse import unquote_plus

UPLOAD_PREFIX = "uploads"
API_SOURCE = "api"


def new_document_id() -> str:
    return str(uuid.uuid4())


def decode_event_key(raw_key: str) -> str:
    """Decode an object key as delivered in storage event notifications."""
    return unquote_plus(raw_key)


def derive_document_id(key: str) -> str:
    """Return the identity segment of ``key``, or a fresh identity.

    >>> derive_document_id("uploads/direct/doc-123/file.pdf")
    'doc-123'
    """
    parts = key.split("/")
    if len(parts) >= 4 and parts[0] == UPLOAD_PREFIX and parts[2].strip():
        return parts[2]
    return new_document_id()


def build_upload_key(document_id: str, file_name: str, source: str = API_SOURCE) -> str:
    return f"{UPLOAD_PREFIX}/{source}/{document_id}/{file_name}"
