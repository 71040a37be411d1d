"""
Input Validators and Sanitizers

Article ids are opaque strings generated by the content store. They travel
in URL paths, so only a conservative character set is accepted.
"""

import re
from typing import Optional

CONTENT_ID_PATTERN = re.compile(r'^[A-Za-z0-9_-]+$')
MAX_CONTENT_ID_LENGTH = 128


def sanitize_content_id(content_id: str) -> Optional[str]:
    """
    Sanitize and validate an article id.

    Args:
        content_id: The raw id taken from the request path

    Returns:
        The stripped id if valid, None otherwise

    Security:
    - Only allows [A-Za-z0-9_-]
    - Prevents path traversal (ids never contain '/' or '.')
    """
    if not content_id or not isinstance(content_id, str):
        return None

    content_id = content_id.strip()

    if not content_id or len(content_id) > MAX_CONTENT_ID_LENGTH:
        return None

    if not CONTENT_ID_PATTERN.match(content_id):
        return None

    return content_id
