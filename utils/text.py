"""Text helpers for inbound payloads and outbound recipients."""

import re
from typing import Any, Dict, Optional

USER_ID_SUFFIX = "@s.whatsapp.net"

# Payload shapes checked in priority order: (field, nested text key).
_TEXT_SHAPES = (
    ("conversation", None),
    ("extendedTextMessage", "text"),
    ("imageMessage", "caption"),
    ("videoMessage", "caption"),
    ("documentMessage", "caption"),
)


def normalize_text(value: Any) -> str:
    """Trim and case-fold text for trigger comparison."""
    return str(value or "").strip().casefold()


def extract_text(content: Optional[Dict[str, Any]]) -> str:
    """Return the first non-empty text found in a transport message payload."""
    if not content:
        return ""
    for key, nested in _TEXT_SHAPES:
        value = content.get(key)
        if nested is not None:
            value = value.get(nested) if isinstance(value, dict) else None
        if isinstance(value, str) and value:
            return value
    return ""


def to_recipient_id(to: Any) -> str:
    """Strip a phone number to digits and address it as a user id; '' if no digits."""
    digits = re.sub(r"\D", "", str(to or ""))
    if not digits:
        return ""
    return f"{digits}{USER_ID_SUFFIX}"
