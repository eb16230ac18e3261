"""
Runtime configuration for the designer backend.

Values are read from the environment (and a local .env file when present).
None of them change conversion semantics: the Elemental format version is
fixed and only the presentation-level knobs live here.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

# Elemental format tag written into every document we create
ELEMENTAL_VERSION = "2022-01-01"

_KNOWN_CHANNELS = ("email", "sms", "push", "inbox", "slack", "msteams")

LOG_LEVEL = os.getenv("DESIGNER_LOG_LEVEL", "INFO").upper()

# Prefix for block identifiers generated by the Elemental -> tree conversion
NODE_ID_PREFIX = os.getenv("DESIGNER_NODE_ID_PREFIX", "node-")


def _resolve_default_channel() -> str:
    """
    Return the channel used by the HTTP surface when a request names none.

    Reads ``DESIGNER_DEFAULT_CHANNEL``; unknown values fall back to "email"
    with a warning so a typo in the environment never breaks startup.
    """
    value = os.getenv("DESIGNER_DEFAULT_CHANNEL", "email").strip().lower()
    if value not in _KNOWN_CHANNELS:
        logger.warning(
            "DESIGNER_DEFAULT_CHANNEL=%r is not a known channel, using 'email'", value
        )
        return "email"
    return value


DEFAULT_CHANNEL = _resolve_default_channel()
