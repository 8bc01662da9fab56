"""Decoding helpers for Filmix player payloads.

Filmix hides stream URLs and nested playlists behind a reversible scheme:
a two character version marker, escaped slashes, junk tokens sprinkled
through a base64 body. The marker length and the token set below were
observed on one deployment of the site; if it changes its obfuscation this
module has to be re-derived from fresh samples.
"""

import base64
import binascii
import logging
import re

logger = logging.getLogger(__name__)

VERSION_MARKER_LENGTH = 2

JUNK_TOKENS = (
    ":<:bzl3UHQwaWk0MkdXZVM3TDdB",
    ":<:SURhQnQwOEM5V2Y3bFlyMGVI",
    ":<:bE5qSTlWNVUxZ01uc3h0NFFy",
    ":<:Mm93S0RVb0d6c3VMTkV5aE54",
    ":<:MTluMWlLQnI4OXVic2tTNXpU",
)

_BRACKET_LABEL = re.compile(r"\s*\[(.*?)\]")


def _strip_junk(text: str) -> str:
    """Remove junk tokens until a pass removes nothing."""
    while True:
        modified = False
        for token in JUNK_TOKENS:
            if token in text:
                text = text.replace(token, "")
                modified = True
        if not modified:
            return text


def decode_string_tokens(raw: str) -> str:
    """Decode an obfuscated Filmix string; returns "" when nothing usable comes out."""
    clean = raw[VERSION_MARKER_LENGTH:].replace("\\/", "/")
    clean = _strip_junk(clean)

    try:
        return base64.b64decode(clean, validate=True).decode("utf-8")
    except (binascii.Error, ValueError) as e:
        logger.debug("Cipher decode failed: %s", e)
        return ""


def decode_bracket_map(items: list[str]) -> dict[str, str]:
    """Turn ["[720p] url", ...] into {"720p": "url"}; last duplicate wins."""
    result: dict[str, str] = {}
    for item in items:
        match = _BRACKET_LABEL.match(item)
        if not match:
            continue
        result[match.group(1)] = item[match.end():].strip()
    return result
