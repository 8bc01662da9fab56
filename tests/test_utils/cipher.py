import base64

from visiontv.crypto import JUNK_TOKENS


def encode_tokens(text: str, junk: bool = True) -> str:
    """Build an obfuscated string the way Filmix serves it."""
    body = base64.b64encode(text.encode("utf-8")).decode("ascii")
    if junk:
        middle = len(body) // 2
        body = body[:middle] + JUNK_TOKENS[0] + body[middle:] + JUNK_TOKENS[3]
    return "#2" + body.replace("/", "\\/")
