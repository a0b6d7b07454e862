"""
Small helpers shared by the model and the codecs.
"""

from __future__ import annotations

import random
import re
import string
import time

_BASE36 = string.digits + string.ascii_lowercase


def generate_id() -> str:
    """Unique id built from the current time in ms and 9 random base36 chars."""
    suffix = "".join(random.choice(_BASE36) for _ in range(9))
    return f"{int(time.time() * 1000)}-{suffix}"


def format_number(value: float | int) -> str:
    """Render a number without a trailing '.0' when it is integral."""
    if isinstance(value, bool):
        value = int(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def format_bool(value: bool) -> str:
    """Lowercase boolean literal used in option strings and XML flags."""
    return "true" if value else "false"


# Characters XML 1.0 does not allow, even inside CDATA
_INVALID_XML_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]")


def strip_invalid_xml_chars(text: str | None) -> str:
    """Drop characters that cannot appear in an XML 1.0 document."""
    return _INVALID_XML_CHARS.sub("", text or "")
