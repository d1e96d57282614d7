"""Strip markup from user-supplied text before it is stored."""

import re

import nh3

_CONTROL_RE = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]")


def sanitize_input(value: str) -> str:
    """Remove every HTML tag and attribute, script/style bodies and control characters.

    The text is parsed as HTML, so unterminated or malformed tags are dropped
    too. Remaining text is HTML-escaped (e.g. "<" becomes "&lt;").

    Args:
        value: Raw text (e.g. "<b>hi</b><script>x()</script>").

    Returns:
        Plain text (e.g. "hi"). Non-string values are returned unchanged.
    """
    if not isinstance(value, str):
        return value
    value = _CONTROL_RE.sub("", value)
    value = nh3.clean(value, tags=set(), attributes={})
    return value.strip()
