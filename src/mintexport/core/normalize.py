"""Normalization of metric names, attribute keys and attribute values.

Names may only contain ``[A-Za-z0-9_-]`` sections joined by ``.``, and the
first section must start with a letter. Invalid characters are collapsed
into a single ``_`` rather than removed so that ``a~b`` and ``ab`` stay
distinct.
"""

import re

from mintexport.core.errors import NormalizationFailure
from mintexport.core.models import AttributeValue

MAX_METRIC_NAME_LENGTH = 250
MAX_ATTRIBUTE_KEY_LENGTH = 100
MAX_ATTRIBUTE_VALUE_LENGTH = 250

_FROM_FIRST_LETTER = re.compile(r"[A-Za-z].*", re.DOTALL)
_LEADING_NON_ALNUM = re.compile(r"^[^A-Za-z0-9]+")
_DISALLOWED_RUN = re.compile(r"[^A-Za-z0-9_-]+")

_ESCAPED_CHARS = {
    "\\": "\\\\",
    '"': '\\"',
    ",": "\\,",
    "=": "\\=",
    "\n": "\\n",
    "\r": "\\r",
    "\t": "\\t",
}
_UNESCAPED_CHARS = {escaped[1]: raw for raw, escaped in _ESCAPED_CHARS.items()}


def _normalize_section(section: str) -> str:
    return _DISALLOWED_RUN.sub("_", _LEADING_NON_ALNUM.sub("", section))


def _normalize_first_section(section: str) -> str:
    match = _FROM_FIRST_LETTER.search(section)
    if match is None:
        return ""
    return _normalize_section(match.group(0))


def normalize_metric_name(raw: str) -> str:
    """Normalize a metric name to the line grammar.

    Args:
        raw: Metric name as given by the instrument, prefix already joined.

    Returns:
        The normalized name, or an empty string if the first section has no
        ASCII letter. Callers must skip the metric on an empty result.
    """
    sections = raw[:MAX_METRIC_NAME_LENGTH].split(".")

    first = _normalize_first_section(sections[0])
    if not first:
        return ""

    normalized = [first]
    for section in sections[1:]:
        section = _normalize_section(section)
        if section:
            normalized.append(section)
    return ".".join(normalized)


def normalize_metric_name_or_raise(raw: str) -> str:
    """Like normalize_metric_name but raises NormalizationFailure on failure."""
    name = normalize_metric_name(raw)
    if not name:
        raise NormalizationFailure(raw)
    return name


def normalize_attribute_key(raw: str) -> str:
    """Normalize an attribute key; an empty result means drop the attribute."""
    return _normalize_section(raw.lower()[:MAX_ATTRIBUTE_KEY_LENGTH])


def attribute_value_to_text(value: AttributeValue) -> str:
    """Render an attribute value as text before escaping."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def escape_attribute_value(value: AttributeValue) -> str:
    """Escape a value for use inside ``key="..."``.

    Backslash, double quote, comma and equals sign are prefixed with a
    backslash; newline, carriage return and tab become ``\\n``, ``\\r`` and
    ``\\t``; other C0 and C1 control characters and DEL become
    ``\\u00XX``. Values are truncated to 250 characters before escaping.
    """
    text = attribute_value_to_text(value)[:MAX_ATTRIBUTE_VALUE_LENGTH]
    out = []
    for char in text:
        escaped = _ESCAPED_CHARS.get(char)
        if escaped is not None:
            out.append(escaped)
        elif char < " " or "\x7f" <= char <= "\x9f":
            out.append(f"\\u{ord(char):04x}")
        else:
            out.append(char)
    return "".join(out)


def unescape_attribute_value(escaped: str) -> str:
    """Reverse escape_attribute_value.

    Raises:
        ValueError: On a dangling backslash or an unknown escape sequence.
    """
    out = []
    i = 0
    while i < len(escaped):
        char = escaped[i]
        if char != "\\":
            out.append(char)
            i += 1
            continue
        if i + 1 >= len(escaped):
            raise ValueError(f"dangling backslash in {escaped!r}")
        code = escaped[i + 1]
        if code in _UNESCAPED_CHARS:
            out.append(_UNESCAPED_CHARS[code])
            i += 2
        elif code == "u" and i + 6 <= len(escaped):
            try:
                out.append(chr(int(escaped[i + 2 : i + 6], 16)))
            except ValueError:
                raise ValueError(f"bad unicode escape in {escaped!r}") from None
            i += 6
        else:
            raise ValueError(f"unknown escape \\{code} in {escaped!r}")
    return "".join(out)
