"""
Small decoders for values returned by the YouTube Data API.
Both degrade to safe defaults instead of raising, so one malformed item
never aborts a batch.
"""
from __future__ import annotations

import re

# PT5M30S, PT1H, P0D, P1DT2H3M4S. Every unit is optional.
DURATION_REGEX = re.compile(
    r'^P(?:(\d+)D)?(?:T(?:(\d+)H)?(?:(\d+)M)?(?:(\d+)S)?)?$'
)

_ENTITY_REGEX = re.compile(r'&(quot|amp|lt|gt|apos|#39|#x27|#(\d+));')

_NAMED_ENTITIES = {
    "quot": '"',
    "amp": "&",
    "lt": "<",
    "gt": ">",
    "apos": "'",
    "#39": "'",
    "#x27": "'",
}


def parse_duration(value: str | None) -> int:
    """
    Convert a compact duration token to whole seconds.

    "PT5M30S" -> 330, "PT1H2M3S" -> 3723, "PT" -> 0.
    Anything that does not fit the grammar returns 0.
    """
    if not isinstance(value, str):
        return 0
    match = DURATION_REGEX.match(value.strip())
    if not match:
        return 0

    days, hours, minutes, seconds = (int(g) if g else 0 for g in match.groups())
    return days * 86400 + hours * 3600 + minutes * 60 + seconds


def _replace_entity(match: re.Match) -> str:
    decimal = match.group(2)
    if decimal is not None:
        try:
            return chr(int(decimal))
        except (ValueError, OverflowError):
            return match.group(0)
    return _NAMED_ENTITIES[match.group(1)]


def decode_html_entities(text: str | None) -> str:
    """
    Decode the escapes the API uses in titles and descriptions.

    Single pass, so "&amp;lt;" becomes "&lt;" and not "<". Unknown escapes
    and bare ampersands are left as they are.
    """
    if not text:
        return ""
    return _ENTITY_REGEX.sub(_replace_entity, text)
