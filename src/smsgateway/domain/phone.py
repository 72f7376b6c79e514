"""Phone identity normalization.

Carriers and agents supply numbers as "(555) 123-4567", "5551234567" or
"+15551234567". All of them must collapse into one key so inbound and
outbound messages land in the same conversation.

Branch table (applied in order, on the digits of the raw value):

    empty / None            -> returned unchanged ("no identity known")
    10 digits               -> "+1" + digits
    11 digits, leading "1"  -> "+" + digits
    raw had a leading "+"   -> "+" + digits
    anything else           -> "+" + digits

normalize() runs on untrusted webhook input and never raises.
"""

from __future__ import annotations

import re
from typing import Any

DEFAULT_COUNTRY_CODE = "1"

_NON_DIGITS = re.compile(r"\D")

# E.164 numbers carry at most 15 digits; 8 is the shortest plan in use.
_MIN_DIGITS = 8
_MAX_DIGITS = 15


def normalize(raw: Any) -> Any:
    """Canonicalize a raw phone value into an E.164-like identity key.

    Args:
        raw: Phone value as received. Usually a string, but anything with a
            str() representation is accepted.

    Returns:
        The identity key, or the input itself when it is empty/None.
    """
    if not raw:
        return raw

    text = str(raw).strip()
    digits = _NON_DIGITS.sub("", text)

    if len(digits) == 10:
        return f"+{DEFAULT_COUNTRY_CODE}{digits}"
    if len(digits) == 11 and digits.startswith(DEFAULT_COUNTRY_CODE):
        return f"+{digits}"
    if text.startswith("+"):
        return f"+{digits}"
    # Permissive fallback: keep whatever digits we got
    return f"+{digits}"


def is_plausible(identity: str | None) -> bool:
    """True when the identity has a digit count some numbering plan allows."""
    if not identity:
        return False
    digits = _NON_DIGITS.sub("", identity)
    return _MIN_DIGITS <= len(digits) <= _MAX_DIGITS


def has_digits(identity: str | None) -> bool:
    """False for None/"" and for the bare "+" a digit-free value normalizes to."""
    return bool(identity) and bool(_NON_DIGITS.sub("", identity))
