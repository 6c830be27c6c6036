"""Text cleaning and placeholder substitution for certificate strings."""

from __future__ import annotations

import re
import unicodedata

from ..constants import PLACEHOLDER_TOKENS
from ..models import CertificateData
from .time import format_date_brazil, format_time_brazil, format_time_range

_EMOJI_RE = re.compile(
    "["
    "\U0001F1E0-\U0001F1FF"
    "\U0001F300-\U0001F5FF"
    "\U0001F600-\U0001F64F"
    "\U0001F680-\U0001F6FF"
    "\U0001F700-\U0001FAFF"
    "\u2600-\u27bf"
    "\ufe0e\ufe0f"
    "\u200d"
    "]"
)
_LINE_BREAKS_RE = re.compile(r"[\t\n\r]")
_CONTROL_RE = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_WHITESPACE_RE = re.compile(r"\s+")
_TOKEN_RE = re.compile("|".join(re.escape(token) for token in PLACEHOLDER_TOKENS))

_PUNCTUATION = {
    "\u201c": '"',
    "\u201d": '"',
    "\u201e": '"',
    "\u2018": "'",
    "\u2019": "'",
    "\u201a": "'",
    "\u2013": "-",
    "\u2014": "-",
    "\u2026": "...",
    "\u00a0": " ",
}
_PUNCTUATION_TABLE = str.maketrans(_PUNCTUATION)

# Letters and symbols that NFD does not decompose into an ASCII base.
_ASCII_FALLBACKS = str.maketrans(
    {
        "ß": "ss",
        "æ": "ae",
        "Æ": "AE",
        "ø": "o",
        "Ø": "O",
        "œ": "oe",
        "Œ": "OE",
        "ð": "d",
        "Ð": "D",
        "þ": "th",
        "Þ": "TH",
        "€": "EUR",
        "£": "GBP",
        "©": "(C)",
        "®": "(R)",
        "™": "TM",
    }
)


def _strip_symbols(text: str) -> str:
    text = _EMOJI_RE.sub("", text)
    text = _LINE_BREAKS_RE.sub(" ", text)
    text = _CONTROL_RE.sub("", text)
    return text.translate(_PUNCTUATION_TABLE)


def sanitize(text: str | None, ascii_only: bool = False) -> str:
    """Clean a string before it is measured and drawn.

    With ``ascii_only`` accents are folded to their base letter and every
    other non-ASCII code point is dropped. Without it diacritics survive and
    only emoji, control characters and typographic punctuation are touched.
    Both modes are idempotent.
    """
    if not text:
        return ""
    cleaned = _strip_symbols(text)
    if not ascii_only:
        return cleaned
    cleaned = cleaned.translate(_ASCII_FALLBACKS)
    cleaned = unicodedata.normalize("NFD", cleaned)
    cleaned = "".join(ch for ch in cleaned if not unicodedata.combining(ch))
    cleaned = cleaned.encode("ascii", "ignore").decode("ascii")
    return _WHITESPACE_RE.sub(" ", cleaned).strip()


def placeholder_values(data: CertificateData) -> dict[str, str]:
    return {
        "{userName}": data.user_name or "",
        "{eventName}": data.event_name or "",
        "{eventDate}": format_date_brazil(data.event_date),
        "{eventTime}": format_time_range(data.event_start_time, data.event_end_time),
        "{eventStartTime}": format_time_brazil(data.event_start_time),
        "{eventEndTime}": format_time_brazil(data.event_end_time),
    }


def substitute_placeholders(template: str, data: CertificateData) -> str:
    """Literal, single-pass token replacement.

    Substituted values are never scanned again, so a participant name that
    contains ``{eventName}`` or ``\\1`` is drawn verbatim.
    """
    if not template:
        return ""
    values = placeholder_values(data)
    return _TOKEN_RE.sub(lambda match: values[match.group(0)], template)


def slugify(value: str) -> str:
    cleaned = sanitize(value, ascii_only=True).lower()
    cleaned = re.sub(r"[^\w\s-]", "", cleaned)
    return re.sub(r"[\s_-]+", "-", cleaned).strip("-")
