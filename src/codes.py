"""Sticker code normalization.

Canonical codes are letters followed by zero-padded digits with no dash,
e.g. ``NBK0001``. Users and scanners produce all kinds of variants
(``nbk-1``, ``NBK 001``), all of which collapse to the same canonical code.
"""
import re
from typing import Optional

from src import config

_CODE_RE = re.compile(r"^([A-Z]+)([0-9]+)$")
_STRIP_RE = re.compile(r"[^A-Z0-9]")


class UnknownProjectError(ValueError):
    """Raised when a code's letter prefix maps to no known project."""

    def __init__(self, code: str):
        super().__init__(f"No project for sticker prefix of {code!r}")
        self.code = code


def clean_code(raw: Optional[str]) -> str:
    """Upper-case and drop everything outside A-Z0-9."""
    return _STRIP_RE.sub("", (raw or "").upper())


def normalize_sticker(raw: Optional[str], pad: int = None, strict: bool = False) -> Optional[str]:
    """
    Canonicalize user or scanner input.

    Args:
        raw: Text as typed or scanned
        pad: Digit width, defaults to CODE_PAD
        strict: Return None instead of the cleaned string when the input
            is not LETTERS+DIGITS

    Returns:
        ``NBK0001``-style code, the cleaned string (lenient), or None (strict)
    """
    pad = config.CODE_PAD if pad is None else pad
    cleaned = clean_code(raw)
    match = _CODE_RE.match(cleaned)
    if not match:
        return None if strict else cleaned
    letters, digits = match.groups()
    # NBK1, NBK01 and NBK0001 are the same sticker
    return letters + digits.lstrip("0").rjust(pad, "0")


def is_canonical(code: str) -> bool:
    return bool(code) and normalize_sticker(code, strict=True) == code


def to_dashed(code: str) -> str:
    """Legacy ``LETTERS-DIGITS`` form, only for reading old records."""
    match = _CODE_RE.match(code or "")
    return f"{match.group(1)}-{match.group(2)}" if match else code


def code_prefix(code: str) -> str:
    match = _CODE_RE.match(code or "")
    return match.group(1) if match else ""


def project_for_code(code: str, prefixes=None) -> str:
    """Map a canonical code to its project via the configured prefixes."""
    prefixes = config.PROJECT_PREFIXES if prefixes is None else prefixes
    project = prefixes.get(code_prefix(code))
    if project is None:
        raise UnknownProjectError(code)
    return project
