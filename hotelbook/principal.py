"""Textual principal ids.

A principal is rendered as lowercase base32 (no padding) of
``crc32(raw) || raw``, split into dash-separated groups of five characters.
"""
import base64
import re
import zlib

from .errors import InputError

MAX_PRINCIPAL_BYTES = 29
ANONYMOUS_BYTES = b"\x04"

_TEXT_RE = re.compile(r"^[a-z2-7]{1,5}(-[a-z2-7]{1,5})*$")


class Principal:
    __slots__ = ("raw",)

    def __init__(self, raw: bytes):
        if len(raw) > MAX_PRINCIPAL_BYTES:
            raise InputError("Principal is too long")
        self.raw = bytes(raw)

    @classmethod
    def from_text(cls, text: str) -> "Principal":
        text = (text or "").strip().lower()
        if not text or not _TEXT_RE.match(text):
            raise InputError("Invalid Principal ID format")
        compact = text.replace("-", "").upper()
        padded = compact + "=" * (-len(compact) % 8)
        try:
            decoded = base64.b32decode(padded)
        except (ValueError, TypeError):
            raise InputError("Invalid Principal ID format")
        if len(decoded) < 4:
            raise InputError("Invalid Principal ID format")
        checksum, raw = decoded[:4], decoded[4:]
        if zlib.crc32(raw).to_bytes(4, "big") != checksum:
            raise InputError("Invalid Principal ID checksum")
        principal = cls(raw)
        # Reject non-canonical spellings (wrong grouping, trailing bits)
        if principal.to_text() != text:
            raise InputError("Invalid Principal ID format")
        return principal

    @classmethod
    def anonymous(cls) -> "Principal":
        return cls(ANONYMOUS_BYTES)

    def is_anonymous(self) -> bool:
        return self.raw == ANONYMOUS_BYTES

    def to_text(self) -> str:
        checksum = zlib.crc32(self.raw).to_bytes(4, "big")
        encoded = base64.b32encode(checksum + self.raw).decode("ascii").rstrip("=").lower()
        return "-".join(encoded[i:i + 5] for i in range(0, len(encoded), 5))

    def __str__(self) -> str:
        return self.to_text()

    def __repr__(self) -> str:
        return f"Principal({self.to_text()!r})"

    def __eq__(self, other) -> bool:
        return isinstance(other, Principal) and other.raw == self.raw

    def __hash__(self) -> int:
        return hash(self.raw)


def parse_principal(text: str | None) -> str:
    """Validate principal text and return its canonical spelling."""
    return Principal.from_text(text or "").to_text()


def short_principal(text: str, length: int = 10) -> str:
    return text if len(text) <= length else f"{text[:length]}..."
