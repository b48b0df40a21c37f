"""Strict base64 and raw DEFLATE codecs for SAML 2.0 binding payloads.

Decoding never raises. Each step returns a ``DecodeResult`` whose ``error``
names the failed stage and keeps the low-level exception for server-side
logging, so callers decide how a failure surfaces.
"""

from __future__ import annotations

import base64
import binascii
import zlib
from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

from saml2sp.core.binding import Saml2MessageBinding

T = TypeVar("T")

_BASE64_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/"
_LINE_SEPARATORS = str.maketrans("", "", "\r\n")
_RAW_DEFLATE_WBITS = -zlib.MAX_WBITS


class DecodeErrorKind(str, Enum):
    """Stage at which a SAML payload failed to decode."""

    INVALID_ENCODING = "invalid encoding"
    INVALID_COMPRESSION = "invalid compression"


class InflatedSizeExceededError(ValueError):
    """Raised internally when inflated output passes the configured cap."""

    def __init__(self, max_size: int) -> None:
        super().__init__(f"Inflated SAML message exceeds {max_size} bytes.")
        self.max_size = max_size


@dataclass(frozen=True)
class DecodeError:
    """Failed decode stage plus the underlying codec exception."""

    kind: DecodeErrorKind
    cause: Exception


@dataclass(frozen=True)
class DecodeResult(Generic[T]):
    """Either a decoded value or the error that prevented it."""

    value: T | None = None
    error: DecodeError | None = None

    @property
    def ok(self) -> bool:
        """Return True when decoding succeeded."""
        return self.error is None

    @classmethod
    def failure(cls, kind: DecodeErrorKind, cause: Exception) -> DecodeResult[T]:
        """Build a failed result."""
        return cls(error=DecodeError(kind=kind, cause=cause))


def saml_decode(payload: str) -> DecodeResult[bytes]:
    """Strictly base64-decode a binding parameter value.

    Line separators are ignored. Any other character outside the base64
    alphabet, malformed padding, data after padding, and non-zero discarded
    bits are rejected.
    """
    compact = payload.translate(_LINE_SEPARATORS)
    try:
        decoded = binascii.a2b_base64(compact.encode("ascii"), strict_mode=True)
        _reject_nonzero_trailing_bits(compact)
    except (UnicodeEncodeError, binascii.Error) as exc:
        return DecodeResult.failure(DecodeErrorKind.INVALID_ENCODING, exc)
    return DecodeResult(value=decoded)


def saml_inflate(data: bytes, max_size: int | None = None) -> DecodeResult[str]:
    """Inflate a raw DEFLATE stream into UTF-8 text.

    The stream must be complete and fully consume ``data``. When ``max_size``
    is set, output longer than ``max_size`` bytes is rejected.
    """
    inflater = zlib.decompressobj(wbits=_RAW_DEFLATE_WBITS)
    try:
        if max_size is None:
            inflated = inflater.decompress(data) + inflater.flush()
        else:
            inflated = inflater.decompress(data, max_size + 1)
            if len(inflated) > max_size:
                raise InflatedSizeExceededError(max_size)
        if not inflater.eof:
            raise zlib.error("Truncated DEFLATE stream.")
        if inflater.unused_data:
            raise zlib.error("Unexpected data after DEFLATE stream.")
        text = inflated.decode("utf-8")
    except (zlib.error, InflatedSizeExceededError, UnicodeDecodeError) as exc:
        return DecodeResult.failure(DecodeErrorKind.INVALID_COMPRESSION, exc)
    return DecodeResult(value=text)


def decode_utf8(data: bytes) -> DecodeResult[str]:
    """Interpret POST binding bytes as UTF-8 text."""
    try:
        return DecodeResult(value=data.decode("utf-8"))
    except UnicodeDecodeError as exc:
        return DecodeResult.failure(DecodeErrorKind.INVALID_ENCODING, exc)


def decode_message(
    payload: str,
    binding: Saml2MessageBinding,
    max_inflated_size: int | None = None,
) -> DecodeResult[str]:
    """Decode a binding parameter into the SAML XML string it carries."""
    decoded = saml_decode(payload)
    if not decoded.ok:
        return DecodeResult(error=decoded.error)
    raw = decoded.value or b""
    if binding is Saml2MessageBinding.REDIRECT:
        return saml_inflate(raw, max_size=max_inflated_size)
    return decode_utf8(raw)


def saml_encode(data: bytes) -> str:
    """Base64-encode bytes without line breaks."""
    return base64.b64encode(data).decode("ascii")


def saml_deflate(text: str) -> bytes:
    """Raw-DEFLATE compress UTF-8 text for the Redirect binding."""
    deflater = zlib.compressobj(zlib.Z_BEST_COMPRESSION, zlib.DEFLATED, _RAW_DEFLATE_WBITS)
    return deflater.compress(text.encode("utf-8")) + deflater.flush()


def _reject_nonzero_trailing_bits(encoded: str) -> None:
    """Reject encodings whose padding hides non-zero bits."""
    data = encoded.rstrip("=")
    padding = len(encoded) - len(data)
    if padding == 0 or not data:
        return
    unused_bits_mask = 0x0F if padding == 2 else 0x03
    if _BASE64_ALPHABET.index(data[-1]) & unused_bits_mask:
        raise binascii.Error("Non-zero trailing bits in base64 payload.")
