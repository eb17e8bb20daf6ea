"""Container format sniffing from leading bytes.

WHY: Clients declare a file extension, but nothing stops them from uploading
arbitrary bytes under a .webm name. Checking the first few bytes against the
container's magic number catches mislabelled or junk uploads before they
reach host storage.

HOW: A lookup from lowercase extension to a small predicate over the first
12 bytes. Extensions without a known signature pass.

RULES:
- Buffers shorter than 12 bytes never pass, whatever the extension
- Unknown extensions pass (sniffing corroborates, it does not decide)
- Extension comparison is case-insensitive
- Pure function: no I/O, no state
"""

from __future__ import annotations

from typing import Callable, Dict

MIN_SNIFF_BYTES = 12

EBML_MAGIC = b"\x1a\x45\xdf\xa3"


def _is_webm(data: bytes) -> bool:
    return data[0:4] == EBML_MAGIC


def _is_ogg(data: bytes) -> bool:
    return data[0:4] == b"OggS"


def _is_iso_media(data: bytes) -> bool:
    # MP4/M4A/MOV carry the "ftyp" box type right after the 4-byte box size
    if len(data) < 8:
        return False
    return data[4:8] == b"ftyp"


def _is_wav(data: bytes) -> bool:
    if len(data) < 12:
        return False
    return data[0:4] == b"RIFF" and data[8:12] == b"WAVE"


def _is_mp3(data: bytes) -> bool:
    if data[0:3] == b"ID3":
        return True
    # MPEG audio frame sync: 11 set bits
    return data[0] == 0xFF and (data[1] & 0xE0) == 0xE0


def _is_aac(data: bytes) -> bool:
    # ADTS sync word
    if data[0] != 0xFF:
        return False
    return data[1] in (0xF1, 0xF9) or (data[1] & 0xF0) == 0xF0


SIGNATURES: Dict[str, Callable[[bytes], bool]] = {
    ".webm": _is_webm,
    ".ogg": _is_ogg,
    ".mp4": _is_iso_media,
    ".m4a": _is_iso_media,
    ".mov": _is_iso_media,
    ".wav": _is_wav,
    ".mp3": _is_mp3,
    ".aac": _is_aac,
}
"""Extension (lowercase, with dot) -> signature predicate."""


def is_valid_media(data: bytes, extension: str, is_video: bool = False) -> bool:
    """Return True if ``data`` looks like the container ``extension`` names.

    Args:
        data: Raw upload payload (only the first 12 bytes are inspected).
        extension: File extension with leading dot, any case.
        is_video: Whether the upload arrived on the video path. Signatures
            are the same for both kinds.

    Returns:
        False for buffers under 12 bytes or a signature mismatch, True
        otherwise (including extensions with no known signature).
    """
    if len(data) < MIN_SNIFF_BYTES:
        return False

    check = SIGNATURES.get(extension.lower())
    if check is None:
        return True
    return check(data)
