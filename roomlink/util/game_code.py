"""
Room code <-> 32-bit game id conversion.

Two generations of room codes exist:

- v2 (six letters): used for every id below -1. The low 10 bits and the next
  20 bits are each written in base 26 over a scrambled alphabet.
- v1 (up to four characters): the id's four little-endian bytes are the code
  itself, decoded as UTF-8 with trailing NULs removed.

Codes are display-only but must match the game's own encoding exactly.
"""

import math
import struct

GAME_CODE_ALPHABET_V2 = "QWXRTYLPESDFGHUJKZOCVBINMA"

_V2_LENGTH = 6
_V1_MAX_LENGTH = 4


def to_int32(value: int) -> int:
    """Reinterpret the low 32 bits of value as a signed integer."""
    value = int(value) & 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _format_v2(value: int) -> str:
    masked = to_int32(value)
    a = masked & 0x3FF
    # Python's >> on a negative int is the arithmetic shift the scheme expects
    b = (masked >> 10) & 0xFFFFF
    alphabet = GAME_CODE_ALPHABET_V2
    return "".join(
        [
            alphabet[a % 26],
            alphabet[(a // 26) % 26],
            alphabet[b % 26],
            alphabet[(b // 26) % 26],
            alphabet[(b // 676) % 26],
            alphabet[(b // 17576) % 26],
        ]
    )


def _format_v1(value: int) -> str:
    raw = struct.pack("<I", int(value) & 0xFFFFFFFF)
    decoded = raw.decode("utf-8", errors="replace").rstrip("\x00")
    return decoded if decoded else str(value)


def format_game_id(value) -> str:
    """
    Render a game id as the room code players type.

    Args:
        value: Signed 32-bit game id. Floats are accepted when integral.

    Returns:
        Six-letter v2 code, v1 text code, the decimal id when the v1 bytes are
        all NUL, or "-" for non-numeric / non-finite input.
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return "-"
    if isinstance(value, float):
        if not math.isfinite(value):
            return "-"
        value = int(value)
    if value < -1:
        return _format_v2(value)
    return _format_v1(value)


def parse_game_code(code: str) -> int:
    """
    Convert a typed room code back into its signed 32-bit game id.

    Raises:
        ValueError: code is neither a six-letter v2 code nor a 1-4 character v1 code.
    """
    text = code.strip().upper()
    if len(text) == _V2_LENGTH and all(ch in GAME_CODE_ALPHABET_V2 for ch in text):
        idx = [GAME_CODE_ALPHABET_V2.index(ch) for ch in text]
        a = (idx[0] + 26 * idx[1]) & 0x3FF
        b = idx[2] + 26 * (idx[3] + 26 * (idx[4] + 26 * idx[5]))
        return to_int32(a | ((b << 10) & 0x3FFFFC00) | 0x80000000)

    raw = code.strip().encode("utf-8")
    if 0 < len(raw) <= _V1_MAX_LENGTH:
        return to_int32(struct.unpack("<I", raw.ljust(_V1_MAX_LENGTH, b"\x00"))[0])

    raise ValueError(f"Invalid room code: {code!r}")
