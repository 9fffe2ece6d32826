"""
IPv4 integer <-> dotted string conversion.

The rooms API reports a host address as one 32-bit integer. Display uses the
conventional big-endian reading; the join protocol expects the bytes in
little-endian order. Both strings derive from the same stored integer.
"""


def to_uint32(value: int) -> int:
    """Coerce any int (including negative int32 values) to an unsigned 32-bit value."""
    return int(value) & 0xFFFFFFFF


def ipv4_big_endian(value: int) -> str:
    """Format with the most significant byte first: 0x01020304 -> "1.2.3.4"."""
    ip = to_uint32(value)
    return ".".join(str((ip >> shift) & 0xFF) for shift in (24, 16, 8, 0))


def ipv4_little_endian(value: int) -> str:
    """Format with the least significant byte first: 0x01020304 -> "4.3.2.1"."""
    ip = to_uint32(value)
    return ".".join(str((ip >> shift) & 0xFF) for shift in (0, 8, 16, 24))


def _parse_octets(text: str) -> list[int]:
    parts = text.strip().split(".")
    if len(parts) != 4:
        raise ValueError(f"Invalid IPv4 address: {text!r}")
    octets = []
    for part in parts:
        if not part.isdigit() or len(part) > 3:
            raise ValueError(f"Invalid IPv4 address: {text!r}")
        octet = int(part)
        if octet > 255:
            raise ValueError(f"Invalid IPv4 address: {text!r}")
        octets.append(octet)
    return octets


def parse_ipv4_big_endian(text: str) -> int:
    """Inverse of ipv4_big_endian."""
    a, b, c, d = _parse_octets(text)
    return (a << 24) | (b << 16) | (c << 8) | d


def parse_ipv4_little_endian(text: str) -> int:
    """Inverse of ipv4_little_endian."""
    a, b, c, d = _parse_octets(text)
    return (d << 24) | (c << 16) | (b << 8) | a
