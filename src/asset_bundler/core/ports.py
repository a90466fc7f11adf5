from __future__ import annotations

BASE_PORT = 1024
MAX_PORT = 65535


def string_to_unreserved_port(text: str) -> int:
    """Map a string onto a stable port number above the reserved range."""
    total = sum(ord(char) for char in text)
    return BASE_PORT + (total % (MAX_PORT - BASE_PORT))


DEFAULT_PORT = string_to_unreserved_port("noname")
