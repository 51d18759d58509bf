"""
Share code generation.
"""
import secrets

# Excludes ambiguous characters: 0, O, 1, I
ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
CODE_LENGTH = 6
MAX_ATTEMPTS = 10


def generate_code(length: int = CODE_LENGTH) -> str:
    """
    Generate a random share code.

    Each character is drawn independently from ALPHABET, so a code is easy
    to read aloud and to type on a phone.

    Returns:
        str: A code like "9QKX7M"
    """
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def normalize_code(code: str) -> str:
    """Codes are case-insensitive; the uppercase form is canonical."""
    return (code or "").strip().upper()
