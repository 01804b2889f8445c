"""
Cache fingerprint utilities.

Sandi Metz Principles:
- Single Responsibility: Hash generation
- Small functions: Each does one thing
- Pure functions: No side effects
"""

import hashlib

FINGERPRINT_LENGTH = 16

# Unit separator; cannot appear in OCR text, so ("ab", "c") != ("a", "bc")
_SEPARATOR = "\x1f"


def combine_for_hashing(text: str, context: str) -> str:
    """
    Join text and context unambiguously.

    The text length prefix keeps the split point recoverable even if the
    separator character shows up inside the text.

    Args:
        text: Source text
        context: Disambiguating context

    Returns:
        Combined string
    """
    return f"{len(text)}{_SEPARATOR}{text}{_SEPARATOR}{context}"


def fingerprint(text: str, context: str = "") -> str:
    """
    Generate cache fingerprint for a (text, context) pair.

    Args:
        text: Source text
        context: Disambiguating context

    Returns:
        Truncated SHA-256 hex digest
    """
    combined = combine_for_hashing(text, context)
    digest = hashlib.sha256(combined.encode("utf-8")).hexdigest()
    return digest[:FINGERPRINT_LENGTH]
