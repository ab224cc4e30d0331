"""Digest validation utilities."""

import re
from typing import Iterable

# Regex pattern for valid digest format (algorithm:hex)
DIGEST_PATTERN = re.compile(r"^[a-z0-9]+:[a-f0-9]+$")


def validate_digest(digest: str) -> bool:
    """Validate digest format.

    Args:
        digest: Digest string to validate

    Returns:
        True if valid digest format
    """
    if not isinstance(digest, str):
        return False

    if not DIGEST_PATTERN.match(digest):
        return False

    # Check if algorithm is valid
    algorithm, _ = digest.split(":", 1)
    return algorithm in ["sha256", "sha512", "sha1", "md5"]


def parse_digest_lines(text: str) -> frozenset[str]:
    """Collect every valid digest from line oriented command output.

    Blank lines and anything that is not a digest (ssh banners, motd) are
    dropped.
    """
    return collect_digests(line.strip() for line in text.splitlines())


def collect_digests(candidates: Iterable[str]) -> frozenset[str]:
    """Build an exact digest set from candidate strings."""
    return frozenset(c for c in candidates if validate_digest(c))
