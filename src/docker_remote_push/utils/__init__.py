"""Utility functions for docker-remote-push."""

from .digest import collect_digests, parse_digest_lines, validate_digest

__all__ = ["collect_digests", "parse_digest_lines", "validate_digest"]
