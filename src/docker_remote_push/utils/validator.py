"""Tar file validation utilities for `docker save` archives."""

import json
import tarfile
from pathlib import Path
from typing import Any, Iterable

from ..exceptions import ValidationError

MANIFEST_NAME = "manifest.json"


def is_valid_tarfile(path: Path) -> bool:
    """Check if file is a valid tar file."""
    return tarfile.is_tarfile(path)


def get_tar_members(tar: tarfile.TarFile) -> set[str]:
    """Extract member names from tar file."""
    return {member.name for member in tar.getmembers()}


def find_missing_members(names: Iterable[str], tar_members: set[str]) -> list[str]:
    """Return the names that are not members of the archive, in order."""
    return [name for name in names if name not in tar_members]


def is_manifest_entry(entry: Any) -> bool:
    """Check that a manifest entry carries a layer list."""
    return isinstance(entry, dict) and isinstance(entry.get("Layers", []), list)


def validate_docker_tar(tar_path: Path) -> bool:
    """Check whether a file looks like an archive produced by `docker save`.

    The archive must be a tar file holding a non-empty `manifest.json`
    whose first entry names layers that are all present as members. The
    config blob is not required here; a missing config is reported by the
    reader with a more specific error.

    Args:
        tar_path: Path to the archive

    Returns:
        True if the archive is usable, False otherwise

    Raises:
        ValidationError: If the file does not exist or cannot be read
    """
    if not tar_path.exists():
        raise ValidationError(f"Tar file does not exist: {tar_path}")

    if not is_valid_tarfile(tar_path):
        return False

    try:
        with tarfile.open(tar_path, "r") as tar:
            tar_members = get_tar_members(tar)
            if MANIFEST_NAME not in tar_members:
                return False

            member = tar.extractfile(MANIFEST_NAME)
            if member is None:
                return False
            try:
                manifest = json.loads(member.read().decode("utf-8"))
            except (UnicodeDecodeError, json.JSONDecodeError):
                return False

            if not isinstance(manifest, list) or not manifest:
                return False
            if not is_manifest_entry(manifest[0]):
                return False

            layers = manifest[0].get("Layers", [])
            return not find_missing_members(layers, tar_members)

    except (tarfile.TarError, OSError) as e:
        raise ValidationError(f"Error reading tar file: {e}") from e
