"""Read image metadata from `docker save` tar files."""

import json
import logging
import tarfile
from pathlib import Path
from typing import Any

from ..exceptions import ManifestError, TarReadError, ValidationError
from ..utils.validator import MANIFEST_NAME, validate_docker_tar
from .models import ImageArchive

logger = logging.getLogger(__name__)


def read_image_archive(tar_path: Path) -> ImageArchive:
    """Extract the manifest and config metadata of a saved image.

    Only the first manifest entry is used; `docker save` of a single
    reference writes exactly one.

    Args:
        tar_path: Path to the archive written by `docker save`

    Returns:
        ImageArchive with the ordered layer paths and diff-ids

    Raises:
        ValidationError: If the file is not a Docker image archive
        ManifestError: If the manifest does not name a config blob
        TarReadError: If manifest or config cannot be read
    """
    if not validate_docker_tar(tar_path):
        raise ValidationError(f"Invalid Docker tar file: {tar_path}")

    try:
        with tarfile.open(tar_path, "r") as tar:
            manifest = _extract_json_file(tar, MANIFEST_NAME)[0]

            config_path = manifest.get("Config")
            if not config_path:
                raise ManifestError("cannot determine config JSON filename")

            config = _extract_json_file(tar, config_path)
    except tarfile.TarError as e:
        raise TarReadError(f"Failed to read tar file {tar_path}: {e}") from e

    if not isinstance(config, dict):
        raise TarReadError(f"Config {config_path} is not a JSON object")

    image_shas = get_diff_ids(config)
    archive = ImageArchive(
        config_path=config_path,
        image_layers=list(manifest.get("Layers", [])),
        image_shas=image_shas,
        repo_tags=list(manifest.get("RepoTags") or []),
    )
    logger.debug(
        "Read %s: config %s, %d layers, %d diff-ids",
        tar_path,
        archive.config_path,
        archive.layer_count,
        archive.sha_count,
    )
    return archive


def get_diff_ids(config: dict[str, Any]) -> list[str]:
    """Get the ordered rootfs diff-ids from an image config."""
    rootfs = config.get("rootfs") or {}
    diff_ids = rootfs.get("diff_ids") or []
    if not isinstance(diff_ids, list):
        raise TarReadError("rootfs.diff_ids must be a list")
    return [str(diff_id) for diff_id in diff_ids]


def _extract_json_file(tar: tarfile.TarFile, file_path: str) -> Any:
    """Extract and parse JSON file from tar."""
    try:
        member = tar.extractfile(file_path)
    except KeyError as e:
        raise TarReadError(f"File {file_path} not found in tar") from e
    if member is None:
        raise TarReadError(f"Could not extract {file_path}")

    try:
        with member:
            return json.loads(member.read().decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise TarReadError(f"Failed to parse {file_path}: {e}") from e
