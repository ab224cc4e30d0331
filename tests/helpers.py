"""Test helpers: synthetic `docker save` archives and in-memory engines."""

import hashlib
import io
import json
import tarfile
from pathlib import Path
from typing import Optional, Sequence

from docker_remote_push.exceptions import (
    ExportError,
    RemoteInventoryError,
    TransferError,
)


def sha256_digest(data: bytes) -> str:
    return f"sha256:{hashlib.sha256(data).hexdigest()}"


def add_bytes(tar: tarfile.TarFile, name: str, content: bytes) -> None:
    """Add a regular file member with fixed metadata."""
    info = tarfile.TarInfo(name)
    info.size = len(content)
    info.mtime = 1700000000
    info.mode = 0o644
    tar.addfile(info, fileobj=io.BytesIO(content))


def write_image_tar(
    tar_path: Path,
    layer_contents: Sequence[bytes],
    diff_ids: Optional[Sequence[str]] = None,
    config_path: Optional[str] = None,
    layer_paths: Optional[Sequence[str]] = None,
    repo_tags: Sequence[str] = ("demo:latest",),
) -> tuple[list[str], list[str]]:
    """Write an archive shaped like the output of `docker save`.

    Returns:
        (layer member paths, diff-ids) in manifest order
    """
    if diff_ids is None:
        diff_ids = [sha256_digest(content) for content in layer_contents]
    if layer_paths is None:
        layer_paths = [
            f"blobs/sha256/{sha256_digest(content).split(':')[1]}"
            for content in layer_contents
        ]

    config_content = json.dumps(
        {
            "architecture": "amd64",
            "os": "linux",
            "created": "2024-01-01T00:00:00Z",
            "rootfs": {"type": "layers", "diff_ids": list(diff_ids)},
        }
    ).encode("utf-8")
    if config_path is None:
        config_path = f"blobs/sha256/{sha256_digest(config_content).split(':')[1]}"

    manifest = [
        {"Config": config_path, "RepoTags": list(repo_tags), "Layers": list(layer_paths)}
    ]

    with tarfile.open(tar_path, "w") as tar:
        if config_path:
            add_bytes(tar, config_path, config_content)
        for path, content in zip(layer_paths, layer_contents):
            add_bytes(tar, path, content)
        add_bytes(tar, "manifest.json", json.dumps(manifest).encode("utf-8"))

    return list(layer_paths), list(diff_ids)


def image_tar_bytes(tmp_path: Path, layer_contents: Sequence[bytes], **kwargs) -> bytes:
    tar_path = tmp_path / "source-image.tar"
    write_image_tar(tar_path, layer_contents, **kwargs)
    data = tar_path.read_bytes()
    tar_path.unlink()
    return data


def read_members(tar_path: Path) -> dict[str, bytes]:
    """Content of every regular member, keyed by name."""
    with tarfile.open(tar_path, "r") as tar:
        return {
            member.name: tar.extractfile(member).read()
            for member in tar.getmembers()
            if member.isreg()
        }


def raw_member_blocks(tar_path: Path) -> dict[str, bytes]:
    """Raw header and data blocks of every member, keyed by name."""
    data = tar_path.read_bytes()
    with tarfile.open(tar_path, "r") as tar:
        members = tar.getmembers()
    blocks = {}
    for member in members:
        size = -(-member.size // tarfile.BLOCKSIZE) * tarfile.BLOCKSIZE
        blocks[member.name] = data[member.offset : member.offset_data + size]
    return blocks


class FakeEngine:
    """In-memory stand-in for a container engine."""

    def __init__(
        self,
        name: str = "fake",
        digests: Sequence[str] = (),
        images: Optional[dict[str, bytes]] = None,
        fail_on: Sequence[str] = (),
    ) -> None:
        self.name = name
        self.digests = frozenset(digests)
        self.images = dict(images or {})
        self.fail_on = set(fail_on)
        self.calls: list[str] = []
        self.loaded: list[bytes] = []
        self.exported_to: list[Path] = []

    async def list_layer_digests(self) -> frozenset[str]:
        self.calls.append("list")
        if "list" in self.fail_on:
            raise RemoteInventoryError(f"{self.name}: connection refused")
        return self.digests

    async def export_archive(self, image: str, dest: Path) -> int:
        self.calls.append("export")
        self.exported_to.append(dest)
        if "export" in self.fail_on or image not in self.images:
            raise ExportError(f"No such image: {image}")
        dest.write_bytes(self.images[image])
        return len(self.images[image])

    async def load_archive(self, source: Path) -> str:
        self.calls.append("load")
        if "load" in self.fail_on:
            raise TransferError(f"{self.name}: load failed")
        self.loaded.append(source.read_bytes())
        return "Loaded image: demo:latest\n"
