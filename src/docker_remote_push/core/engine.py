"""Docker engines reachable locally or through a remote shell."""

import json
import logging
import shlex
from pathlib import Path
from typing import Any, Protocol, Sequence

from ..exceptions import CommandError, ExportError, RemoteInventoryError, TransferError
from ..utils.digest import collect_digests, parse_digest_lines
from .process import run_command, stream_from_file, stream_to_file
from .types import DEFAULT_CHUNK_SIZE, TransferConfig

logger = logging.getLogger(__name__)


class ImageEngine(Protocol):
    """What the transfer needs from a container engine."""

    name: str

    async def list_layer_digests(self) -> frozenset[str]:
        """Return every layer diff-id held by the engine, across all images."""
        ...

    async def export_archive(self, image: str, dest: Path) -> int:
        """Save an image to a tar archive at `dest`, returning its size."""
        ...

    async def load_archive(self, source: Path) -> str:
        """Load a tar archive into the engine, returning the engine's output."""
        ...


class DockerEngine:
    """The docker CLI on this machine."""

    name = "local"

    def __init__(
        self, docker_cmd: str = "docker", chunk_size: int = DEFAULT_CHUNK_SIZE
    ) -> None:
        self.docker_cmd = docker_cmd
        self.chunk_size = chunk_size

    def command(self, *args: str) -> list[str]:
        """Build the argv for a docker subcommand."""
        return [self.docker_cmd, *args]

    async def list_layer_digests(self) -> frozenset[str]:
        """Collect the RootFS layers of every image the engine knows.

        Raises:
            RemoteInventoryError: If listing or inspecting images fails
        """
        try:
            listing = await run_command(
                self.command("image", "ls", "-a", "-q", "--no-trunc")
            )
            # The same id shows up once per tag.
            image_ids = sorted(parse_digest_lines(listing))
            if not image_ids:
                logger.info("No images on %s engine", self.name)
                return frozenset()

            output = await run_command(self.command("image", "inspect", *image_ids))
        except CommandError as e:
            raise RemoteInventoryError(
                f"Failed to list layers on {self.name} engine: {e}"
            ) from e

        try:
            inspected = json.loads(output)
        except json.JSONDecodeError as e:
            raise RemoteInventoryError(
                f"Unexpected image inspect output from {self.name} engine: {e}"
            ) from e

        digests = collect_digests(_root_fs_layers(inspected))
        logger.info(
            "%s engine holds %d images with %d distinct layers",
            self.name,
            len(image_ids),
            len(digests),
        )
        return digests

    async def export_archive(self, image: str, dest: Path) -> int:
        """Save `image` to `dest` with `docker save`.

        Raises:
            ExportError: If the image cannot be saved
        """
        try:
            return await stream_to_file(
                self.command("save", image), dest, self.chunk_size
            )
        except CommandError as e:
            raise ExportError(f"Failed to save image {image}: {e}") from e

    async def load_archive(self, source: Path) -> str:
        """Stream `source` into `docker load`.

        Raises:
            TransferError: If the engine cannot be reached or rejects the archive
        """
        try:
            output = await stream_from_file(
                self.command("load"), source, self.chunk_size
            )
        except CommandError as e:
            raise TransferError(
                f"Failed to load image on {self.name} engine: {e}"
            ) from e

        for line in output.splitlines():
            if line.strip():
                logger.debug("%s: %s", self.name, line.strip())
        return output


class RemoteDockerEngine(DockerEngine):
    """The docker CLI on another host, driven through ssh.

    ssh joins its trailing arguments into one command line for the remote
    shell, so the docker argv is shell-quoted before it is sent.
    """

    def __init__(
        self,
        destination: str,
        ssh_cmd: str = "ssh",
        ssh_args: Sequence[str] = (),
        docker_cmd: str = "docker",
        chunk_size: int = DEFAULT_CHUNK_SIZE,
    ) -> None:
        super().__init__(docker_cmd=docker_cmd, chunk_size=chunk_size)
        self.destination = destination
        self.ssh_cmd = ssh_cmd
        self.ssh_args = list(ssh_args)
        self.name = destination

    def command(self, *args: str) -> list[str]:
        remote = shlex.join([self.docker_cmd, *args])
        return [self.ssh_cmd, *self.ssh_args, self.destination, remote]


def _root_fs_layers(inspected: Any) -> list[str]:
    """Flatten RootFS.Layers of `docker image inspect` entries."""
    if not isinstance(inspected, list):
        raise RemoteInventoryError("image inspect output must be a JSON array")

    layers = []
    for entry in inspected:
        if not isinstance(entry, dict):
            continue
        root_fs = entry.get("RootFS") or {}
        layers.extend(str(layer) for layer in root_fs.get("Layers") or [])
    return layers


def local_engine(config: TransferConfig) -> DockerEngine:
    """Engine for the machine the image is pushed from."""
    return DockerEngine(docker_cmd=config.docker_cmd, chunk_size=config.chunk_size)


def remote_engine(config: TransferConfig) -> RemoteDockerEngine:
    """Engine on the destination host."""
    return RemoteDockerEngine(
        destination=config.destination,
        ssh_cmd=config.ssh_cmd,
        ssh_args=config.ssh_args,
        docker_cmd=config.docker_cmd,
        chunk_size=config.chunk_size,
    )
