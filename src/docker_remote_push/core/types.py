"""Core types for docker-remote-push."""

from dataclasses import dataclass, field

from ..tar.models import LayerRecord

DEFAULT_CHUNK_SIZE = 1024 * 1024  # 1MB


@dataclass(frozen=True)
class TransferConfig:
    """Settings for one push of a local image to a remote engine."""

    destination: str
    image: str
    ssh_cmd: str = "ssh"
    ssh_args: tuple[str, ...] = ()
    docker_cmd: str = "docker"
    verbose: bool = False
    chunk_size: int = DEFAULT_CHUNK_SIZE


@dataclass(frozen=True)
class LayerDecision:
    """Whether a single layer is sent or left out of the archive."""

    record: LayerRecord
    skip: bool

    @property
    def tar_path(self) -> str:
        return self.record.tar_path

    @property
    def diff_id(self) -> str:
        return self.record.diff_id


@dataclass
class TransferResult:
    """Outcome of a completed push."""

    image: str
    destination: str
    decisions: list[LayerDecision] = field(default_factory=list)
    deleted: frozenset[str] = frozenset()
    orig_size: int = 0
    transfer_size: int = 0
    percent: int = 0

    @property
    def skipped_layers(self) -> list[str]:
        return [d.tar_path for d in self.decisions if d.skip]

    @property
    def transferred_layers(self) -> list[str]:
        return [d.tar_path for d in self.decisions if not d.skip]
