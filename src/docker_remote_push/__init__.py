"""docker-remote-push - Copy docker images to a remote engine over ssh, skipping known layers."""

__version__ = "0.1.0"

from .core.engine import DockerEngine, ImageEngine, RemoteDockerEngine
from .core.pipeline import TransferPipeline, compute_percent
from .core.types import LayerDecision, TransferConfig, TransferResult
from .core.workdir import WorkDir
from .diff import build_delete_set, classify_layers
from .exceptions import (
    CommandError,
    ExportError,
    ManifestError,
    RemoteInventoryError,
    RemotePushError,
    TarReadError,
    TransferError,
    UsageError,
    ValidationError,
)
from .push import push_image_to_remote, push_with_config
from .tar.reader import read_image_archive
from .tar.rewriter import delete_members

__all__ = [
    # Push operations
    "push_image_to_remote",
    "push_with_config",
    # Pipeline pieces
    "TransferPipeline",
    "classify_layers",
    "build_delete_set",
    "compute_percent",
    "read_image_archive",
    "delete_members",
    # Engines
    "ImageEngine",
    "DockerEngine",
    "RemoteDockerEngine",
    "WorkDir",
    # Types
    "TransferConfig",
    "TransferResult",
    "LayerDecision",
    # Exceptions
    "RemotePushError",
    "UsageError",
    "CommandError",
    "RemoteInventoryError",
    "ExportError",
    "TransferError",
    "ManifestError",
    "TarReadError",
    "ValidationError",
]
