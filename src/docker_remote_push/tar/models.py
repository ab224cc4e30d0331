"""Data models for tar file handling."""

from dataclasses import dataclass, field


@dataclass(frozen=True)
class LayerRecord:
    """A layer member of a saved image paired with its diff-id."""

    tar_path: str  # Path within the tar file
    diff_id: str


@dataclass
class ImageArchive:
    """Image metadata extracted from a `docker save` tar file."""

    config_path: str
    image_layers: list[str]
    image_shas: list[str]
    repo_tags: list[str] = field(default_factory=list)

    @property
    def layer_count(self) -> int:
        return len(self.image_layers)

    @property
    def sha_count(self) -> int:
        return len(self.image_shas)
