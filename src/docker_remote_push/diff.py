"""Decide which layers of an image the remote engine already has."""

from typing import AbstractSet, Iterable, Sequence

from .core.types import LayerDecision
from .exceptions import ManifestError
from .tar.models import LayerRecord


def pair_layers(
    image_layers: Sequence[str], image_shas: Sequence[str]
) -> list[LayerRecord]:
    """Pair each layer path in the manifest with its diff-id from the config.

    Raises:
        ManifestError: If manifest and config disagree on the layer count
    """
    if len(image_layers) != len(image_shas):
        raise ManifestError(
            "inconsistent layer count in manifest and config "
            f"({len(image_layers)} layers, {len(image_shas)} diff-ids)"
        )
    return [
        LayerRecord(tar_path=layer, diff_id=sha)
        for layer, sha in zip(image_layers, image_shas)
    ]


def classify_layers(
    image_layers: Sequence[str],
    image_shas: Sequence[str],
    remote_digests: AbstractSet[str],
) -> list[LayerDecision]:
    """Mark every layer as skipped or transferred, in manifest order.

    A layer is skipped exactly when its diff-id is a member of
    `remote_digests`.

    Args:
        image_layers: Layer member paths from manifest.json
        image_shas: rootfs.diff_ids from the image config
        remote_digests: Diff-ids already present on the remote engine

    Returns:
        One decision per layer

    Raises:
        ManifestError: If the two lists differ in length
    """
    return [
        LayerDecision(record=record, skip=record.diff_id in remote_digests)
        for record in pair_layers(image_layers, image_shas)
    ]


def build_delete_set(decisions: Iterable[LayerDecision]) -> frozenset[str]:
    """Archive members to drop before the transfer."""
    return frozenset(d.tar_path for d in decisions if d.skip)


def format_decision(decision: LayerDecision) -> str:
    label = "Layer Skip:    " if decision.skip else "Layer Transfer:"
    return f"{label} {decision.diff_id} {decision.tar_path}"
