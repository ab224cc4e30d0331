"""Sequential transfer pipeline: inventory, export, diff, rewrite, load."""

import asyncio
import logging
from pathlib import Path
from typing import Callable, Optional

from ..diff import build_delete_set, classify_layers, format_decision
from ..tar.models import ImageArchive
from ..tar.reader import read_image_archive
from ..tar.rewriter import delete_members
from .engine import ImageEngine
from .types import LayerDecision, TransferResult
from .workdir import WorkDir

logger = logging.getLogger(__name__)

Reporter = Callable[[str], object]


def compute_percent(orig_size: int, transfer_size: int) -> int:
    """Share of the original archive that is sent, rounded down.

    An empty original archive reports 0.
    """
    if orig_size <= 0:
        return 0
    return transfer_size * 100 // orig_size


def apparent_size(path: Path) -> int:
    return path.stat().st_size


def format_sizes(orig_size: int, transfer_size: int, percent: int) -> str:
    return f"Image: orig {orig_size} transfer {transfer_size} percent ~{percent}%"


class TransferPipeline:
    """Push one image from a local engine to a remote engine.

    Steps run strictly one after another. Inventory and export do not
    depend on each other, but both finish before the diff starts.
    """

    def __init__(
        self,
        local: ImageEngine,
        remote: ImageEngine,
        report: Optional[Reporter] = None,
        verbose: bool = False,
    ) -> None:
        self.local = local
        self.remote = remote
        self.report = report
        self.verbose = verbose

    async def _emit(self, line: str, always: bool = False) -> None:
        if self.report is None or not (self.verbose or always):
            return
        if asyncio.iscoroutinefunction(self.report):
            await self.report(line)
        else:
            self.report(line)

    async def collect_inventory(self) -> frozenset[str]:
        """Layer diff-ids the remote engine already holds."""
        return await self.remote.list_layer_digests()

    async def export(self, image: str, workdir: WorkDir) -> ImageArchive:
        """Save the image locally and read its manifest and config."""
        archive_path = workdir.archive_path
        await self.local.export_archive(image, archive_path)
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, read_image_archive, archive_path)

    async def diff(
        self, archive: ImageArchive, remote_digests: frozenset[str]
    ) -> list[LayerDecision]:
        decisions = classify_layers(
            archive.image_layers, archive.image_shas, remote_digests
        )
        for decision in decisions:
            await self._emit(format_decision(decision))
        return decisions

    async def rewrite(self, archive_path: Path, to_delete: frozenset[str]) -> int:
        """Drop skipped layers from the archive, returning how many were removed."""
        if not to_delete:
            return 0
        loop = asyncio.get_event_loop()
        return await loop.run_in_executor(None, delete_members, archive_path, to_delete)

    async def transfer(self, archive_path: Path) -> str:
        """Load the archive remotely and pass on what the engine printed."""
        output = await self.remote.load_archive(archive_path)
        for line in output.splitlines():
            if line.strip():
                await self._emit(line.strip(), always=True)
        return output

    async def run(self, image: str, workdir: WorkDir) -> TransferResult:
        """Run every step for `image` using `workdir` as scratch space.

        Any error aborts the run; nothing on the remote side is rolled back.
        """
        remote_digests = await self.collect_inventory()
        logger.debug("Remote engine reports %d layers", len(remote_digests))

        archive = await self.export(image, workdir)
        archive_path = workdir.archive_path
        orig_size = apparent_size(archive_path)

        decisions = await self.diff(archive, remote_digests)
        to_delete = build_delete_set(decisions)
        removed = await self.rewrite(archive_path, to_delete)
        logger.debug("Removed %d of %d layers", removed, len(decisions))

        transfer_size = apparent_size(archive_path)
        percent = compute_percent(orig_size, transfer_size)
        await self._emit(format_sizes(orig_size, transfer_size, percent))

        await self.transfer(archive_path)
        logger.info(
            "Pushed %s to %s (%d of %d layers sent)",
            ", ".join(archive.repo_tags) or image,
            self.remote.name,
            len(decisions) - len(to_delete),
            len(decisions),
        )

        return TransferResult(
            image=image,
            destination=self.remote.name,
            decisions=decisions,
            deleted=to_delete,
            orig_size=orig_size,
            transfer_size=transfer_size,
            percent=percent,
        )
