"""In-place removal of members from an uncompressed tar file."""

import logging
import os
import tarfile
import tempfile
from pathlib import Path
from typing import BinaryIO, Iterable

from ..exceptions import TarReadError
from ..utils.validator import find_missing_members

logger = logging.getLogger(__name__)

COPY_CHUNK_SIZE = 1024 * 1024


def delete_members(tar_path: Path, names: Iterable[str]) -> int:
    """Remove the named members from a tar file in place.

    Every other member is copied block for block (headers, extended
    headers, data and padding), so its bytes and position in member order
    are unchanged. The rewritten archive replaces the original atomically.
    Nothing is touched when `names` is empty.

    Args:
        tar_path: Path to an uncompressed tar file
        names: Member names to remove

    Returns:
        Number of member entries removed

    Raises:
        TarReadError: If the archive cannot be read or a name is not a member
    """
    to_delete = set(names)
    if not to_delete:
        return 0

    try:
        with tarfile.open(tar_path, "r:") as tar:
            members = sorted(tar.getmembers(), key=lambda m: m.offset)
    except (tarfile.TarError, OSError) as e:
        raise TarReadError(f"Cannot read tar file {tar_path}: {e}") from e

    missing = find_missing_members(sorted(to_delete), {m.name for m in members})
    if missing:
        raise TarReadError(f"Not found in archive: {', '.join(missing)}")

    spans = _member_spans(members)
    removed = 0
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{tar_path.name}.", suffix=".tmp", dir=tar_path.parent
    )
    try:
        with open(tar_path, "rb") as src, os.fdopen(fd, "wb") as dst:
            for member, (start, end) in zip(members, spans):
                if member.name in to_delete:
                    logger.debug("Deleting %s from %s", member.name, tar_path)
                    removed += 1
                    continue
                _copy_range(src, dst, start, end)
            _write_end_of_archive(dst)
        os.replace(tmp_name, tar_path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    return removed


def _member_spans(members: list[tarfile.TarInfo]) -> list[tuple[int, int]]:
    """Byte range occupied by each member, in archive order.

    A member's `offset` points at its first header block, including any
    GNU long name or pax extended headers, so a span runs up to the next
    member's offset. The last member ends after its padded data.
    """
    spans = []
    for index, member in enumerate(members):
        if index + 1 < len(members):
            end = members[index + 1].offset
        else:
            end = member.offset_data + _padded(member.size if member.isreg() else 0)
        spans.append((member.offset, end))
    return spans


def _padded(size: int) -> int:
    blocks, remainder = divmod(size, tarfile.BLOCKSIZE)
    if remainder:
        blocks += 1
    return blocks * tarfile.BLOCKSIZE


def _copy_range(src: BinaryIO, dst: BinaryIO, start: int, end: int) -> None:
    src.seek(start)
    remaining = end - start
    while remaining > 0:
        chunk = src.read(min(COPY_CHUNK_SIZE, remaining))
        if not chunk:
            raise TarReadError("unexpected end of data")
        dst.write(chunk)
        remaining -= len(chunk)


def _write_end_of_archive(dst: BinaryIO) -> None:
    # Two zero blocks, then zero fill up to a full record.
    position = dst.tell() + 2 * tarfile.BLOCKSIZE
    remainder = position % tarfile.RECORDSIZE
    padding = tarfile.RECORDSIZE - remainder if remainder else 0
    dst.write(b"\0" * (2 * tarfile.BLOCKSIZE + padding))
