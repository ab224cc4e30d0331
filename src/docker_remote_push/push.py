"""Async functional style push operations."""

from typing import Optional, Sequence

from .core.engine import ImageEngine, local_engine, remote_engine
from .core.pipeline import Reporter, TransferPipeline
from .core.types import TransferConfig, TransferResult
from .core.workdir import WorkDir


async def push_with_config(
    config: TransferConfig,
    report: Optional[Reporter] = None,
    local: Optional[ImageEngine] = None,
    remote: Optional[ImageEngine] = None,
) -> TransferResult:
    """Push `config.image` to `config.destination`.

    The engines default to the docker CLI here and on the destination over
    ssh; pass others to push between different engines.

    Args:
        config: Transfer settings
        report: Callback receiving verbose layer and size lines
        local: Engine the image is exported from
        remote: Engine the image is loaded into

    Returns:
        TransferResult describing what was sent

    Raises:
        RemotePushError: If any step fails
    """
    pipeline = TransferPipeline(
        local=local or local_engine(config),
        remote=remote or remote_engine(config),
        report=report,
        verbose=config.verbose,
    )
    with WorkDir() as workdir:
        return await pipeline.run(config.image, workdir)


async def push_image_to_remote(
    destination: str,
    image: str,
    ssh_cmd: str = "ssh",
    ssh_args: Sequence[str] = (),
    verbose: bool = False,
    report: Optional[Reporter] = None,
) -> TransferResult:
    """Copy a local docker image to the docker engine on a remote host.

    Layers the remote engine already has are left out of the transfer.

    Args:
        destination: ssh destination, e.g. "user@build-host"
        image: Local image reference, e.g. "myapp:latest"
        ssh_cmd: ssh executable
        ssh_args: Extra arguments placed before the destination
        verbose: Report per-layer decisions and archive sizes
        report: Callback receiving verbose lines

    Returns:
        TransferResult describing what was sent

    Examples:
        result = await push_image_to_remote("deploy@web1", "myapp:v1.2", verbose=True, report=print)
        print(f"Sent {result.percent}% of the image")
    """
    config = TransferConfig(
        destination=destination,
        image=image,
        ssh_cmd=ssh_cmd,
        ssh_args=tuple(ssh_args),
        verbose=verbose,
    )
    return await push_with_config(config, report=report)
