"""Push a local image to a remote docker engine and show what was skipped."""

import asyncio
import logging
import sys

from docker_remote_push import RemotePushError, push_image_to_remote

# Set up logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def main(destination: str, image: str) -> int:
    try:
        result = await push_image_to_remote(
            destination, image, verbose=True, report=print
        )
    except RemotePushError as e:
        logger.error("Push failed: %s", e)
        return 1

    logger.info("Skipped layers: %d", len(result.skipped_layers))
    logger.info("Sent layers: %d", len(result.transferred_layers))
    logger.info(
        "Sent %d of %d bytes (%d%%)",
        result.transfer_size,
        result.orig_size,
        result.percent,
    )
    return 0


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(f"Usage: {sys.argv[0]} [user@]host image", file=sys.stderr)
        sys.exit(1)
    sys.exit(asyncio.run(main(sys.argv[1], sys.argv[2])))
