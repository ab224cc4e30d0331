"""End to end push through real docker and ssh.

Needs a local docker engine and ssh access to a host running docker, set
with DOCKER_REMOTE_HOST (defaults to localhost).
"""

import os

import pytest

from docker_remote_push import push_image_to_remote

pytestmark = pytest.mark.integration


@pytest.fixture
def remote_host():
    return os.getenv("DOCKER_REMOTE_HOST", "localhost")


@pytest.mark.asyncio
async def test_push_image_twice_skips_everything(remote_host):
    """A second push of the same image sends no layers."""
    image = os.getenv("DOCKER_REMOTE_IMAGE", "busybox:latest")
    ssh_args = ["-o", "BatchMode=yes", "-o", "StrictHostKeyChecking=no"]

    await push_image_to_remote(remote_host, image, ssh_args=ssh_args)
    result = await push_image_to_remote(remote_host, image, ssh_args=ssh_args)

    assert result.transferred_layers == []
    assert result.percent < 100
