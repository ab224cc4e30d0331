"""Test configuration and fixtures."""

import os
import stat
from pathlib import Path

import pytest

from tests.helpers import write_image_tar

FAKE_DOCKER = """#!/bin/sh
# Minimal docker CLI double driven by files in $FAKE_DOCKER_DIR.
case "$1 $2" in
    "image ls")
        cat "$FAKE_DOCKER_DIR/ids"
        ;;
    "image inspect")
        cat "$FAKE_DOCKER_DIR/inspect.json"
        ;;
    "save "*)
        if [ -f "$FAKE_DOCKER_DIR/save_hangs" ]; then
            printf partial
            touch "$FAKE_DOCKER_DIR/save_started"
            exec sleep 30
        fi
        if [ ! -f "$FAKE_DOCKER_DIR/save.tar" ]; then
            echo "Error response from daemon: reference does not exist" >&2
            exit 1
        fi
        cat "$FAKE_DOCKER_DIR/save.tar"
        ;;
    "load ")
        cat > "$FAKE_DOCKER_DIR/loaded.tar"
        echo "Loaded image: demo:latest"
        ;;
    *)
        echo "unknown command: $*" >&2
        exit 2
        ;;
esac
"""

# Drops ssh options and the destination, then runs the remote command line.
FAKE_SSH = """#!/bin/sh
while [ $# -gt 1 ]; do
    echo "$1" >> "$FAKE_DOCKER_DIR/ssh_argv"
    shift
done
exec sh -c "$1"
"""


def _write_script(path: Path, content: str) -> Path:
    path.write_text(content)
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def fake_docker_dir(tmp_path, monkeypatch):
    """Directory holding the state of the fake docker CLI."""
    state = tmp_path / "docker-state"
    state.mkdir()
    monkeypatch.setenv("FAKE_DOCKER_DIR", str(state))
    return state


@pytest.fixture
def fake_docker(tmp_path, fake_docker_dir):
    """Path to an executable docker CLI double."""
    return _write_script(tmp_path / "docker", FAKE_DOCKER)


@pytest.fixture
def fake_ssh(tmp_path, fake_docker_dir):
    """Path to an executable ssh double that runs commands locally."""
    return _write_script(tmp_path / "ssh", FAKE_SSH)


@pytest.fixture
def image_tar(tmp_path):
    """A three layer image archive; returns (path, layer paths, diff-ids)."""
    tar_path = tmp_path / "image.tar"
    layers, shas = write_image_tar(
        tar_path, [b"layer one " * 100, b"layer two " * 300, b"layer three " * 50]
    )
    return tar_path, layers, shas


# Pytest configuration
def pytest_collection_modifyitems(config, items):
    """Skip integration tests unless docker and ssh are available."""
    skip_integration = pytest.mark.skip(reason="Docker over ssh not available")

    for item in items:
        if (
            "integration" in item.keywords
            and os.getenv("DOCKER_REMOTE_AVAILABLE", "false").lower() != "true"
        ):
            item.add_marker(skip_integration)
