"""Custom exceptions for docker-remote-push."""


class RemotePushError(Exception):
    """Base exception for all remote push errors."""

    pass


class UsageError(RemotePushError):
    """Raised when command line arguments are missing or malformed."""

    pass


class CommandError(RemotePushError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(self, argv: list[str], returncode: int, stderr: str = "") -> None:
        self.argv = list(argv)
        self.returncode = returncode
        self.stderr = stderr
        message = f"Command {argv[0]!r} exited with status {returncode}"
        if stderr:
            message = f"{message}: {stderr.strip()}"
        super().__init__(message)


class RemoteInventoryError(RemotePushError):
    """Raised when the layer inventory of an engine cannot be collected."""

    pass


class ExportError(RemotePushError):
    """Raised when an image cannot be saved to an archive."""

    pass


class TransferError(RemotePushError):
    """Raised when an archive cannot be loaded into the target engine."""

    pass


class ManifestError(RemotePushError):
    """Raised when manifest and config of an archive are inconsistent."""

    pass


class TarReadError(RemotePushError):
    """Raised when unable to read or parse tar file."""

    pass


class ValidationError(RemotePushError):
    """Raised when a tar file is not a valid Docker image archive."""

    pass
