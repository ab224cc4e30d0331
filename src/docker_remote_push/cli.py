"""Command line entry point for docker-remote-push."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import NoReturn, Optional, Sequence

from .core.types import TransferConfig
from .exceptions import RemotePushError, UsageError
from .push import push_with_config

logger = logging.getLogger(__name__)

PROG = "docker-push-to-remote"
VALUE_OPTIONS = ("--sshcmd", "--ssharg")


class _HelpRequested(UsageError):
    pass


class _Parser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message)


def build_parser() -> _Parser:
    parser = _Parser(
        prog=PROG,
        usage=f"{PROG} [options*] [user@]destination_host docker_image",
        description="Copy a docker image from local daemon to daemon on remote host",
        add_help=False,
        allow_abbrev=False,
    )
    parser.add_argument(
        "--sshcmd", dest="ssh_cmd", default="ssh", metavar="ssh_cmd",
        help="Set ssh command",
    )
    parser.add_argument(
        "--ssharg", dest="ssh_args", action="append", default=[], metavar="ssh_arg",
        help="Add ssh argument",
    )
    parser.add_argument("-h", dest="help", action="store_true", help="Help")
    parser.add_argument(
        "-v", dest="verbose", action="store_true",
        help="Verbose; print layer and size information",
    )
    parser.add_argument("positionals", nargs="*", help=argparse.SUPPRESS)
    return parser


def _attach_option_values(argv: Sequence[str]) -> list[str]:
    """Rewrite `--ssharg -p` as `--ssharg=-p` so dashed values are kept."""
    result = []
    args = iter(argv)
    for arg in args:
        if arg in VALUE_OPTIONS:
            value = next(args, None)
            if value is None:
                raise UsageError(f"option '{arg}' requires a value")
            arg = f"{arg}={value}"
        result.append(arg)
    return result


def parse_args(argv: Sequence[str]) -> TransferConfig:
    """Turn command line arguments into a TransferConfig.

    Raises:
        UsageError: If an option is unknown or the positionals are wrong
    """
    args = build_parser().parse_intermixed_args(_attach_option_values(argv))
    if args.help:
        raise _HelpRequested("")

    positionals = args.positionals
    if not positionals or not positionals[0]:
        raise UsageError("cmdline arg 'destination host' missing")
    if len(positionals) < 2 or not positionals[1]:
        raise UsageError("cmdline arg 'docker_image' missing")
    if len(positionals) > 2:
        raise UsageError("too many cmdline args")

    return TransferConfig(
        destination=positionals[0],
        image=positionals[1],
        ssh_cmd=args.ssh_cmd,
        ssh_args=tuple(args.ssh_args),
        verbose=args.verbose,
    )


def _raise_interrupt(signum, frame) -> NoReturn:
    raise KeyboardInterrupt


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the tool and return the process exit status."""
    if argv is None:
        argv = sys.argv[1:]

    try:
        config = parse_args(argv)
    except UsageError as e:
        if not isinstance(e, _HelpRequested):
            print(f"ERROR: {e}", file=sys.stderr)
        print(build_parser().format_help(), file=sys.stderr, end="")
        return 1

    logging.basicConfig(
        level=logging.INFO if config.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    # SIGTERM unwinds like Ctrl-C so the working directory is removed.
    signal.signal(signal.SIGTERM, _raise_interrupt)

    try:
        asyncio.run(push_with_config(config, report=print))
    except RemotePushError as e:
        logger.debug("Push failed", exc_info=True)
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("ERROR: interrupted", file=sys.stderr)
        return 1
    return 0


def run() -> NoReturn:
    sys.exit(main())


if __name__ == "__main__":
    run()
