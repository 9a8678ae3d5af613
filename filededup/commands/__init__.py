import os
import socket
import sys
from filededup.config import config_path, get_agent_config, get_server_url


def local_hostname() -> str:
    """Return short hostname, stripping FQDN domain suffix."""
    return socket.gethostname().split(".")[0]


def _effective_machine_id() -> str:
    """Return the machine id filededup will report: env > config > hostname."""
    return (
        os.environ.get("FILEDEDUP_MACHINE_ID")
        or get_agent_config().get("machine_id")
        or local_hostname()
    )


def print_server_info() -> None:
    """Print version, server URL, and machine id to stderr (TTY only)."""
    if sys.stderr.isatty():
        print(f"filededup {get_version()}", file=sys.stderr)
        print(f"  {_effective_machine_id()} → {get_server_url()}", file=sys.stderr)


def print_config_hint() -> None:
    """Point at `filededup config` when no config file exists yet."""
    if not config_path().exists():
        print(
            "hint: run `filededup config` to set the server address",
            file=sys.stderr,
        )


def get_version() -> str:
    try:
        from importlib.metadata import version
        return version("filededup")
    except Exception:
        return "unknown"
