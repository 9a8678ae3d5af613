"""filededup config — interactively write the server URL and machine id."""
from __future__ import annotations
import ipaddress
import re
from pathlib import Path
from urllib.parse import urlsplit

try:
    import tomllib
except ImportError:
    import tomli as tomllib  # type: ignore[no-redef]

from filededup.commands import local_hostname
from filededup.config import config_path

DEFAULT_PORT = 8080


def _validate_server(value: str) -> str | None:
    """Return None if ``host`` or ``host:port`` is acceptable, else an error message."""
    value = value.strip()
    if not value:
        return "Server cannot be empty."
    if "://" in value:
        return "Enter just host or host:port, without a scheme."
    host, _, port = value.partition(":")
    if port and not (port.isdigit() and 0 < int(port) < 65536):
        return f"Invalid port: {port!r}"
    try:
        ipaddress.ip_address(host)
        return None
    except ValueError:
        pass
    if re.fullmatch(r"[A-Za-z0-9]([A-Za-z0-9.-]*[A-Za-z0-9])?", host):
        return None
    return f"Invalid hostname: {host!r}"


def _server_url(value: str) -> str:
    value = value.strip()
    if ":" not in value:
        value = f"{value}:{DEFAULT_PORT}"
    return f"http://{value}"


def _prompt(label: str, current: str, default: str) -> str | None:
    """Prompt for a value, showing current or default in brackets. Returns None on cancel."""
    shown = current or default
    try:
        raw = input(f"{label} [{shown}]: ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return None
    return raw or shown


def _read_config(path: Path) -> dict:
    if path.exists():
        with open(path, "rb") as f:
            return tomllib.load(f)
    return {}


def _toml_value(val) -> str:
    if isinstance(val, bool):
        return "true" if val else "false"
    if isinstance(val, str):
        return '"' + val.replace("\\", "\\\\").replace('"', '\\"') + '"'
    return str(val)


def _write_config(path: Path, cfg: dict) -> None:
    lines = []
    for section, values in cfg.items():
        if not isinstance(values, dict):
            continue
        lines.append(f"[{section}]")
        for key, val in values.items():
            lines.append(f"{key} = {_toml_value(val)}")
        lines.append("")
    path.write_text("\n".join(lines).rstrip("\n") + "\n")


def cmd_config(args) -> None:
    path = config_path()
    cfg = _read_config(path)
    auto_id = local_hostname()

    current_url = cfg.get("server", {}).get("url", "")
    current_server = urlsplit(current_url).netloc if current_url else ""

    server = _prompt("Server host[:port]", current_server, "localhost")
    if server is None:
        return
    error = _validate_server(server)
    if error:
        print(f"Error: {error}")
        return
    url = _server_url(server)
    cfg.setdefault("server", {})["url"] = url

    current_id = cfg.get("agent", {}).get("machine_id", "")
    machine_id = _prompt("Machine id", current_id, auto_id)
    if machine_id is None:
        return
    if machine_id == auto_id:
        # Hostname is the runtime default, don't pin it
        cfg.get("agent", {}).pop("machine_id", None)
    else:
        cfg.setdefault("agent", {})["machine_id"] = machine_id

    _write_config(path, cfg)

    print()
    print(f"Saved: {path}")
    print(f"      server = {url}")
    print(f"  machine_id = {machine_id}")
    if machine_id == auto_id:
        print("               (auto-detected)")
