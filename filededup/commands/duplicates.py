"""filededup duplicates — show duplicate sets known to the server."""

from __future__ import annotations

import json
import sys

from filededup import client
from filededup.commands import print_config_hint, print_server_info


def cmd_duplicates(args) -> None:
    server = getattr(args, "server", None)
    as_json = getattr(args, "as_json", False)

    if not as_json:
        print_server_info()

    try:
        dupes = client.get("/duplicates", server_url=server)
    except Exception as e:
        print(f"filededup: cannot reach server: {e}", file=sys.stderr)
        print_config_hint()
        sys.exit(1)

    if as_json:
        print(json.dumps(dupes, indent=2))
        return

    if not dupes:
        print("No duplicate files found.")
        return

    for d in dupes:
        print(f"{d['hash'][:12]}  {d['duplicate_count']} copies")
        for p in d["paths"]:
            print(f"  {p}")
    print()
    print(f"Found {len(dupes):,} sets of duplicate files.")
