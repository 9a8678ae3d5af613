"""CLI entry point — dispatches filededup subcommands."""
import argparse
import logging
import sys


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-5s [%(name)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="filededup",
        description="Cross-machine file inventory and duplicate detection",
    )
    sub = parser.add_subparsers(dest="command", metavar="COMMAND")

    # filededup scan
    p_scan = sub.add_parser("scan", help="Scan a directory and send file records to the server")
    p_scan.add_argument("path", nargs="?", default=".", help="Directory to scan (default: .)")
    p_scan.add_argument("--server", default=None, help="Server URL (default: from config)")
    p_scan.add_argument("--machine-id", dest="machine_id", default=None,
                        help="Unique machine identifier (default: hostname)")
    p_scan.add_argument("--batch", dest="batch", type=int, default=None,
                        help="Number of files per batch (default: 1000)")
    p_scan.add_argument("--workers", type=int, default=None,
                        help="Number of parallel workers (0 = auto)")
    p_scan.add_argument("--queue-size", dest="queue_size", type=int, default=None,
                        help="Size of processing queues (0 = auto)")
    p_scan.add_argument("--skip-large", dest="skip_large", action="store_true", default=None,
                        help="Skip files larger than --max-size")
    p_scan.add_argument("--max-size", dest="max_size", type=int, default=None,
                        help="Maximum file size in bytes when --skip-large is set (default: 1 GiB)")
    p_scan.add_argument("--progress-interval", dest="progress_interval", type=float,
                        default=None, help="Seconds between progress lines (default: 3)")
    p_scan.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    # filededup duplicates
    p_dupes = sub.add_parser("duplicates", help="List duplicate files known to the server")
    p_dupes.add_argument("--server", default=None, help="Server URL (default: from config)")
    p_dupes.add_argument("--json", dest="as_json", action="store_true",
                         help="Print the raw JSON response")

    # filededup server
    p_server = sub.add_parser("server", help="Start the aggregation server")
    p_server.add_argument("--host", default="127.0.0.1", help="Bind address (default: 127.0.0.1)")
    p_server.add_argument("--port", type=int, default=8080, help="Port (default: 8080)")
    p_server.add_argument("--db", default=None, help="Path to filededup.duckdb")
    p_server.add_argument("--reload", action="store_true", help="Enable auto-reload (dev only)")

    # filededup config
    sub.add_parser("config", help="Interactively set server address and machine id")

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    _setup_logging(getattr(args, "verbose", False))

    try:
        if args.command == "scan":
            from filededup.commands.scan import cmd_scan
            cmd_scan(args)
        elif args.command == "duplicates":
            from filededup.commands.duplicates import cmd_duplicates
            cmd_duplicates(args)
        elif args.command == "server":
            from filededup.commands.server import cmd_server
            cmd_server(args)
        elif args.command == "config":
            from filededup.commands.config import cmd_config
            cmd_config(args)
        else:
            parser.print_help()
            sys.exit(1)
    except KeyboardInterrupt:
        sys.stderr.write("\n")
        sys.exit(130)


if __name__ == "__main__":
    main()
