from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys
import threading

from .config import RetryPolicy, TransferConfig
from .constants import DEFAULT_CHUNK_SIZE
from .connection import ConnectionManager
from .digest import digest_file
from .dispatcher import Dispatcher, walk_files
from .errors import ResolveError
from .net import Connector, Resolver
from .progress import ConsoleProgress, NullProgress, ProgressSink
from .transfer import Transfer

logger = logging.getLogger("fxfer")


def build_config(args: argparse.Namespace) -> TransferConfig:
    """Environment first, then any flags given on the command line."""
    base = TransferConfig.from_env()

    def pick(value, default):
        return default if value is None else value

    retry = RetryPolicy(
        max_attempts=pick(args.max_retries, base.retry.max_attempts),
        delay_s=pick(args.retry_delay, base.retry.delay_s),
    )
    return dataclasses.replace(
        base,
        host=pick(args.host, base.host),
        port=pick(args.port, base.port),
        root=pick(args.root, base.root),
        chunk_size=pick(args.chunk_size, base.chunk_size),
        retry=retry,
        workers=pick(args.workers, base.workers),
        connect_timeout_s=pick(args.connect_timeout, base.connect_timeout_s),
    )


def cmd_send(args: argparse.Namespace) -> int:
    try:
        cfg = build_config(args)
    except ValueError as e:
        logger.error("Invalid configuration: %s", e)
        return 2

    progress: ProgressSink = NullProgress() if args.no_progress else ConsoleProgress(sys.stdout, threading.Lock())
    resolver = Resolver()
    connector = Connector(timeout_s=cfg.connect_timeout_s)

    def new_manager() -> ConnectionManager:
        return ConnectionManager(
            cfg.host,
            cfg.port,
            transfer=Transfer(chunk_size=cfg.chunk_size, progress=progress),
            policy=cfg.retry,
            resolver=resolver,
            connector=connector,
        )

    paths = args.paths or walk_files(cfg.root)
    reports = Dispatcher(new_manager, workers=cfg.workers).run(paths)

    payload = {
        "role": "sender",
        "files": len(reports),
        "sent": sum(1 for r in reports if r.ok),
        "failed": sum(1 for r in reports if not r.ok),
        "bytes": sum(r.bytes_sent for r in reports if r.ok),
    }
    if args.json:
        payload["reports"] = [
            {
                "path": r.path,
                "outcome": r.outcome.value,
                "attempts": r.attempts,
                "bytes": r.bytes_sent,
                "md5": r.digest,
                "error": r.error.value if r.error else None,
            }
            for r in reports
        ]
    print(json.dumps(payload, indent=2) if args.json else payload)
    return 0 if all(r.ok for r in reports) else 1


def cmd_digest(args: argparse.Namespace) -> int:
    rc = 0
    for path in args.paths:
        try:
            print(f"{digest_file(path, args.chunk_size)}  {path}")
        except OSError as e:
            logger.error("Failed to hash %s: %s", path, e)
            rc = 1
    return rc


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="fxfer", description="Send files over TCP with md5-verified framing.")
    p.add_argument("--log-level", default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
    sub = p.add_subparsers(dest="cmd", required=True)

    # unset flags fall back to FXFER_* environment variables, then defaults
    send = sub.add_parser("send", help="send files to a receiver, one connection per file")
    send.add_argument("--host")
    send.add_argument("--port", type=int)
    send.add_argument("--root", help="directory to walk when no paths are given")
    send.add_argument("--chunk-size", type=int)
    send.add_argument("--max-retries", type=int)
    send.add_argument("--retry-delay", type=float, help="seconds between attempts")
    send.add_argument("--workers", type=int, help="files sent in parallel (default 1)")
    send.add_argument("--connect-timeout", type=float)
    send.add_argument("--no-progress", action="store_true")
    send.add_argument("--json", action="store_true")
    send.add_argument("paths", nargs="*")
    send.set_defaults(func=cmd_send)

    digest = sub.add_parser("digest", help="print the md5 the sender would transmit")
    digest.add_argument("--chunk-size", type=int, default=DEFAULT_CHUNK_SIZE)
    digest.add_argument("paths", nargs="+")
    digest.set_defaults(func=cmd_digest)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s [%(levelname)s] %(message)s")

    try:
        return int(args.func(args))
    except (ResolveError, NotADirectoryError) as e:
        logger.error("Error: %s", e)
        return 2
    except Exception:
        logger.exception("Unexpected error")
        raise


if __name__ == "__main__":
    raise SystemExit(main())
