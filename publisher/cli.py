"""Command line interface for publisher package."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from rich.logging import RichHandler

from .cli_progress import PublishProgress, describe_source, render_configuration_summary
from .errors import PublisherError
from .models import PublishConfig, SessionContext
from .orchestrator import PublishOrchestrator
from .services.device import DeviceProfile

VIDEO_SUFFIXES = {".mp4", ".mov", ".m4v", ".3gp"}
REQUIRED_ENV = ("PUBLISHER_UUID", "PUBLISHER_CSRFTOKEN", "PUBLISHER_ACCOUNT_ID")


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Configure logging.

    Default behavior is silent unless --debug or --log-level is provided.
    Returns a string describing effective mode.
    """
    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    logging.disable(logging.NOTSET)

    if silent or (not debug and not log_level):
        logging.disable(logging.CRITICAL)
        root_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    if debug:
        level = logging.DEBUG
    else:
        level = getattr(logging, log_level.upper(), logging.INFO)

    handler = RichHandler(
        rich_tracebacks=True,
        markup=False,
        show_time=False,
        show_path=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    root_logger.addHandler(handler)
    root_logger.setLevel(level)
    return logging.getLevelName(level)


def _strip_optional_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in {"'", '"'}:
        return value[1:-1]
    return value


def _load_env_file(path: Path, override: bool = False) -> None:
    if not path.exists():
        raise CLIError(f"env file not found: {path}")
    if not path.is_file():
        raise CLIError(f"env path is not a file: {path}")

    try:
        content = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    for raw_line in content.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue

        key, value = line.split("=", 1)
        key = key.strip()
        if not key:
            continue

        value = _strip_optional_quotes(value.strip())
        if override or key not in os.environ:
            os.environ[key] = value


def _resolve_default_env_file() -> Optional[Path]:
    default_env = Path(".env")
    return default_env if default_env.exists() and default_env.is_file() else None


def _session_from_env() -> SessionContext:
    missing = [name for name in REQUIRED_ENV if not os.getenv(name)]
    if missing:
        raise CLIError(f"missing environment variables: {', '.join(missing)}")

    account_id = os.environ["PUBLISHER_ACCOUNT_ID"]
    csrf_token = os.environ["PUBLISHER_CSRFTOKEN"]
    cookies: Dict[str, str] = {"csrftoken": csrf_token, "ds_user_id": account_id}
    sessionid = os.getenv("PUBLISHER_SESSIONID")
    if sessionid:
        cookies["sessionid"] = sessionid

    return SessionContext(
        uuid=os.environ["PUBLISHER_UUID"],
        csrf_token=csrf_token,
        account_id=account_id,
        cookies=cookies,
    )


def _config_from_env() -> PublishConfig:
    overrides = {}
    api_url = os.getenv("PUBLISHER_API_URL")
    if api_url:
        overrides["api_url"] = api_url if api_url.endswith("/") else api_url + "/"
    sig_key = os.getenv("PUBLISHER_SIG_KEY")
    if sig_key:
        overrides["signature_key"] = sig_key
    return PublishConfig(**overrides)


def _device_from_env() -> DeviceProfile:
    device_string = os.getenv("PUBLISHER_DEVICE")
    if device_string:
        return DeviceProfile.from_string(device_string)
    return DeviceProfile.from_string()


def _album_media(paths: Sequence[Path]) -> List[Dict[str, object]]:
    return [
        {
            "type": "video" if path.suffix.lower() in VIDEO_SUFFIXES else "photo",
            "file": path,
        }
        for path in paths
    ]


async def _run_publish(args: argparse.Namespace) -> int:
    session = _session_from_env()
    config = _config_from_env()
    device = _device_from_env()
    external = {"caption": args.caption} if args.caption else None

    if args.command == "album":
        label = f"album of {len(args.sources)} items"
    else:
        label = args.sources[0].name
    progress = PublishProgress(label)
    progress.start()

    try:
        async with PublishOrchestrator(session, config=config, device=device) as publisher:
            if args.command == "photo":
                body = await publisher.upload_single_photo(args.feed, args.sources[0], external)
            elif args.command == "video":
                body = await publisher.upload_single_video(
                    args.feed,
                    args.sources[0],
                    external,
                    max_attempts=args.max_attempts,
                    progress_callback=progress.get_callback(),
                )
            else:
                body = await publisher.upload_album(
                    _album_media(args.sources),
                    external,
                    max_attempts=args.max_attempts,
                    progress_callback=progress.get_callback(),
                )
    except PublisherError as exc:
        progress.complete(success=False, error=str(exc))
        raise

    progress.complete(success=True)
    media = body.get("media") if isinstance(body, dict) else None
    if isinstance(media, dict) and media.get("code"):
        print(f"https://www.instagram.com/p/{media['code']}/")
    return 0


def _add_common_publish_args(parser: argparse.ArgumentParser, feeds: bool = True) -> None:
    if feeds:
        parser.add_argument(
            "-f",
            "--feed",
            choices=["timeline", "story"],
            default="timeline",
            help="Target feed (default: timeline)",
        )
    parser.add_argument("-c", "--caption", default=None, help="Caption text")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ig-publish",
        description="Upload and publish photos, videos and albums.",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version="ig-publish (from publisher)",
    )

    subparsers = parser.add_subparsers(dest="command")

    photo = subparsers.add_parser("photo", help="Publish a single photo")
    photo.add_argument("sources", nargs=1, type=Path, metavar="PHOTO")
    _add_common_publish_args(photo)

    video = subparsers.add_parser("video", help="Publish a single video")
    video.add_argument("sources", nargs=1, type=Path, metavar="VIDEO")
    _add_common_publish_args(video)
    video.add_argument(
        "-n",
        "--max-attempts",
        type=int,
        default=None,
        help="Attempts per video chunk (default: 10)",
    )

    album = subparsers.add_parser("album", help="Publish 2-10 photos/videos as one post")
    album.add_argument("sources", nargs="+", type=Path, metavar="MEDIA")
    _add_common_publish_args(album, feeds=False)
    album.add_argument(
        "-n",
        "--max-attempts",
        type=int,
        default=None,
        help="Attempts per video chunk (default: 10)",
    )
    return parser


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    used_env_file = args.env_file or _resolve_default_env_file()
    if used_env_file is not None:
        try:
            _load_env_file(Path(used_env_file))
        except CLIError as exc:
            print(f"ERROR: {exc}", file=sys.stderr)
            return 1

    effective_log_mode = _setup_logging(
        debug=args.debug,
        silent=args.silent,
        log_level=args.log_level,
    )

    if args.command is None:
        parser.print_help()
        return 0

    args.sources = [Path(source).expanduser() for source in args.sources]
    for source in args.sources:
        if not source.is_file():
            print(f"ERROR: source does not exist: {source}", file=sys.stderr)
            return 1

    render_configuration_summary(
        {
            "Command": args.command,
            "Sources": ", ".join(describe_source(source) for source in args.sources),
            "Feed": getattr(args, "feed", "album"),
            "Caption": args.caption or "-",
            "API": os.getenv("PUBLISHER_API_URL") or "(default)",
            "Max Attempts": getattr(args, "max_attempts", None) or "(default)",
            "Env File": str(used_env_file) if used_env_file else "-",
            "Logging": effective_log_mode,
        }
    )

    try:
        return asyncio.run(_run_publish(args))
    except (CLIError, PublisherError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130


def main() -> None:
    raise SystemExit(run_cli())


if __name__ == "__main__":
    main()
