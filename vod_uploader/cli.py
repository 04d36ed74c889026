"""Command line interface for vod_uploader."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .exceptions import HandleError, ParameterError
from .models import CommitResult, VodConfig

console = Console()
err_console = Console(stderr=True)

ENV_PREFIX = "VOD_"
DEFAULT_ENV_FILES = (Path("vod.env"), Path(".env"))
PACKAGE_LOGGER = "vod_uploader"


class CLIError(RuntimeError):
    """Raised when CLI validation/execution fails."""


def _setup_logging(debug: bool, silent: bool, log_level: Optional[str]) -> str:
    """
    Route vod_uploader logs to stderr through rich.

    Silent unless --debug or --log-level is given. Only the package logger
    (and httpx under --debug) is touched; the root logger is left alone.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.handlers.clear()
    package_logger.propagate = False

    if silent or not (debug or log_level):
        package_logger.addHandler(logging.NullHandler())
        package_logger.setLevel(logging.CRITICAL + 1)
        return "silent"

    level = logging.DEBUG if debug else logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise CLIError(f"unknown log level: {log_level}")

    handler = RichHandler(console=err_console, show_time=False, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    package_logger.addHandler(handler)
    package_logger.setLevel(level)
    if debug:
        httpx_logger = logging.getLogger("httpx")
        httpx_logger.handlers.clear()
        httpx_logger.addHandler(handler)
        httpx_logger.setLevel(logging.DEBUG)
    return logging.getLevelName(level)


def _parse_env_line(line: str) -> Optional[Tuple[str, str]]:
    key, sep, value = line.partition("=")
    key = key.strip()
    if not sep or not key.startswith(ENV_PREFIX):
        return None
    value = value.strip()
    if value[:1] in {"'", '"'} and value.endswith(value[0]) and len(value) >= 2:
        value = value[1:-1]
    return key, value


def _load_env_file(path: Path, override: bool = False) -> List[str]:
    """
    Apply ``VOD_*`` assignments from a dotenv-style file to the environment.

    Other keys, comments and blank lines are ignored. Values already in the
    environment win unless ``override`` is set.

    Returns:
        Names of the variables that were set
    """
    if not path.is_file():
        raise CLIError(f"env file not found: {path}")
    try:
        lines = path.read_text(encoding="utf-8").splitlines()
    except OSError as exc:
        raise CLIError(f"could not read env file {path}: {exc}") from exc

    applied = []
    for line in lines:
        line = line.strip()
        if line.startswith("#"):
            continue
        pair = _parse_env_line(line)
        if pair is None:
            continue
        key, value = pair
        if override or key not in os.environ:
            os.environ[key] = value
            applied.append(key)
    return applied


def _find_default_env_file() -> Optional[Path]:
    return next((candidate for candidate in DEFAULT_ENV_FILES if candidate.is_file()), None)


def _mask(secret: str) -> str:
    if not secret:
        return "(missing)"
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}...{secret[-4:]}"


def render_configuration_summary(config: Dict[str, Any]) -> None:
    table = Table(title="vod-upload", show_header=False, box=None)
    table.add_column("key", style="bold cyan")
    table.add_column("value")
    for key, value in config.items():
        table.add_row(key, str(value))
    err_console.print(table)


def render_result(result: CommitResult, as_json: bool) -> None:
    if as_json:
        console.print_json(result.to_json())
        return
    console.print(f"[green]Uploaded[/green] file_id={result.file_id}")
    if result.video_url:
        console.print(f"video: {result.video_url}")
    if result.cover_url:
        console.print(f"cover: {result.cover_url}")


def _build_config(args: argparse.Namespace) -> VodConfig:
    config = VodConfig.from_env(
        secret_id=args.secret_id,
        secret_key=args.secret_key,
        sign_expired=args.sign_expired,
        region=args.region,
    )
    if args.retry_time is not None:
        config = config.with_retry_time(args.retry_time)
    return config


async def _run_upload(
    config: VodConfig,
    video: Path,
    cover: Optional[Path],
    procedure: Optional[str],
) -> CommitResult:
    from .orchestrator import VodUploader

    async with VodUploader(config) as vod:
        return await vod.upload(video, cover, procedure)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vod-upload",
        description="Upload a video (and optional cover) to cloud VOD: apply, transfer, commit.",
    )
    parser.add_argument("video", nargs="?", type=Path, help="Local video file")
    parser.add_argument("-c", "--cover", type=Path, default=None, help="Local cover image")
    parser.add_argument("-p", "--procedure", default=None, help="Task flow to run after upload")
    parser.add_argument(
        "--secret-id",
        default=None,
        help="API secret id (default from VOD_SECRET_ID)",
    )
    parser.add_argument(
        "--secret-key",
        default=None,
        help="API secret key (default from VOD_SECRET_KEY)",
    )
    parser.add_argument("--region", default=None, help="Control-plane region (default from VOD_REGION or gz)")
    parser.add_argument(
        "--retry-time",
        type=int,
        default=None,
        help="Attempts for apply and commit (default from VOD_RETRY_TIME or 3)",
    )
    parser.add_argument(
        "--sign-expired",
        type=int,
        default=None,
        help="Storage signature validity in seconds (default from VOD_SIGN_EXPIRED or 86400)",
    )
    parser.add_argument(
        "--env-file",
        type=Path,
        default=None,
        help="Load environment variables from this .env file",
    )
    parser.add_argument("--json", action="store_true", help="Print the raw commit response")
    parser.add_argument("--debug", action="store_true", help="Enable debug logs")
    parser.add_argument("--silent", action="store_true", help="Only print errors")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Explicit log level (DEBUG/INFO/WARNING/ERROR)",
    )
    parser.add_argument("--version", action="version", version="vod-upload (from vod_uploader)")
    return parser


def _prepare(args: argparse.Namespace) -> Tuple[VodConfig, Optional[Path], str]:
    env_file = args.env_file or _find_default_env_file()
    if env_file is not None:
        _load_env_file(Path(env_file))
    log_mode = _setup_logging(debug=args.debug, silent=args.silent, log_level=args.log_level)
    return _build_config(args), env_file, log_mode


def run_cli(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.video is None:
        parser.print_help()
        return 0

    try:
        config, env_file, log_mode = _prepare(args)
    except CLIError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except ParameterError as exc:
        print(f"ERROR: invalid parameter: {exc}", file=sys.stderr)
        return 1

    if not args.silent:
        render_configuration_summary(
            {
                "Video": str(args.video),
                "Cover": str(args.cover) if args.cover else "-",
                "Procedure": args.procedure or "-",
                "Secret Id": _mask(config.secret_id),
                "Region": config.region,
                "Retry Time": config.retry_time,
                "Sign Expired": f"{config.sign_expired}s",
                "Env File": str(env_file) if env_file else "-",
                "Logging": log_mode,
            }
        )

    try:
        result = asyncio.run(
            _run_upload(
                config,
                args.video.expanduser(),
                args.cover.expanduser() if args.cover else None,
                args.procedure,
            )
        )
    except ParameterError as exc:
        print(f"ERROR: invalid parameter: {exc}", file=sys.stderr)
        return 1
    except HandleError as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("Cancelled.", file=sys.stderr)
        return 130
    except Exception as exc:
        print(f"ERROR: upload failed: {exc}", file=sys.stderr)
        return 1

    render_result(result, args.json)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> None:
    sys.exit(run_cli(argv))


if __name__ == "__main__":
    main()
