"""Entry point: python -m fb_rescue"""

import argparse
import asyncio
import json
import sys
from typing import Optional

import uvicorn

from .app import configure_logging
from .config import settings
from .models.job import JobRequest, Operation, RecoveryJob
from .services.job_manager import build_engine
from .services.template_store import CommandTemplateStore
from .utils.firebird_paths import detect_bin_dir
from .utils.service_control import ServiceController

JOB_COMMANDS = {
    "test": Operation.TEST,
    "check": Operation.CHECK,
    "mend": Operation.MEND,
    "backup-restore": Operation.BACKUP_RESTORE,
}


def add_job_arguments(parser: argparse.ArgumentParser) -> None:
    """Add the connection arguments shared by every database command."""

    parser.add_argument("--bin", required=True, help="Firebird 2.5 bin directory")
    parser.add_argument("--db", required=True, help="Path to the .FDB file")
    parser.add_argument(
        "--user",
        default=settings.default_user,
        help=f"Database user (default: {settings.default_user})",
    )
    password = parser.add_mutually_exclusive_group()
    password.add_argument("--password", default="", help="Database password")
    password.add_argument(
        "--default-password",
        action="store_true",
        help="Use the stock Firebird password",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fb-rescue",
        description="Check, mend and rebuild Firebird 2.5 databases",
    )
    parser.add_argument("--debug", action="store_true", help="Verbose logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    helps = {
        "test": "Open the database with isql",
        "check": "Validate the database with gfix -v -full",
        "mend": "Repair the database in place with gfix -mend",
        "backup-restore": "Rebuild the database through a gbak backup and restore",
    }
    for name, help_text in helps.items():
        add_job_arguments(subparsers.add_parser(name, help=help_text))

    subparsers.add_parser("status", help="Show the Firebird service state")
    subparsers.add_parser("detect-bin", help="Look for the Firebird 2.5 tools")

    templates = subparsers.add_parser("templates", help="Show or reset command templates")
    templates.add_argument("action", choices=["show", "reset"])

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=settings.host)
    serve.add_argument("--port", type=int, default=settings.port)
    return parser


async def run_job(args: argparse.Namespace) -> int:
    request = JobRequest(
        operation=JOB_COMMANDS[args.command],
        db_path=args.db,
        bin_dir=args.bin,
        user=args.user,
        password=settings.default_password if args.default_password else args.password,
    )
    job = RecoveryJob.create(request, archive_extension=settings.archive_extension)
    result = await build_engine().run(job)
    print(result.report)
    return 0 if result.success else 1


async def show_status() -> int:
    status = await ServiceController(settings.service_names).query_status()
    suffix = f" ({status.service})" if status.service else ""
    print(f"Firebird service: {status.state.value}{suffix}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(args.debug or settings.debug)

    if args.command in JOB_COMMANDS:
        return asyncio.run(run_job(args))

    if args.command == "status":
        return asyncio.run(show_status())

    if args.command == "detect-bin":
        found = detect_bin_dir()
        print(found.bin_dir if found.found else "Firebird 2.5 tools not found")
        return 0 if found.found else 1

    if args.command == "templates":
        store = CommandTemplateStore(settings.settings_file)
        templates = store.reset_to_default() if args.action == "reset" else store.load()
        print(json.dumps(templates.model_dump(by_alias=True), indent=2))
        return 0

    uvicorn.run(
        "fb_rescue.app:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=settings.debug,
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
