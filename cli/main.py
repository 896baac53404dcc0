"""CLI entry point and argument parsing"""

import argparse
import asyncio
import sys
from typing import List, Optional

from rich.console import Console

from cli import auth_handlers, task_handlers
from cli.debug_setup import setup_debug_console
from utils.errors import CloudCLIError
from utils.storage import CredentialStore


console = Console()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cloud", description="Cloud platform command-line client")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--credentials-file",
        default=None,
        help="Credential store location (default: from config)"
    )
    commands = parser.add_subparsers(dest="command", metavar="COMMAND")
    commands.required = True

    login = commands.add_parser("login", help="Log in to the cloud platform in your browser")
    login.add_argument("--port", type=int, default=None, help="Loopback callback port (default: from config)")
    login.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Give up after this many seconds without a callback (default: wait until interrupted)"
    )
    login.add_argument("--no-browser", action="store_true", help="Print the login URL instead of opening it")

    commands.add_parser("logout", help="Remove stored credentials")
    commands.add_parser("status", help="Show stored credentials")

    env = commands.add_parser("env", help="Manage environments")
    env_commands = env.add_subparsers(dest="env_command", metavar="COMMAND")
    env_commands.required = True
    upgrade = env_commands.add_parser("upgrade", help="Upgrade the service version of an environment")
    _add_target_options(upgrade)
    upgrade.add_argument("--service", required=True, help="Service to upgrade to")

    backup = commands.add_parser("backup", help="Manage backups")
    backup_commands = backup.add_subparsers(dest="backup_command", metavar="COMMAND")
    backup_commands.required = True
    restore = backup_commands.add_parser("restore", help="Restore a backup into an environment")
    _add_target_options(restore)
    restore.add_argument("--backup", required=True, help="Backup to restore from")

    task = commands.add_parser("task", help="Long-running tasks")
    task_commands = task.add_subparsers(dest="task_command", metavar="COMMAND")
    task_commands.required = True
    wait = task_commands.add_parser("wait", help="Wait until a task succeeds")
    wait.add_argument("task_id", help="Task identifier")
    wait.add_argument("--timeout", type=float, default=None, help="Give up after this many seconds")
    wait.add_argument("--interval", type=float, default=None, help="Seconds between status checks")
    wait.add_argument(
        "--strict-errors",
        action="store_true",
        help="Stop on a failed status check instead of treating it as still pending"
    )

    return parser


def _add_target_options(parser: argparse.ArgumentParser):
    parser.add_argument("--organization", "-o", default=None, help="Organization slug (default: stored value)")
    parser.add_argument("--environment", "-e", default=None, help="Environment key (default: stored value)")
    parser.add_argument("--no-wait", action="store_true", help="Return once the task is submitted")


async def dispatch(args: argparse.Namespace, store: CredentialStore, out) -> bool:
    """Run the selected command; returns False when it did not succeed"""
    if args.command == "login":
        return await auth_handlers.login(
            store,
            out,
            port=args.port,
            timeout=args.timeout,
            open_browser=not args.no_browser,
        )

    if args.command == "logout":
        auth_handlers.logout(store, out)
        return True

    if args.command == "status":
        return auth_handlers.status(store, out)

    if args.command == "env":
        await task_handlers.env_upgrade(
            store,
            out,
            service=args.service,
            organization=args.organization,
            environment=args.environment,
            wait=not args.no_wait,
        )
        return True

    if args.command == "backup":
        await task_handlers.backup_restore(
            store,
            out,
            backup=args.backup,
            organization=args.organization,
            environment=args.environment,
            wait=not args.no_wait,
        )
        return True

    if args.command == "task":
        await task_handlers.task_wait(
            store,
            out,
            args.task_id,
            timeout=args.timeout,
            interval=args.interval,
            strict_errors=args.strict_errors,
        )
        return True

    raise CloudCLIError(f"Unknown command: {args.command}")


def main(argv: Optional[List[str]] = None):
    """Entry point for the CLI"""
    parser = build_parser()
    args = parser.parse_args(argv)

    out = console
    exit_code = 0
    try:
        out = setup_debug_console(args.debug)
        store = CredentialStore(args.credentials_file)
        if not asyncio.run(dispatch(args, store, out)):
            exit_code = 1

    except KeyboardInterrupt:
        out.print("\n[yellow]Interrupted by user[/yellow]")
        exit_code = 130
    except CloudCLIError as e:
        out.print(f"[red]ERROR:[/red] {e}")
        exit_code = 1
    except Exception as e:
        out.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
