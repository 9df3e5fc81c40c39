"""CLI entry point and argument parsing"""

import sys
import argparse
from typing import List, Optional

from rich.console import Console

import settings
from loopback_oauth import IncludeGrantedScopes, LoopbackAuthorizer
from utils.debug_console import create_debug_console, setup_debug_logging, setup_logging
from utils.secrets import KeyringSecretStore
from utils.storage import SettingsStore
from cli.auth_handlers import login, logout, show_status


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Dropbin Dropbox authorization CLI")
    parser.add_argument("--debug", "-d", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--settings-file",
        default=None,
        help="Override settings file (default: from config)"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    login_parser = subparsers.add_parser("login", help="Obtain an access token for a drive")
    login_parser.add_argument("--drive", required=True, help="Drive name the tokens are stored under")
    login_parser.add_argument(
        "--scope",
        dest="scopes",
        action="append",
        default=[],
        help="Scope to request (repeatable), e.g. files.content.read"
    )
    login_parser.add_argument(
        "--include-granted-scopes",
        choices=[option.name.lower() for option in IncludeGrantedScopes],
        default="none",
        help="Include scopes granted in earlier authorizations"
    )
    login_parser.add_argument(
        "--port",
        type=int,
        default=settings.LOOPBACK_PORT,
        help="Loopback port; must match the redirect URI registered with the app"
    )

    status_parser = subparsers.add_parser("status", help="Show stored credentials for a drive")
    status_parser.add_argument("--drive", required=True)

    logout_parser = subparsers.add_parser("logout", help="Remove cached tokens for a drive")
    logout_parser.add_argument("--drive", required=True)

    return parser


def main(argv: Optional[List[str]] = None):
    """Entry point for the CLI"""
    args = build_parser().parse_args(argv)

    if args.debug:
        debug_logger = setup_debug_logging(settings.DEBUG_LOG_FILE)
        console = create_debug_console(debug_enabled=True, debug_logger=debug_logger)
        console.print(f"[yellow]Debug mode enabled - verbose logging will be written to {settings.DEBUG_LOG_FILE}[/yellow]")
    else:
        setup_logging(settings.LOG_LEVEL)
        console = Console()

    try:
        secret_store = KeyringSecretStore()
        settings_store = SettingsStore(args.settings_file)

        if args.command == "login":
            authorizer = LoopbackAuthorizer(
                secret_store=secret_store,
                settings_store=settings_store,
                port=args.port,
                console=console,
            )
            ok = login(
                authorizer,
                args.drive,
                args.scopes,
                IncludeGrantedScopes[args.include_granted_scopes.upper()],
                console,
            )
        elif args.command == "status":
            ok = show_status(secret_store, settings_store, args.drive, console)
        else:
            logout(secret_store, args.drive, console)
            ok = True

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"\n[red]Fatal error:[/red] {e}")
        if args.debug:
            import traceback
            traceback.print_exc()
        sys.exit(1)

    sys.exit(0 if ok else 1)


if __name__ == "__main__":
    main()
