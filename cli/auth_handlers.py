"""Authentication handlers for CLI"""

import asyncio
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table

from loopback_oauth import IncludeGrantedScopes, LoopbackAuthorizer
from utils.secrets import get_access_token_name, get_refresh_token_name


def login(
    authorizer: LoopbackAuthorizer,
    drive_name: str,
    scopes: Iterable[str],
    include_granted_scopes: IncludeGrantedScopes,
    console: Console,
) -> bool:
    """
    Obtain an access token for a drive, authorizing in the browser if needed

    Args:
        authorizer: LoopbackAuthorizer instance
        drive_name: Drive whose credentials are used
        scopes: Scopes to request
        include_granted_scopes: Whether to include previously granted scopes
        console: Rich console for output

    Returns:
        True if a token is available
    """
    console.print(f"\n[bold cyan]Dropbox Authorization[/bold cyan] for drive [bold]{drive_name}[/bold]\n")

    access_token = asyncio.run(
        authorizer.obtain_access_token(
            scopes=list(scopes),
            include_granted_scopes=include_granted_scopes,
            drive_name=drive_name,
        )
    )

    if not access_token:
        console.print("[red][ERROR][/red] No access token obtained")
        return False

    console.print(f"[green][OK][/green] Access token available for drive {drive_name}")
    return True


def show_status(secret_store, settings_store, drive_name: str, console: Console) -> bool:
    """
    Print what is stored for a drive without revealing any secret

    Returns:
        True if an access token is stored
    """
    settings_store.upgrade()
    has_access = secret_store.read_secret(get_access_token_name(drive_name)) is not None
    has_refresh = secret_store.read_secret(get_refresh_token_name(drive_name)) is not None

    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column(style="cyan", width=20)
    table.add_column()

    table.add_row("Drive:", drive_name)
    table.add_row("Access token:", "[green]✓ Stored[/green]" if has_access else "[red]✗ Not stored[/red]")
    table.add_row("Refresh token:", "[green]✓ Stored[/green]" if has_refresh else "[dim]Not stored[/dim]")
    table.add_row("API key:", "[green]✓ Configured[/green]" if settings_store.get("api_key") else "[dim]Not configured[/dim]")

    expiration: Optional[str] = settings_store.get("access_token_expiration")
    if expiration:
        table.add_row("Token expires:", expiration)
    account_id = settings_store.get("account_id")
    if account_id:
        table.add_row("Account ID:", f"[dim]{account_id}[/dim]")

    console.print(table)
    return has_access


def logout(secret_store, drive_name: str, console: Console) -> bool:
    """
    Remove a drive's cached tokens so the next login authorizes again

    Returns:
        True if any credential was removed
    """
    removed = False
    for name in (get_access_token_name(drive_name), get_refresh_token_name(drive_name)):
        if secret_store.delete_secret(name):
            removed = True

    if removed:
        console.print(f"[green][OK][/green] Removed cached tokens for drive {drive_name}")
    else:
        console.print(f"[yellow]No cached tokens for drive {drive_name}[/yellow]")
    return removed
