"""Status display functionality for CLI"""

from rich.table import Table

from cli.output import mask_secret
from cloud_auth import SESSION_KEY, TOKEN_KEY
from utils.storage import CredentialStore

# Stored values safe to show in full
_PLAIN_KEYS = {SESSION_KEY, "organization", "environment"}


def show_credential_status(store: CredentialStore, console):
    """
    Display stored credentials with secrets masked

    Args:
        store: CredentialStore instance
        console: Rich console for output
    """
    credentials = store.all()

    if not credentials.get(TOKEN_KEY):
        console.print("[red]✗ Not logged in[/red]")
        console.print("Run [cyan]cloud login[/cyan] to authenticate.")
        return

    table = Table(title="Stored Credentials")
    table.add_column("Field", style="cyan")
    table.add_column("Value")

    for name, value in credentials.items():
        shown = str(value) if name in _PLAIN_KEYS else mask_secret(value)
        table.add_row(name, shown)

    console.print("[green]✓ Logged in[/green]")
    console.print(table)
    console.print(f"[dim]Credentials file: {store.credentials_file}[/dim]")
