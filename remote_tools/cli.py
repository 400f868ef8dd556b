'''
Command line entrypoint: rtools
'''
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from remote_tools.config import HostProfile, load_config
from remote_tools.errors import RemoteError
from remote_tools.logger import config_logging_for_app
from remote_tools.utilities.ssh_connection import DEFAULT_PORT, SSHConnection
from remote_tools.utilities.ssh_exec import execute_commands
from remote_tools.utilities.ssh_scp import read_remote_file, write_remote_file

LOGGER = logging.getLogger(__name__)

app = typer.Typer(help="Run commands and copy files on a remote host over SSH", no_args_is_help=True)
console = Console()
err_console = Console(stderr=True)

_USER_ERRORS = (RemoteError, KeyError, FileNotFoundError, ValueError)


class ConnectionOptions:
    '''Options shared by every command that opens a session'''

    def __init__(self, profile, address, port, user, key, host_key_policy, timeout, config):
        self.profile = profile
        self.address = address
        self.port = port
        self.user = user
        self.key = key
        self.host_key_policy = host_key_policy
        self.timeout = timeout
        self.config = config

    def build(self) -> SSHConnection:
        """Merge the profile (if any) with explicit options, explicit options win."""
        settings = {}
        if self.profile:
            settings = load_config(self.config).get_profile(self.profile).model_dump()
        overrides = {
            'address': self.address,
            'port': self.port,
            'username': self.user,
            'private_key': self.key,
            'host_key_policy': self.host_key_policy,
            'timeout': self.timeout,
        }
        settings.update({k: v for k, v in overrides.items() if v is not None})
        missing = [name for name in ('address', 'username', 'private_key') if not settings.get(name)]
        if missing:
            raise typer.BadParameter(f'missing {", ".join(missing)}; pass --profile or the matching options')
        return SSHConnection.from_profile(HostProfile.model_validate(settings))


@app.callback()
def main(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(None, "--profile", "-p", help="Profile name from the config file"),
    address: Optional[str] = typer.Option(None, "--address", "-a", help="Remote host address"),
    port: Optional[int] = typer.Option(None, "--port", help=f"Remote SSH port (default {DEFAULT_PORT})"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="Remote username"),
    key: Optional[Path] = typer.Option(None, "--key", "-k", help="Private key file"),
    host_key_policy: Optional[str] = typer.Option(
        None, "--host-key-policy", help="strict, accept-new or warn (default strict)"),
    timeout: Optional[float] = typer.Option(None, "--timeout", help="Network timeout in seconds"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="Config file to read profiles from"),
):
    config_logging_for_app()
    ctx.obj = ConnectionOptions(profile, address, port, user, key, host_key_policy, timeout, config)


def _fail(err: Exception):
    LOGGER.error('%s', err)
    err_console.print(f"[red]Error:[/red] {err}")
    raise typer.Exit(code=1)


@app.command()
def check(ctx: typer.Context):
    """Open a session and report whether authentication succeeded."""
    try:
        with ctx.obj.build().connect() as session:
            console.print(f"[green]✓[/green] authenticated as {session.username}@{session.address}:{session.port}")
    except _USER_ERRORS as err:
        _fail(err)


@app.command("exec")
def exec_(
    ctx: typer.Context,
    commands: List[str] = typer.Argument(..., help="Commands, run in one shell joined with ';'"),
):
    """Run commands remotely, print combined output and exit with the remote status."""
    try:
        with ctx.obj.build().connect() as session:
            result = execute_commands(session, commands)
    except _USER_ERRORS as err:
        _fail(err)
    typer.echo(result.output, nl=False)
    if result.exit_status != 0:
        raise typer.Exit(code=result.exit_status if result.exit_status > 0 else 1)


@app.command()
def put(
    ctx: typer.Context,
    local_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Local text file"),
    remote_path: str = typer.Argument(..., help="Destination path on the remote host"),
):
    """Upload a local text file (created with mode 0644)."""
    try:
        content = local_path.read_text(encoding="utf-8")
        with ctx.obj.build().connect() as session:
            write_remote_file(session, content, remote_path)
    except _USER_ERRORS as err:
        _fail(err)
    console.print(f"[green]✓[/green] {local_path} -> {remote_path}")


@app.command()
def get(
    ctx: typer.Context,
    remote_path: str = typer.Argument(..., help="File on the remote host"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Save to this file instead of printing"),
):
    """Download a remote text file."""
    try:
        with ctx.obj.build().connect() as session:
            content = read_remote_file(session, remote_path)
    except _USER_ERRORS as err:
        _fail(err)
    if output:
        output.write_text(content, encoding="utf-8")
        err_console.print(f"[green]✓[/green] {remote_path} -> {output}")
    else:
        typer.echo(content, nl=False)


@app.command()
def profiles(ctx: typer.Context):
    """List the profiles in the config file."""
    try:
        config = load_config(ctx.obj.config)
    except _USER_ERRORS as err:
        _fail(err)
    if not config.profiles:
        console.print("No profiles configured")
        return
    table = Table(title="Profiles")
    table.add_column("Name", style="cyan")
    table.add_column("Target")
    table.add_column("Key")
    table.add_column("Host keys")
    for name, profile in sorted(config.profiles.items()):
        table.add_row(name, f"{profile.username}@{profile.address}:{profile.port}",
                      str(profile.private_key), profile.host_key_policy)
    console.print(table)


def cli():
    app()


if __name__ == "__main__":
    cli()
