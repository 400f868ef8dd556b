'''
Remote command execution over an established Session.

Commands of a batch are joined with ";" and run in one exec channel, so a
failing command does not stop the next one. stdout and stderr are merged
into one stream.

run_commands() returns only that combined text: it is best-effort
diagnostics and callers cannot detect a failed command from it. Use
execute_commands() when the exit status of the batch matters.
'''
import logging
from dataclasses import dataclass
from typing import Sequence

import paramiko

from remote_tools.errors import CommandExecutionError
from remote_tools.utilities.ssh_connection import Session

LOGGER = logging.getLogger(__name__)

READ_CHUNK = 32768


@dataclass
class CommandResult:
    '''Outcome of one command batch. exit_status is -1 when the server did not report one'''
    command: str
    output: str
    exit_status: int

    @property
    def succeeded(self) -> bool:
        return self.exit_status == 0


def join_commands(commands: Sequence[str]) -> str:
    return ';'.join(commands)


def _read_until_eof(channel: paramiko.Channel) -> bytes:
    chunks = []
    while True:
        chunk = channel.recv(READ_CHUNK)
        if not chunk:
            break
        chunks.append(chunk)
    return b''.join(chunks)


def execute_commands(session: Session, commands: Sequence[str]) -> CommandResult:
    """Run the batch in a single shell and return output plus exit status.

    Any failure to open the channel, execute, read or decode the output raises
    CommandExecutionError carrying the joined command line.
    """
    session.ensure_authenticated()
    command = join_commands(commands)
    LOGGER.info('Executing on %s: %s', session.address, command)

    try:
        channel = session.transport.open_session(timeout=session.timeout)
    except (paramiko.SSHException, OSError, EOFError) as err:
        raise CommandExecutionError(command, str(err)) from err

    try:
        channel.settimeout(session.timeout)
        channel.set_combine_stderr(True)
        channel.exec_command(command)
        raw = _read_until_eof(channel)
        exit_status = channel.recv_exit_status()
    except (paramiko.SSHException, OSError, EOFError) as err:
        raise CommandExecutionError(command, str(err)) from err
    finally:
        channel.close()

    try:
        output = raw.decode('utf-8')
    except UnicodeDecodeError as err:
        raise CommandExecutionError(command, f'output is not valid UTF-8: {err}') from err

    LOGGER.debug('Command %r exited with %s, %d bytes of output', command, exit_status, len(raw))
    return CommandResult(command=command, output=output, exit_status=exit_status)


def run_commands(session: Session, commands: Sequence[str]) -> str:
    """Run the batch and return combined stdout/stderr. Exit status is not checked."""
    return execute_commands(session, commands).output
