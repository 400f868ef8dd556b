"""
remote_tools: SSH session, SCP transfer and remote command helpers.
"""
__version__ = '0.1.0'

from remote_tools.errors import (  # noqa: E402
    AuthenticationError,
    CommandExecutionError,
    ConnectError,
    HandshakeError,
    HostKeyError,
    RemoteError,
    RemoteFileCreateError,
    RemoteFileDecodeError,
    RemoteFileReadError,
    RemoteFileWriteError,
    SessionClosedError,
    SessionInitError,
)
from remote_tools.utilities.ssh_connection import Session, SSHConnection, establish  # noqa: E402
from remote_tools.utilities.ssh_exec import CommandResult, execute_commands, run_commands  # noqa: E402
from remote_tools.utilities.ssh_scp import read_remote_file, write_remote_file  # noqa: E402
