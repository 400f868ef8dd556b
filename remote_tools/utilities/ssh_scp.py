"""
SCP file operations over an established Session.

Writes are sent from memory. scp can only receive into the local filesystem,
so reads land in a temporary directory and are read back before it is
removed. Neither direction streams; do not use these for payloads larger
than available memory.
"""
import io
import logging
import tempfile
from pathlib import Path

import paramiko
from scp import SCPClient, SCPException

from remote_tools.errors import (
    RemoteFileCreateError,
    RemoteFileDecodeError,
    RemoteFileReadError,
    RemoteFileWriteError,
)
from remote_tools.utilities.ssh_connection import Session

LOGGER = logging.getLogger(__name__)

# rw-r--r--, not configurable
REMOTE_FILE_MODE = '0644'

_TRANSFER_ERRORS = (SCPException, paramiko.SSHException, OSError, EOFError)


def write_remote_file(session: Session, content: str | bytes, remote_path) -> None:
    """Create or overwrite remote_path with content, mode 0644.

    The file counts as created once the remote scp accepted the file header;
    failures before that raise RemoteFileCreateError, after it
    RemoteFileWriteError. The scp channel is closed either way.
    """
    session.ensure_authenticated()
    remote_path = str(remote_path)
    data = content.encode('utf-8') if isinstance(content, str) else bytes(content)
    created = False

    def _progress(filename, size, sent):
        nonlocal created
        created = True

    try:
        with SCPClient(session.transport, progress=_progress, socket_timeout=session.timeout) as scp:
            scp.putfo(io.BytesIO(data), remote_path, mode=REMOTE_FILE_MODE, size=len(data))
    except _TRANSFER_ERRORS as err:
        if created:
            raise RemoteFileWriteError(remote_path, str(err)) from err
        raise RemoteFileCreateError(remote_path, len(data), str(err)) from err
    LOGGER.info('Wrote %d bytes to %s:%s', len(data), session.address, remote_path)


def read_remote_file(session: Session, remote_path) -> str:
    """Fetch remote_path and return its content decoded as UTF-8."""
    session.ensure_authenticated()
    remote_path = str(remote_path)

    with tempfile.TemporaryDirectory(prefix='remote-tools-') as tmp_dir:
        local_path = Path(tmp_dir) / 'content'
        try:
            with SCPClient(session.transport, socket_timeout=session.timeout) as scp:
                scp.get(remote_path, local_path=str(local_path))
            if not local_path.is_file():
                raise RemoteFileReadError(remote_path, 'remote scp sent no file')
            data = local_path.read_bytes()
        except _TRANSFER_ERRORS as err:
            raise RemoteFileReadError(remote_path, str(err)) from err

    LOGGER.info('Read %d bytes from %s:%s', len(data), session.address, remote_path)
    try:
        return data.decode('utf-8')
    except UnicodeDecodeError as err:
        raise RemoteFileDecodeError(remote_path, str(err)) from err
