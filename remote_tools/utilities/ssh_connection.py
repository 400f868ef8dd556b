"""
SSH session establishment.

Opens the TCP connection, runs the SSH handshake, verifies the server host
key and authenticates with a private key file. Each stage raises its own
error kind from remote_tools.errors so callers can tell which one failed.

Host key trust policy (explicit, never implied):
    strict      the key must already be in the known hosts file (default)
    accept-new  unknown hosts are recorded, changed keys are rejected
    warn        any key is accepted and logged at WARNING
"""
import logging
import socket
from pathlib import Path

import paramiko

from remote_tools.errors import (
    AuthenticationError,
    ConnectError,
    HandshakeError,
    HostKeyError,
    SessionClosedError,
    SessionInitError,
)

LOGGER = logging.getLogger(__name__)

DEFAULT_PORT = 22
DEFAULT_KNOWN_HOSTS = Path.home() / '.ssh' / 'known_hosts'
HOST_KEY_POLICIES = ('strict', 'accept-new', 'warn')

_KEY_CLASSES = (
    paramiko.RSAKey,
    paramiko.Ed25519Key,
    paramiko.ECDSAKey,
)


def load_private_key(key_path) -> paramiko.PKey:
    """
    Auto-detect SSH key type and return a paramiko PKey object.
    Tries RSA, Ed25519 and ECDSA in order. Passphrases are not supported.
    Raises OSError if the file cannot be read, ValueError if no key type fits.
    """
    key_path = Path(key_path).expanduser()
    if not key_path.is_file():
        raise FileNotFoundError(f'Private key file not found: {key_path}')
    for key_class in _KEY_CLASSES:
        try:
            return key_class.from_private_key_file(str(key_path))
        except paramiko.SSHException:
            continue
    raise ValueError('Unsupported, encrypted or invalid SSH private key format')


def known_hosts_name(address: str, port: int) -> str:
    '''Host entry name as OpenSSH writes it to known_hosts'''
    if port == DEFAULT_PORT:
        return address
    return f'[{address}]:{port}'


def verify_host_key(server_key: paramiko.PKey, address: str, port: int,
                    policy: str = 'strict', known_hosts=None) -> None:
    """Check the server key against the known hosts file according to policy.

    Raises HostKeyError when the key is rejected or the known hosts file
    cannot be read or updated. Under 'accept-new' an unknown host is
    appended to the known hosts file.
    """
    if policy not in HOST_KEY_POLICIES:
        raise ValueError(f'Unknown host key policy {policy!r}, expected one of {HOST_KEY_POLICIES}')

    known_hosts = Path(known_hosts).expanduser() if known_hosts else DEFAULT_KNOWN_HOSTS
    host = known_hosts_name(address, port)
    fingerprint = server_key.fingerprint

    if policy == 'warn':
        LOGGER.warning('Accepting host key %s for %s without verification', fingerprint, host)
        return

    host_keys = paramiko.HostKeys()
    if known_hosts.exists():
        try:
            host_keys.load(str(known_hosts))
        except OSError as err:
            raise HostKeyError(host, fingerprint, f'cannot read {known_hosts}: {err}') from err

    entry = host_keys.lookup(host)
    if entry is not None and server_key.get_name() in entry:
        if entry[server_key.get_name()] == server_key:
            LOGGER.debug('Host key %s for %s matches %s', fingerprint, host, known_hosts)
            return
        raise HostKeyError(host, fingerprint, f'key does not match the one recorded in {known_hosts}')

    if policy == 'strict':
        raise HostKeyError(host, fingerprint, f'host is not present in {known_hosts}')

    # accept-new
    host_keys.add(host, server_key.get_name(), server_key)
    try:
        known_hosts.parent.mkdir(parents=True, exist_ok=True)
        host_keys.save(str(known_hosts))
    except OSError as err:
        raise HostKeyError(host, fingerprint, f'cannot record the key in {known_hosts}: {err}') from err
    LOGGER.warning('Added new host key %s for %s to %s', fingerprint, host, known_hosts)


class Session:
    """Authenticated SSH connection handle.

    Owned by one caller; not thread-safe. Close it explicitly or use it as a
    context manager.
    """

    def __init__(self, transport: paramiko.Transport, address: str, port: int,
                 username: str, timeout: float | None = None):
        self.transport = transport
        self.address = address
        self.port = port
        self.username = username
        self.timeout = timeout

    def __repr__(self):
        state = 'authenticated' if self.authenticated else 'closed'
        return f'<Session {self.username}@{self.address}:{self.port} {state}>'

    @property
    def authenticated(self) -> bool:
        return bool(self.transport.is_active() and self.transport.is_authenticated())

    def ensure_authenticated(self) -> None:
        '''Raise SessionClosedError unless the session can carry channels'''
        if not self.authenticated:
            raise SessionClosedError(f'{self.username}@{self.address}:{self.port} is not authenticated')

    def close(self) -> None:
        self.transport.close()
        LOGGER.debug('Closed session to %s:%s', self.address, self.port)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


def establish(
    address,
    port: int,
    username: str,
    private_key_path,
    *,
    host_key_policy: str = 'strict',
    known_hosts=None,
    timeout: float | None = None,
) -> Session:
    """Open an authenticated SSH session to address:port.

    Stages: TCP connect, transport construction, handshake, host key check,
    public key authentication. The first failing stage raises its error kind;
    nothing is retried and no other auth method is tried.
    """
    if host_key_policy not in HOST_KEY_POLICIES:
        raise ValueError(f'Unknown host key policy {host_key_policy!r}, expected one of {HOST_KEY_POLICIES}')

    address = str(address)
    try:
        sock = socket.create_connection((address, port), timeout=timeout)
    except OSError as err:
        raise ConnectError(address, port, str(err)) from err

    try:
        transport = paramiko.Transport(sock)
    except (paramiko.SSHException, OSError) as err:
        sock.close()
        raise SessionInitError(str(err)) from err

    if timeout is not None:
        transport.banner_timeout = timeout
        transport.handshake_timeout = timeout
        transport.auth_timeout = timeout

    try:
        transport.start_client(timeout=timeout)
    except (paramiko.SSHException, OSError, EOFError) as err:
        transport.close()
        raise HandshakeError(str(err)) from err

    try:
        verify_host_key(transport.get_remote_server_key(), address, port,
                        policy=host_key_policy, known_hosts=known_hosts)
    except HostKeyError:
        transport.close()
        raise

    try:
        pkey = load_private_key(private_key_path)
        transport.auth_publickey(username, pkey)
    except (paramiko.SSHException, OSError, ValueError) as err:
        transport.close()
        raise AuthenticationError(username, private_key_path, str(err)) from err

    if not transport.is_authenticated():
        transport.close()
        raise AuthenticationError(username, private_key_path, 'server did not accept the key')

    LOGGER.debug('Connected to %s:%s as %s', address, port, username)
    return Session(transport, address, port, username, timeout=timeout)


class SSHConnection:
    """Connection settings for one remote account; connect() opens a Session."""

    def __init__(
        self,
        address: str | None = None,
        username: str | None = None,
        key_filename: str | Path | None = None,
        port: int = DEFAULT_PORT,
        host_key_policy: str = 'strict',
        known_hosts: str | Path | None = None,
        timeout: float | None = None,
    ):
        self.address = address
        self.username = username
        self.key_filename = key_filename
        self.port = port
        self.host_key_policy = host_key_policy
        self.known_hosts = known_hosts
        self.timeout = timeout

    @classmethod
    def from_profile(cls, profile) -> 'SSHConnection':
        '''Build from a remote_tools.config.HostProfile'''
        return cls(
            address=profile.address,
            username=profile.username,
            key_filename=profile.private_key,
            port=profile.port,
            host_key_policy=profile.host_key_policy,
            known_hosts=profile.known_hosts,
            timeout=profile.timeout,
        )

    def connect(self) -> Session:
        """Open and return a new authenticated Session."""
        if not self.address or not self.username or not self.key_filename:
            raise ValueError('SSHConnection requires address, username and key_filename')
        return establish(
            self.address,
            self.port,
            self.username,
            self.key_filename,
            host_key_policy=self.host_key_policy,
            known_hosts=self.known_hosts,
            timeout=self.timeout,
        )
