'''
Error kinds raised by remote_tools.

One class per failure site. Every error keeps its context as attributes
and the underlying transport message in ``message``.
'''


class RemoteError(Exception):
    '''Base class for every remote_tools failure'''

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConnectError(RemoteError):
    '''TCP connection to the remote host failed'''

    def __init__(self, address, port: int, message: str):
        self.address = str(address)
        self.port = port
        super().__init__(message)

    def __str__(self):
        return f'TCP connection to {self.address}:{self.port} failed: {self.message}'


class SessionInitError(RemoteError):
    def __str__(self):
        return f'Session initialization failed: {self.message}'


class HandshakeError(RemoteError):
    def __str__(self):
        return f'Session handshake failed: {self.message}'


class HostKeyError(HandshakeError):
    '''Server host key is unknown or does not match the known hosts file'''

    def __init__(self, host: str, fingerprint: str, message: str):
        self.host = host
        self.fingerprint = fingerprint
        super().__init__(message)

    def __str__(self):
        return f'Host key verification for {self.host} ({self.fingerprint}) failed: {self.message}'


class AuthenticationError(RemoteError):
    def __init__(self, username: str, private_key_path, message: str):
        self.username = username
        self.private_key_path = str(private_key_path)
        super().__init__(message)

    def __str__(self):
        return (f'Authentication of user {self.username} with private key file '
                f'{self.private_key_path} failed: {self.message}')


class SessionClosedError(RemoteError):
    '''Session is not authenticated anymore (closed or dropped)'''

    def __str__(self):
        return f'Session is not usable: {self.message}'


class RemoteFileCreateError(RemoteError):
    def __init__(self, remote_path, size: int, message: str):
        self.remote_path = str(remote_path)
        self.size = size
        super().__init__(message)

    def __str__(self):
        return f'Create remote file {self.remote_path} ({self.size} bytes) failed: {self.message}'


class RemoteFileWriteError(RemoteError):
    def __init__(self, remote_path, message: str):
        self.remote_path = str(remote_path)
        super().__init__(message)

    def __str__(self):
        return f'Write remote file {self.remote_path} failed: {self.message}'


class RemoteFileReadError(RemoteError):
    def __init__(self, remote_path, message: str):
        self.remote_path = str(remote_path)
        super().__init__(message)

    def __str__(self):
        return f'Read remote file {self.remote_path} failed: {self.message}'


class RemoteFileDecodeError(RemoteFileReadError):
    '''Remote file content is not valid UTF-8'''

    def __str__(self):
        return f'Remote file {self.remote_path} is not valid UTF-8: {self.message}'


class CommandExecutionError(RemoteError):
    def __init__(self, command: str, message: str):
        self.command = command
        super().__init__(message)

    def __str__(self):
        return f'Execute commands {self.command!r} failed: {self.message}'
