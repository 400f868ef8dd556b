"""
Pytest configuration and shared fixtures.
"""
import io
import sys
from pathlib import Path
from unittest.mock import MagicMock

import paramiko
import pytest

# Add the project root to Python path so imports work
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from remote_tools.utilities.ssh_connection import Session  # noqa: E402


@pytest.fixture(scope="session")
def rsa_key():
    """Generate a 1024-bit RSA key once per session."""
    return paramiko.RSAKey.generate(1024)


@pytest.fixture
def private_key_file(tmp_path, rsa_key):
    """The session RSA key written to a private key file."""
    buf = io.StringIO()
    rsa_key.write_private_key(buf)
    path = tmp_path / "id_rsa"
    path.write_text(buf.getvalue())
    return path


@pytest.fixture
def mock_transport():
    """paramiko.Transport stand-in that reports an active, authenticated connection."""
    transport = MagicMock(spec=paramiko.Transport)
    transport.is_active.return_value = True
    transport.is_authenticated.return_value = True
    return transport


@pytest.fixture
def session(mock_transport):
    return Session(mock_transport, "192.0.2.10", 22, "deploy")


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep config and log files out of the real home directory."""
    monkeypatch.setenv("REMOTE_TOOLS_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("REMOTE_TOOLS_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("REMOTE_TOOLS_CONFIG", raising=False)


# Pytest markers for different test categories
def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests that need a reachable SSH server"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (should be fast)"
    )
    config.addinivalue_line(
        "markers", "cli: marks tests that test CLI functionality"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers automatically."""
    for item in items:
        if "test_cli" in item.nodeid:
            item.add_marker(pytest.mark.cli)

        if "test_integration" in item.nodeid:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
