'''
YAML configuration of host profiles.

The user config lives in ~/.config/remote-tools/config.yaml (or the directory
in REMOTE_TOOLS_CONFIG_DIR). It is seeded from the shipped template the first
time it is needed.
'''
import logging
import os
import shutil
from pathlib import Path
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from remote_tools.utilities.ssh_connection import DEFAULT_KNOWN_HOSTS, DEFAULT_PORT

LOGGER = logging.getLogger(__name__)

CONFIG_FILENAME = 'config.yaml'
CONFIG_TEMPLATE_PATH = Path(__file__).parent / 'config-template.yaml'


def config_dir() -> Path:
    override = os.getenv('REMOTE_TOOLS_CONFIG_DIR')
    if override:
        return Path(override).expanduser()
    return Path.home() / '.config' / 'remote-tools'


def default_config_path() -> Path:
    return config_dir() / CONFIG_FILENAME


class HostProfile(BaseModel):
    '''Connection settings for one remote account'''
    address: str
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    username: str
    private_key: Path
    host_key_policy: Literal['strict', 'accept-new', 'warn'] = 'strict'
    known_hosts: Path = DEFAULT_KNOWN_HOSTS
    timeout: Optional[float] = Field(default=None, gt=0)

    @field_validator('private_key', 'known_hosts')
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()


class RemoteToolsConfig(BaseModel):
    profiles: dict[str, HostProfile] = Field(default_factory=dict)

    def get_profile(self, name: str) -> HostProfile:
        try:
            return self.profiles[name]
        except KeyError:
            known = ', '.join(sorted(self.profiles)) or 'none'
            raise KeyError(f'No profile named {name!r} (configured: {known})') from None


def initialize_user_config() -> Path:
    '''Copy the template to the user config dir if no config file exists yet'''
    path = default_config_path()
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(CONFIG_TEMPLATE_PATH, path)
        LOGGER.debug('Initialized config file at %s', path)
    return path


def configuration_file(explicit: Path | str | None = None) -> Path:
    """
    Returns:
        the first path that exists, in order
        1. the explicitly passed path
        2. the REMOTE_TOOLS_CONFIG environment variable
        3. the user config file
        4. the shipped template

    Raises:
        FileNotFoundError: an explicit path was given but does not exist, or no configuration found
    """
    if explicit is not None:
        explicit = Path(explicit).expanduser()
        if not explicit.exists():
            raise FileNotFoundError(f'Config file not found: {explicit}')
        return explicit

    env_path = os.getenv('REMOTE_TOOLS_CONFIG')
    paths_to_check = [
        Path(env_path).expanduser() if env_path else None,
        default_config_path(),
        CONFIG_TEMPLATE_PATH,
    ]
    LOGGER.debug('Paths to check: %s', paths_to_check)
    for path in paths_to_check:
        if path and path.exists():
            LOGGER.debug('Using config file: %s', path)
            return path
    raise FileNotFoundError('No configuration found')


def load_config(path: Path | str | None = None) -> RemoteToolsConfig:
    '''Read and validate the configuration file'''
    config_path = configuration_file(path)
    raw = yaml.safe_load(config_path.read_text()) or {}
    try:
        return RemoteToolsConfig.model_validate(raw)
    except Exception:
        LOGGER.exception('loading configuration file: %s', config_path)
        raise
