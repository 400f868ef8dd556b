'''
All things logging
'''

import getpass
import logging.config
import os
import shutil
import sys
from pathlib import Path

import yaml

import remote_tools
from remote_tools.config import config_dir

_logging_configured = False  # Guard to prevent duplicate configuration

LOGGING_CONFIG_TEMPLATE_PATH = Path(__file__).parent / 'logging-config.yaml'


def logging_config_path() -> Path:
    return config_dir() / 'logging-config.yaml'


def initialize_logging_config() -> Path:
    '''Init config file if not found using the template and placing it in the config dir
    This file tells us where to place the logs and how chatty the console is
    '''
    path = logging_config_path()
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy(LOGGING_CONFIG_TEMPLATE_PATH, path)
    return path


def load_config() -> dict:
    '''Open the logging settings and build the dictConfig'''
    logging_config = yaml.safe_load(initialize_logging_config().read_text())

    log_dir = Path(os.getenv('REMOTE_TOOLS_LOG_DIR') or logging_config['directory']).expanduser().absolute()
    if logging_config.get('use_user_subdir'):
        log_dir /= getpass.getuser()
    log_dir.mkdir(parents=True, exist_ok=True)
    console_log_level = logging_config.get('console_log_level', 'WARNING')

    root_log_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            # https://docs.python.org/3/library/logging.html#logrecord-attributes
            "remote_tools_basicFormatter": {
                "format": "[%(asctime)s %(levelname)s %(name)s] - %(message)s",
                "datefmt": "%H:%M:%S",
            },
            "remote_tools_verboseFormatter": {
                "format":
                    "[%(asctime)s %(levelname)s %(process)d %(filename)s:%(funcName)s:%(lineno)d] - %(message)s",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
            },
            "remote_tools_jsonFormatter": {
                "class": "pythonjsonlogger.json.JsonFormatter",
                "datefmt": "%Y-%m-%dT%H:%M:%S%z",
                "format": "%(asctime)s.%(msecs)03d %(levelname)s %(name)s %(filename)s %(module)s %(process)d %(thread)d %(funcName)s %(lineno)d %(message)s"
            }
        },
        "handlers": {
            "remote_tools_consoleHandler": {
                "level": console_log_level,
                "class": "logging.StreamHandler",
                "formatter": "remote_tools_basicFormatter",
                "stream": sys.stderr,
            },
            "remote_tools_plaintextFileHandler": {
                "level": "DEBUG",
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "remote_tools_verboseFormatter",
                "filename": str(log_dir / 'log.txt'),
                "maxBytes": 2_000_000,
                "backupCount": 20,
            },
            "remote_tools_jsonFileHandler": {
                "level": "DEBUG",
                "class": "logging.handlers.RotatingFileHandler",
                "formatter": "remote_tools_jsonFormatter",
                "filename": str(log_dir / 'log.jsonl'),
                "maxBytes": 2_000_000,
                "backupCount": 20,
            },
        },
        "loggers": {
            # as a library there are no handlers, so users of the lib can configure logs as they wish
            # when used as a CLI we add our specific handlers
            "remote_tools": {
                "level": "DEBUG",
                "handlers": [],
            },
        },
    }

    return root_log_config


def config_logging_for_app():
    """(re)Configure the main logger for running as a CLI app

    We default to running in a "library" logging config, meaning no handlers are added to the logger, so clients can add
    their own, as recommended by https://docs.python.org/3/howto/logging.html#configuring-logging-for-a-library
    """
    global _logging_configured

    if _logging_configured:
        return

    log_config = load_config()
    log_config['loggers']['remote_tools']['handlers'] = list(log_config['handlers'].keys())
    logging.config.dictConfig(config=log_config)
    startup_info = {
        'cwd': str(Path.cwd()),
        'user': getpass.getuser(),
        'argv': sys.argv,
        'package_version': remote_tools.__version__,
    }
    logging.getLogger('remote_tools').debug('Startup: %s', startup_info)
    _logging_configured = True
