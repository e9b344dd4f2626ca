"""
Configuration for the MyMobile API client.

Settings live in a JSON file. Its location is taken from the argument, the
MYMOBILE_API_CONFIG environment variable, or the XDG config directory, in
that order.
"""

import json
import os
from typing import Optional

from .logging_config import LOG_LEVELS

DEFAULT_ENDPOINT = "https://rest.mymobileapi.com/v1/"
DEFAULT_TIMEOUT = 30


def get_default_config_dir() -> str:
    """Get the default configuration directory following XDG standards"""
    xdg_config_home = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config_home:
        return os.path.join(xdg_config_home, "mymobile")

    home = os.environ.get("HOME")
    if home:
        return os.path.join(home, ".config", "mymobile")

    # Last resort: current directory
    return os.path.join(os.getcwd(), ".config", "mymobile")


class MyMobileConfig:
    """Configuration for the MyMobile API client"""

    def __init__(self, config_path: Optional[str] = None):
        if config_path is None:
            config_path = os.environ.get("MYMOBILE_API_CONFIG")
            if config_path is None:
                config_path = os.path.join(get_default_config_dir(), "config.json")

        self.config_path = config_path
        self.client_id: str = ""
        self.client_secret: str = ""
        self.endpoint: str = DEFAULT_ENDPOINT
        self.debug: bool = False
        self.timeout: float = DEFAULT_TIMEOUT

        # Defaults for CLI sends
        self.sender_id: Optional[str] = None
        self.to_number: Optional[str] = None

        self.log_level: Optional[str] = None
        self.log_file: Optional[str] = None

        self._load_config()

    def _load_config(self):
        """Load configuration from file"""
        if not os.path.exists(self.config_path):
            raise FileNotFoundError(f"Config file not found: {self.config_path}")

        with open(self.config_path, 'r') as f:
            config_data = json.load(f)

        required_fields = ['client_id', 'client_secret']
        for field in required_fields:
            if not config_data.get(field):
                raise ValueError(f"Missing required config field: {field}")
            setattr(self, field, config_data[field])

        self.endpoint = config_data.get('endpoint', DEFAULT_ENDPOINT)
        if not isinstance(self.endpoint, str) or not self.endpoint:
            raise ValueError(f"Invalid endpoint in config: {self.endpoint!r}")
        if not self.endpoint.endswith('/'):
            self.endpoint += '/'
        self.debug = bool(config_data.get('debug', False))
        self.timeout = config_data.get('timeout', DEFAULT_TIMEOUT)

        self.sender_id = config_data.get('sender_id')
        self.to_number = config_data.get('to_number')

        self.log_level = config_data.get('log_level')
        if self.log_level is not None and str(self.log_level).upper() not in LOG_LEVELS:
            raise ValueError(f"Invalid log_level in config: {self.log_level!r}")
        self.log_file = config_data.get('log_file')
