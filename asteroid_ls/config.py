"""
asteroid_ls.config - Server configuration

Settings come from three places, later ones overriding earlier ones:

1. built-in defaults
2. a ``.asteroid-ls.json`` file, found by walking up from the workspace
   root (or given explicitly on the command line)
3. the client, through ``initializationOptions`` on initialize and
   ``settings.asteroid`` on workspace/didChangeConfiguration

A settings file looks like:

    {
        "commentLead": "--",
        "logFile": "/tmp/asteroid-ls.log",
        "diagnostics": true
    }

Unknown keys are ignored so clients can share one settings section with
other tools.
"""

import json
import os
from dataclasses import dataclass, replace
from typing import Any, Optional

from asteroid_ls.analysis.language import COMMENT_LEADS, DEFAULT_COMMENT_LEAD

CONFIG_FILENAME = ".asteroid-ls.json"

# Client settings section read on workspace/didChangeConfiguration
SETTINGS_SECTION = "asteroid"


def find_config_file(start_path: Optional[str] = None) -> Optional[str]:
    """
    Look for CONFIG_FILENAME in ``start_path`` and its parents.

    Args:
        start_path: File or directory to start from (default: cwd).

    Returns:
        Absolute path of the config file, or None if there is none.
    """
    if start_path is None:
        current = os.getcwd()
    elif os.path.isfile(start_path):
        current = os.path.dirname(os.path.abspath(start_path))
    else:
        current = os.path.abspath(start_path)

    while True:
        candidate = os.path.join(current, CONFIG_FILENAME)
        if os.path.isfile(candidate):
            return candidate

        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


@dataclass(frozen=True)
class ServerConfig:
    """
    Settings for analysis and logging.

    Fields:
        comment_lead: Line comment lead, "--" or "%"
        log_file: Optional path that receives a copy of the server log
        diagnostics: Publish diagnostics (False publishes empty lists)
    """

    comment_lead: str = DEFAULT_COMMENT_LEAD
    log_file: Optional[str] = None
    diagnostics: bool = True

    def updated(self, options: Optional[dict[str, Any]]) -> "ServerConfig":
        """
        Return a copy with the camelCase keys in ``options`` applied.

        Raises:
            ValueError: If a known key has the wrong type or value.
        """
        if not options:
            return self
        if not isinstance(options, dict):
            raise ValueError(
                f"settings must be an object, got {type(options).__name__}"
            )

        changes: dict[str, Any] = {}

        if "commentLead" in options:
            lead = options["commentLead"]
            if lead not in COMMENT_LEADS:
                raise ValueError(
                    f"commentLead must be one of {', '.join(COMMENT_LEADS)}, "
                    f"got {lead!r}"
                )
            changes["comment_lead"] = lead

        if "logFile" in options:
            log_file = options["logFile"]
            if log_file is not None and not isinstance(log_file, str):
                raise ValueError(
                    f"logFile must be a string, got {type(log_file).__name__}"
                )
            changes["log_file"] = log_file or None

        if "diagnostics" in options:
            enabled = options["diagnostics"]
            if not isinstance(enabled, bool):
                raise ValueError(
                    f"diagnostics must be a boolean, got {type(enabled).__name__}"
                )
            changes["diagnostics"] = enabled

        return replace(self, **changes)

    @classmethod
    def load(cls, path: str) -> "ServerConfig":
        """
        Load settings from a JSON file on top of the defaults.

        Raises:
            FileNotFoundError: If ``path`` does not exist.
            ValueError: If the file is not valid JSON or has bad values.
        """
        with open(path, encoding="utf-8") as f:
            content = f.read()

        try:
            options = json.loads(content)
        except json.JSONDecodeError as e:
            raise ValueError(f"Failed to parse {path}: {e}") from e

        if not isinstance(options, dict):
            raise ValueError(f"{path} must contain a JSON object")

        try:
            return cls().updated(options)
        except ValueError as e:
            raise ValueError(f"{path}: {e}") from e

    @classmethod
    def discover(cls, start_path: Optional[str] = None) -> "ServerConfig":
        """Load the nearest settings file, or the defaults if there is none."""
        path = find_config_file(start_path)
        if path is None:
            return cls()
        return cls.load(path)
