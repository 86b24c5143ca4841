"""File-based storage implementation."""

import json
import logging
import os

from core.interfaces import Storage

logger = logging.getLogger(__name__)

CONFIG_FILE = os.path.expanduser('~/.config/lingoghost/config.json')


def read_config_file(config_file: str) -> dict:
    if not os.path.exists(config_file):
        raise FileNotFoundError(
            f"Config file not found at {config_file}\n"
            f'Please create it with: {{"gemini_api_key": "YOUR_API_KEY_HERE"}}'
        )
    with open(config_file, 'r') as f:
        return json.load(f)


class FileStorage(Storage):
    """Flat key-value store kept in a single JSON file."""

    def __init__(self, config_file: str = None, state_file: str = None):
        self.config_file = config_file or CONFIG_FILE
        # Project root is one level up from server/
        project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        self.state_file = state_file or os.path.join(project_root, 'lingoghost_state.json')

    def load_config(self) -> dict:
        return read_config_file(self.config_file)

    def _load_all(self) -> dict:
        if os.path.exists(self.state_file):
            try:
                with open(self.state_file, 'r') as f:
                    return json.load(f)
            except ValueError as e:
                logger.error(f"Corrupt state file {self.state_file}: {e}")
                return {}
        return {}

    def _save_all(self, state: dict) -> None:
        # Write-then-rename so a crash mid-write leaves the previous state intact
        tmp_file = f"{self.state_file}.tmp"
        with open(tmp_file, 'w') as f:
            json.dump(state, f, indent=2, ensure_ascii=False)
        os.replace(tmp_file, self.state_file)

    def get(self, key: str, default=None):
        return self._load_all().get(key, default)

    def set(self, key: str, value) -> None:
        state = self._load_all()
        state[key] = value
        self._save_all(state)
