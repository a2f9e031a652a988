import os
import posixpath
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_CONFIG: dict = {
    "file": "package.json",
    "increment_type": "pre-release",
    "relevant_files": [],  # globs; "!pattern" removes earlier matches
    "version_extraction": None,  # None = json; or "regex:<pattern>" / "command:<shell command>"
    "package_name": None,
    "max_workers": 8,  # concurrent content fetches per run
}


def load_config(config_path: str = ".pubgate.yml", cli_overrides: Optional[dict] = None) -> dict:
    """
    Load configuration by merging (in order of precedence):
      1. Built-in defaults
      2. .pubgate.yml in the current directory
      3. CLI argument overrides
    """
    config = {**DEFAULT_CONFIG, "relevant_files": list(DEFAULT_CONFIG["relevant_files"])}

    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            file_config = yaml.safe_load(f) or {}
        config.update(file_config)

    if cli_overrides:
        for key, value in cli_overrides.items():
            if value is not None:
                config[key] = value

    # "./pkg/package.json" and "pkg//package.json" name the same file.
    if isinstance(config["file"], str):
        config["file"] = posixpath.normpath(config["file"])

    # Resolve credentials and API host from environment variables
    config["github_token"] = os.environ.get("GITHUB_TOKEN")
    config["github_api_url"] = os.environ.get("GITHUB_API_URL")

    return config
