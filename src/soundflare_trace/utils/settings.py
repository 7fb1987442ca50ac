"""
Settings management for SoundFlare Trace
"""

import json
import os
from dataclasses import dataclass, asdict
from typing import Optional

CONFIG_DIR = os.path.expanduser("~/.config/soundflare-trace")
CONFIG_FILE = os.path.join(CONFIG_DIR, "settings.json")


@dataclass
class Settings:
    """Application settings"""

    # Spans requested per page from the collector
    page_size: int = 50

    # Upper bound on a single page fetch, in seconds
    fetch_timeout_seconds: float = 10.0

    # DuckDB file written by the collector (read-only here)
    duckdb_path: str = ""

    # Table holding the collector's spans
    spans_table: str = "soundflare_spans"

    # PostgREST-style base URL, e.g. https://xyz.supabase.co
    rest_base_url: str = ""

    # Local JSON API
    api_host: str = "127.0.0.1"
    api_port: int = 19877

    def save(self):
        """Save settings to config file"""
        os.makedirs(CONFIG_DIR, exist_ok=True)
        with open(CONFIG_FILE, "w") as f:
            json.dump(asdict(self), f, indent=2)

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from config file, or return defaults"""
        if not os.path.exists(CONFIG_FILE):
            return cls()

        try:
            with open(CONFIG_FILE, "r") as f:
                data = json.load(f)
            if not isinstance(data, dict):
                return cls()

            # Ignore keys from older versions
            valid_fields = {f.name for f in cls.__dataclass_fields__.values()}
            filtered_data = {k: v for k, v in data.items() if k in valid_fields}

            return cls(**filtered_data)
        except (OSError, ValueError, TypeError):
            return cls()


_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def save_settings():
    """Save the global settings"""
    if _settings is not None:
        _settings.save()
