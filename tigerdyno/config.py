"""Configuration management for tigerdyno.

Loads YAML settings (settings.yaml) and environment variables (.env)
into a typed Config object. Property getters provide safe access with
sensible defaults for every subsystem: Discord transport, command
prefix, designate admins, database, paste service, modules and logging.

Key classes:
    Config: Central configuration manager.

Key functions:
    get_config: Singleton accessor for the global Config instance.
"""

import os
import re
from pathlib import Path
from typing import List, Optional

import structlog
import yaml
from dotenv import load_dotenv

logger = structlog.get_logger("tigerdyno.bot")

_SNOWFLAKE_PATTERN = re.compile(r"^\d{1,20}$")


class Config:
    """Central configuration manager for tigerdyno.

    Loads settings.yaml and .env from the config directory. Provides
    typed property accessors for every configurable subsystem.
    Read-only after __init__.

    Args:
        config_dir: Path to the config directory. Defaults to
            ``<repo_root>/config/``.
    """

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = Path(__file__).parent.parent / "config"
        self.config_dir = config_dir

        env_file = config_dir / ".env"
        if env_file.exists():
            load_dotenv(env_file)

        self.settings = self._load_yaml("settings.yaml")

    def _load_yaml(self, filename: str) -> dict:
        """Load a YAML configuration file."""
        filepath = self.config_dir / filename
        if filepath.exists():
            with open(filepath, "r") as f:
                return yaml.safe_load(f) or {}
        return {}

    def validate(self):
        """Validate critical settings at startup.

        Logs warnings/errors but does not raise -- the bot starts in
        degraded mode and the transport refuses to connect without a
        token.
        """
        if not self.discord_token:
            logger.error("no_discord_token", hint="Set DISCORD_API_TOKEN in config/.env")
        if not self.global_prefix.strip():
            logger.error("config_invalid_value", key="global_prefix", value=self.global_prefix)
        for admin in self.admins:
            if not _SNOWFLAKE_PATTERN.match(admin):
                logger.error("invalid_admin_entry", entry=admin)
        if not self.paste_api_token:
            logger.warning("no_paste_api_token", msg="The commands manual cannot be published")
        modules = self.settings.get("modules")
        if modules is not None and not isinstance(modules, list):
            logger.error("config_invalid_value", key="modules", value=modules)

    # Transport
    @property
    def discord_token(self) -> str:
        """Discord bot token. Only read from the environment."""
        return os.environ.get("DISCORD_API_TOKEN", "")

    @property
    def presence(self) -> str:
        """Activity text shown under the bot's name."""
        return self.settings.get("presence", "@ for server prefix")

    # Commands
    @property
    def global_prefix(self) -> str:
        """Command prefix used where a server has not set its own.

        Env var GLOBAL_PREFIX takes precedence.
        """
        return os.environ.get("GLOBAL_PREFIX") or str(self.settings.get("global_prefix", "%"))

    @property
    def admins(self) -> List[str]:
        """User ids that always hold the highest designate status."""
        admins = self.settings.get("admins", [])
        if not isinstance(admins, list):
            logger.error("admins_invalid_type", type=type(admins).__name__)
            return []
        return [str(a) for a in admins]

    @property
    def maintainer_tag(self) -> str:
        """Who users are told to contact when the bot itself is broken."""
        return self.settings.get("maintainer_tag", "the bot maintainer")

    # Database
    @property
    def database_path(self) -> Path:
        """SQLite database file path."""
        configured = self.settings.get("database_path")
        if configured:
            return Path(configured).expanduser()
        return Path(self.config_dir).parent / "data" / "tigerdyno.db"

    # Paste service
    @property
    def paste_api_token(self) -> str:
        """paste.ee application token. Only read from the environment."""
        return os.environ.get("PASTE_API_TOKEN", "")

    @property
    def paste_api_url(self) -> str:
        """paste.ee API endpoint for creating pastes."""
        paste_config = self.settings.get("paste", {})
        return paste_config.get("api_url", "https://api.paste.ee/v1/pastes")

    @property
    def paste_timeout(self) -> float:
        """Total timeout in seconds for one paste upload."""
        paste_config = self.settings.get("paste", {})
        return float(paste_config.get("timeout", 15))

    # Modules
    @property
    def modules(self) -> List[str]:
        """Feature modules to load, in priority order."""
        modules = self.settings.get("modules", ["trickjump"])
        if not isinstance(modules, list):
            return []
        return [str(m) for m in modules]

    def module_settings(self, name: str) -> dict:
        """The ``module_settings.<name>`` section of settings.yaml."""
        section = self.settings.get("module_settings", {}) or {}
        value = section.get(name, {})
        return value if isinstance(value, dict) else {}

    # Logging
    @property
    def log_dir(self) -> Path:
        """Get log directory path."""
        configured = self.settings.get("log_dir")
        if configured:
            return Path(configured).expanduser()
        return Path(__file__).parent.parent / "logs"

    @property
    def logging_level(self) -> str:
        """Global log level (default INFO). Controls console and combined file."""
        log_config = self.settings.get("logging", {})
        return log_config.get("level", "INFO")

    @property
    def logging_subsystem_levels(self) -> dict:
        """Per-subsystem log level overrides. E.g. {"commands": "DEBUG"}."""
        log_config = self.settings.get("logging", {})
        return log_config.get("subsystem_levels", {})

    @property
    def logging_max_file_size_mb(self) -> int:
        """Max size per log file in MB before rotation (default 10)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("max_file_size_mb", 10)

    @property
    def logging_backup_count(self) -> int:
        """Number of rotated log files to keep (default 5)."""
        log_config = self.settings.get("logging", {})
        return log_config.get("backup_count", 5)


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get or create the global config instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config
