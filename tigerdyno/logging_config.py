"""Logging configuration for tigerdyno.

Every module logs through structlog under a ``tigerdyno.<subsystem>``
name. Those names are ordinary stdlib loggers, so events propagate:

    tigerdyno.commands  ->  logs/commands.log
    tigerdyno           ->  logs/tigerdyno.log (all subsystems)
    root                ->  console

Setup runs twice. ``main`` calls it once with no config so start-up
messages are visible, then again once settings are loaded, which applies
the configured levels and turns on structlog's logger cache.

Tokens for Discord and paste.ee are scrubbed from every event before
it is rendered.
"""

import logging
import logging.handlers
import re
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import structlog

SUBSYSTEMS = ("bot", "commands", "database", "security", "integrations", "modules")

LOGGER_PREFIX = "tigerdyno"

_SECRET_PATTERNS = [
    # Discord bot token: three dot-separated base64url segments
    re.compile(r"[MNO][A-Za-z\d_-]{23,27}\.[A-Za-z\d_-]{6}\.[A-Za-z\d_-]{27,40}"),
    re.compile(r"Bearer\s+[a-zA-Z0-9_./-]{20,}"),
    # paste.ee authenticates with an X-Auth-Token header
    re.compile(r"(?i)x-auth-token['\"]?\s*[:=]\s*['\"]?[a-zA-Z0-9_-]{16,}"),
]

_REDACTED = "***REDACTED***"


def _scrub(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    for pattern in _SECRET_PATTERNS:
        value = pattern.sub(_REDACTED, value)
    return value


def sanitize_secrets(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """structlog processor replacing tokens with a placeholder.

    Strings are scrubbed at the top level and one level down inside
    lists, tuples and dicts. Other values pass through untouched.
    """
    for key, value in event_dict.items():
        if isinstance(value, (list, tuple)):
            event_dict[key] = type(value)(_scrub(v) for v in value)
        elif isinstance(value, dict):
            event_dict[key] = {k: _scrub(v) for k, v in value.items()}
        else:
            event_dict[key] = _scrub(value)
    return event_dict


@dataclass
class _LogSettings:
    log_dir: Path
    level: int
    subsystem_levels: Dict[str, str] = field(default_factory=dict)
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5
    cache_loggers: bool = False

    @classmethod
    def from_config(cls, config) -> "_LogSettings":
        if config is None:
            return cls(log_dir=Path(__file__).parent.parent / "logs", level=logging.INFO)
        return cls(
            log_dir=config.log_dir,
            level=getattr(logging, config.logging_level.upper(), logging.INFO),
            subsystem_levels=config.logging_subsystem_levels,
            max_bytes=config.logging_max_file_size_mb * 1024 * 1024,
            backup_count=config.logging_backup_count,
            cache_loggers=True,
        )

    def level_for(self, subsystem: str) -> int:
        name = self.subsystem_levels.get(subsystem, "").upper()
        return getattr(logging, name, self.level) if name else self.level


def _file_handler(
    path: Path, level: int, settings: _LogSettings, formatter: logging.Formatter
) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=settings.max_bytes,
        backupCount=settings.backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(formatter)
    return handler


def _reset_logger(name: Optional[str], level: int) -> logging.Logger:
    target = logging.getLogger(name)
    target.setLevel(level)
    target.handlers.clear()
    target.propagate = True
    return target


def setup_logging(config=None) -> None:
    """Route structlog events to the console and per-subsystem files.

    Safe to call again; handlers from an earlier call are replaced. If
    the log directory cannot be created the bot keeps running with
    console output only.

    Args:
        config: Loaded Config, or None for start-up defaults.
    """
    settings = _LogSettings.from_config(config)

    try:
        settings.log_dir.mkdir(parents=True, exist_ok=True)
        write_files = True
    except OSError as exc:
        print(
            f"WARNING: Cannot create log directory {settings.log_dir}: {exc}. "
            "Logging to the console only.",
            file=sys.stderr,
        )
        write_files = False

    file_formatter = structlog.stdlib.ProcessorFormatter(
        processors=[
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(colors=False),
        ],
    )

    # Loggers pass everything; each handler applies its own level
    root = _reset_logger(None, logging.DEBUG)
    console = logging.StreamHandler(sys.stdout)
    console.setLevel(settings.level)
    console.setFormatter(logging.Formatter("%(asctime)s [%(levelname)s] %(message)s"))
    root.addHandler(console)

    combined = _reset_logger(LOGGER_PREFIX, logging.DEBUG)
    if write_files:
        combined.addHandler(
            _file_handler(
                settings.log_dir / f"{LOGGER_PREFIX}.log", settings.level, settings, file_formatter
            )
        )

    for subsystem in SUBSYSTEMS:
        level = settings.level_for(subsystem)
        subsystem_logger = _reset_logger(f"{LOGGER_PREFIX}.{subsystem}", level)
        if write_files:
            subsystem_logger.addHandler(
                _file_handler(settings.log_dir / f"{subsystem}.log", level, settings, file_formatter)
            )

    # discord.py is chatty at INFO; keep its gateway noise out of the console
    logging.getLogger("discord").setLevel(max(settings.level, logging.WARNING))

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            sanitize_secrets,
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=settings.cache_loggers,
    )
