"""
Configuration Management System
===============================

Provides dataclass-based configuration with YAML file loading support.
Also owns path resolution: symbolic keys such as ``inbox`` or
``projects/CTFs`` are turned into absolute directories here.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Any, Dict, Mapping
import os
import yaml
import logging

from workspace_organizer.utils.exceptions import ConfigurationError
from workspace_organizer.utils.logging_config import LoggingConfig

logger = logging.getLogger(__name__)

APP_DIR_NAME = "workspace_organizer"
ENV_PREFIX = "WSO_PATHS_"

# Well-known keys and their folder names relative to the workspace
DEFAULT_FOLDERS = {
    "inbox": "0_Inbox",
    "projects": "1_Projects",
    "areas": "2_Areas",
    "resources": "3_Resources",
    "archives": "4_Archives",
}


def _expand(value: Any) -> Optional[Path]:
    if value is None or str(value).strip() == "":
        return None
    return Path(str(value)).expanduser()


@dataclass
class PathsConfig:
    """Workspace path configuration.

    Attributes:
        workspace: Root of the organized workspace.
        inbox: Staging directory; defaults to ``<workspace>/0_Inbox``.
        projects: Defaults to ``<workspace>/1_Projects``.
        areas: Defaults to ``<workspace>/2_Areas``.
        resources: Defaults to ``<workspace>/3_Resources``.
        archives: Defaults to ``<workspace>/4_Archives``.
        custom: Additional named directories usable as rule targets.
    """
    workspace: Optional[Path] = field(default_factory=lambda: Path.home() / "Workspace")
    inbox: Optional[Path] = None
    projects: Optional[Path] = None
    areas: Optional[Path] = None
    resources: Optional[Path] = None
    archives: Optional[Path] = None
    custom: Dict[str, Path] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PathsConfig":
        """Create PathsConfig from dictionary.

        Keys other than the well-known ones are kept as custom paths.
        """
        if not data:
            return cls()

        data = dict(data)
        if "workspace" in data:
            workspace = _expand(data.pop("workspace"))
        else:
            workspace = cls().workspace

        known = {key: _expand(data.pop(key, None)) for key in DEFAULT_FOLDERS}
        custom = {}
        for key, value in data.items():
            path = _expand(value)
            if path is not None:
                custom[str(key)] = path

        return cls(workspace=workspace, custom=custom, **known)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-friendly dictionary."""
        data: Dict[str, Any] = {
            "workspace": str(self.workspace) if self.workspace else None
        }
        for key in DEFAULT_FOLDERS:
            value = getattr(self, key)
            if value is not None:
                data[key] = str(value)
        for key, value in self.custom.items():
            data[key] = str(value)
        return data

    def resolve_path(self, key: str) -> Path:
        """Resolve a symbolic key to an absolute path.

        Args:
            key: ``workspace``, a well-known folder key, a custom key, a
                nested key such as ``projects/CTFs``, or a literal path.

        Returns:
            The resolved directory.

        Raises:
            ConfigurationError: If the workspace is not configured.
        """
        key = key.strip()

        if key == "workspace":
            if self.workspace is None:
                raise ConfigurationError(
                    "Workspace path is not configured",
                    config_key="paths.workspace",
                )
            return self.workspace

        if key in DEFAULT_FOLDERS:
            configured = getattr(self, key)
            if configured is not None:
                return configured
            return self.resolve_path("workspace") / DEFAULT_FOLDERS[key]

        if key in self.custom:
            return self.custom[key]

        if key.startswith("~") or Path(key).is_absolute():
            return Path(key).expanduser()

        if "/" in key:
            head, rest = key.split("/", 1)
            if head:
                return self.resolve_path(head) / rest

        # Unknown keys land under the projects root
        return self.resolve_path("projects") / key


@dataclass(frozen=True)
class CleanRule:
    """A single inbox classification rule.

    Attributes:
        pattern: Regular expression searched in the entry's filename.
        target: Path key (see ``PathsConfig.resolve_path``) to move matches to.
    """
    pattern: str
    target: str

    @classmethod
    def from_dict(cls, data: Any, index: int = 0) -> "CleanRule":
        """Create a CleanRule from a mapping with ``pattern`` and ``target``."""
        if not isinstance(data, Mapping):
            raise ConfigurationError(
                f"Rule #{index + 1} must be a mapping with 'pattern' and 'target'",
                config_key=f"rules.clean[{index}]",
                expected_type="mapping",
            )
        missing = [key for key in ("pattern", "target") if data.get(key) in (None, "")]
        if missing:
            raise ConfigurationError(
                f"Rule #{index + 1} is missing {', '.join(missing)}",
                config_key=f"rules.clean[{index}]",
            )
        return cls(pattern=str(data["pattern"]), target=str(data["target"]))

    def to_dict(self) -> Dict[str, str]:
        """Convert to dictionary."""
        return {"pattern": self.pattern, "target": self.target}


def default_rules() -> List[CleanRule]:
    """Starter rules written by ``config init``."""
    return [
        CleanRule(pattern=r"\.(pdf|epub|djvu)$", target="resources"),
        CleanRule(pattern=r"\.(png|jpe?g|gif|webp)$", target="resources/Images"),
        CleanRule(pattern=r"\.(zip|tar|gz|7z|rar)$", target="archives"),
        CleanRule(pattern=r"(?i)ctf", target="projects/CTFs"),
    ]


@dataclass
class WatcherConfig:
    """Inbox watcher configuration.

    Attributes:
        debounce_seconds: Window in which bursts of events collapse into one trigger.
        stability_interval: Sleep between two size snapshots of the inbox.
        max_stability_rounds: Snapshot rounds before a trigger is abandoned.
        queue_size: Bound of the event queue between observer and main loop.
    """
    debounce_seconds: float = 2.0
    stability_interval: float = 2.0
    max_stability_rounds: int = 5
    queue_size: int = 256

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WatcherConfig":
        """Create WatcherConfig from dictionary."""
        if not data:
            return cls()
        defaults = cls()
        config = cls(
            debounce_seconds=float(data.get("debounce_seconds", defaults.debounce_seconds)),
            stability_interval=float(data.get("stability_interval", defaults.stability_interval)),
            max_stability_rounds=int(data.get("max_stability_rounds", defaults.max_stability_rounds)),
            queue_size=int(data.get("queue_size", defaults.queue_size)),
        )
        if config.max_stability_rounds < 1:
            raise ConfigurationError(
                "watcher.max_stability_rounds must be at least 1",
                config_key="watcher.max_stability_rounds",
            )
        if config.queue_size < 1:
            raise ConfigurationError(
                "watcher.queue_size must be at least 1",
                config_key="watcher.queue_size",
            )
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a YAML-friendly dictionary."""
        return {
            "debounce_seconds": self.debounce_seconds,
            "stability_interval": self.stability_interval,
            "max_stability_rounds": self.max_stability_rounds,
            "queue_size": self.queue_size,
        }


@dataclass
class Config:
    """Main configuration container.

    Aggregates all configuration sections and provides loading from YAML.
    """
    paths: PathsConfig = field(default_factory=PathsConfig)
    rules: List[CleanRule] = field(default_factory=list)
    watcher: WatcherConfig = field(default_factory=WatcherConfig)
    logging_config: LoggingConfig = field(default_factory=LoggingConfig)
    source: Optional[Path] = None

    @staticmethod
    def find_config(config_path: Optional[Path] = None) -> Optional[Path]:
        """Locate the configuration file.

        Search order: explicit path, ``$XDG_CONFIG_HOME/workspace_organizer/config.yaml``
        (``~/.config`` when unset), then ``./config.yaml``.

        Returns:
            The first existing candidate, or None.

        Raises:
            ConfigurationError: If an explicit path was given but does not exist.
        """
        if config_path is not None:
            config_path = Path(config_path).expanduser()
            if not config_path.exists():
                raise ConfigurationError(
                    f"Config file not found: {config_path}",
                    config_key="--config",
                )
            return config_path

        for candidate in Config.search_paths():
            if candidate.exists():
                return candidate
        return None

    @staticmethod
    def search_paths() -> List[Path]:
        """Candidate locations for the configuration file."""
        xdg = os.environ.get("XDG_CONFIG_HOME")
        config_dir = Path(xdg).expanduser() if xdg else Path.home() / ".config"
        return [
            config_dir / APP_DIR_NAME / "config.yaml",
            Path("config.yaml"),
        ]

    @classmethod
    def load(
        cls,
        config_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "Config":
        """Load configuration from YAML file.

        Args:
            config_path: Path to the configuration file. If None, the
                        standard locations are searched.
            environ: Environment used for ``WSO_PATHS_*`` overrides
                     (defaults to ``os.environ``).

        Returns:
            Config instance with loaded settings.

        Raises:
            ConfigurationError: If the file is missing (when explicitly
                given) or is not valid YAML.
        """
        environ = os.environ if environ is None else environ
        found = cls.find_config(config_path)

        if found is None:
            logger.warning("Config file not found, using defaults")
            data: Dict[str, Any] = {}
        else:
            try:
                with open(found, 'r', encoding='utf-8') as f:
                    data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(
                    f"Failed to parse config file {found}",
                    cause=e,
                )
            except OSError as e:
                raise ConfigurationError(
                    f"Failed to read config file {found}",
                    cause=e,
                )
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"Config file {found} must contain a mapping",
                    expected_type="mapping",
                )
            logger.info(f"Loaded configuration from {found}")

        data = cls._apply_env_overrides(data, environ)
        config = cls._from_dict(data)
        config.source = found
        return config

    @staticmethod
    def _apply_env_overrides(
        data: Dict[str, Any],
        environ: Mapping[str, str]
    ) -> Dict[str, Any]:
        """Apply ``WSO_PATHS_<KEY>`` variables on top of the ``paths`` section."""
        overrides = {
            name[len(ENV_PREFIX):].lower(): value
            for name, value in environ.items()
            if name.startswith(ENV_PREFIX) and len(name) > len(ENV_PREFIX)
        }
        if not overrides:
            return data

        data = dict(data)
        paths = dict(data.get("paths") or {})
        paths.update(overrides)
        data["paths"] = paths
        logger.debug(f"Applied path overrides from environment: {sorted(overrides)}")
        return data

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "Config":
        """Create Config from dictionary."""
        rules_section = data.get("rules") or {}
        if isinstance(rules_section, list):
            raw_rules = rules_section
        elif isinstance(rules_section, dict):
            raw_rules = rules_section.get("clean") or []
        else:
            raise ConfigurationError(
                "'rules' must be a mapping with a 'clean' list",
                config_key="rules",
                expected_type="mapping",
            )

        return cls(
            paths=PathsConfig.from_dict(data.get("paths") or {}),
            rules=[CleanRule.from_dict(rule, i) for i, rule in enumerate(raw_rules)],
            watcher=WatcherConfig.from_dict(data.get("watcher") or {}),
            logging_config=LoggingConfig.from_dict(data.get("logging") or {}),
        )

    def resolve_path(self, key: str) -> Path:
        """Resolve a path key; see ``PathsConfig.resolve_path``."""
        return self.paths.resolve_path(key)

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to a YAML-friendly dictionary."""
        return {
            "paths": self.paths.to_dict(),
            "rules": {"clean": [rule.to_dict() for rule in self.rules]},
            "watcher": self.watcher.to_dict(),
            "logging": self.logging_config.to_dict(),
        }

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file.

        Args:
            config_path: Path where to save the configuration.
        """
        config_path = Path(config_path)
        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

        logger.info(f"Saved configuration to {config_path}")
