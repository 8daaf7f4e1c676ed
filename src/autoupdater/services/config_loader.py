"""Configuration loader for auto-update."""

import logging
import os
import shlex
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Sequence

import yaml

from autoupdater.errors import AutoUpdateError
from autoupdater.models import Settings

DEFAULT_CONFIG_FILES = ("/etc/auto-update/config", "./config/auto-update.conf")

DEFAULTS: Dict[str, Any] = {
    "SIGNAL_NUMBER": "",
    "SIGNAL_RECIPIENTS": "",
    "DRY_RUN": "false",
    "REBOOT_IF_REQUIRED": "true",
    "LOG_DIR": "/var/log/auto-update",
    "SIGNAL_LINUXUSER": "",
    "DIST_UPGRADE": "false",
    "LOCK_FILE": "/var/lock/auto-update.lock",
}

YAML_SUFFIXES = (".yml", ".yaml")


def merge_layers(*layers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Merges partial settings maps in order, the last write wins per key."""
    merged: Dict[str, Any] = {}
    for layer in layers:
        if not layer:
            continue
        for key, value in layer.items():
            if value is None:
                continue
            merged[key] = value
    return merged


def to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip() == "true"


def split_recipients(value: Any) -> tuple:
    if value is None:
        return ()
    if isinstance(value, (list, tuple)):
        items = [str(item) for item in value]
    else:
        items = str(value).split(",")
    return tuple(item.strip() for item in items if item.strip())


class ConfigLoader:
    """Builds Settings from defaults, config files and the environment."""

    SUPPORTED_KEYS = set(DEFAULTS)

    def __init__(
        self,
        search_path: Sequence[str] = DEFAULT_CONFIG_FILES,
        environ: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ):
        self.search_path = list(search_path)
        self.environ = os.environ if environ is None else environ
        self.logger = logger or logging.getLogger("autoupdater")

    def load(
        self,
        config_path: Optional[str] = None,
        overrides: Optional[Mapping[str, Any]] = None,
    ) -> Settings:
        file_layers = [self.load_file(path) for path in self._candidate_files(config_path)]
        values = merge_layers(DEFAULTS, *file_layers, self.load_environment(), overrides)
        return self.build_settings(values)

    def build_settings(self, values: Mapping[str, Any]) -> Settings:
        return Settings(
            signal_number=str(values.get("SIGNAL_NUMBER") or "").strip(),
            signal_recipients=split_recipients(values.get("SIGNAL_RECIPIENTS")),
            dry_run=to_bool(values.get("DRY_RUN", "false")),
            reboot_if_required=to_bool(values.get("REBOOT_IF_REQUIRED", "true")),
            log_dir=str(values.get("LOG_DIR") or DEFAULTS["LOG_DIR"]),
            signal_linux_user=str(values.get("SIGNAL_LINUXUSER") or "").strip(),
            dist_upgrade=to_bool(values.get("DIST_UPGRADE", "false")),
            lock_file=str(values.get("LOCK_FILE") or DEFAULTS["LOCK_FILE"]),
        )

    def load_environment(self) -> Dict[str, str]:
        return {key: self.environ[key] for key in self.SUPPORTED_KEYS if key in self.environ}

    def load_file(self, config_path: str) -> Dict[str, Any]:
        path = Path(config_path)
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise AutoUpdateError(f"Could not read config file '{config_path}': {exc}") from exc

        if path.suffix.lower() in YAML_SUFFIXES:
            parsed = self._parse_yaml(content, config_path)
        else:
            parsed = self._parse_shell(content, config_path)

        self.logger.debug("Loaded configuration from %s", config_path)
        return self._known_keys(parsed, config_path)

    def _candidate_files(self, config_path: Optional[str]) -> Iterable[str]:
        for candidate in self.search_path:
            if os.path.isfile(candidate):
                yield candidate
                break

        if config_path:
            if not os.path.isfile(config_path):
                raise AutoUpdateError(f"Config file not found: {config_path}")
            yield config_path

    def _parse_yaml(self, content: str, config_path: str) -> Dict[str, Any]:
        try:
            parsed = yaml.safe_load(content)
        except yaml.YAMLError as exc:
            raise AutoUpdateError(f"Invalid config file '{config_path}': {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise AutoUpdateError("Config file must contain a YAML mapping at the root.")
        return {str(key): value for key, value in parsed.items()}

    def _parse_shell(self, content: str, config_path: str) -> Dict[str, Any]:
        parsed: Dict[str, Any] = {}
        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            if line.startswith("export "):
                line = line[len("export "):].lstrip()

            key, sep, raw_value = line.partition("=")
            key = key.strip()
            if not sep or not key.isidentifier():
                self.logger.warning(
                    "Ignoring unparsable line %s in %s: %s", line_number, config_path, raw_line
                )
                continue

            try:
                tokens = shlex.split(raw_value, comments=True)
            except ValueError as exc:
                raise AutoUpdateError(
                    f"Invalid config file '{config_path}' at line {line_number}: {exc}"
                ) from exc
            parsed[key] = " ".join(tokens)

        return parsed

    def _known_keys(self, parsed: Dict[str, Any], config_path: str) -> Dict[str, Any]:
        unknown = sorted(set(parsed) - self.SUPPORTED_KEYS)
        if unknown:
            self.logger.warning(
                "Ignoring unknown configuration keys in %s: %s", config_path, ", ".join(unknown)
            )
        return {key: value for key, value in parsed.items() if key in self.SUPPORTED_KEYS}
