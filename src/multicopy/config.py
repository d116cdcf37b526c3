# src/multicopy/config.py
import json
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Iterable, Mapping, Optional, Tuple

from multicopy.models import ConfigError

CONFIG_FILE_NAME = "multicopy.json"
SETTINGS_PREFIX = "multicopy."

MIN_BYTES = 1024
DEFAULT_MAX_BYTES = 20_000_000
DEFAULT_MAX_JSON_BYTES = 200_000
DEFAULT_SEPARATOR = "\n\n"

MARKDOWN_EXTENSIONS = frozenset({"md", "markdown", "mdown", "mkd", "mkdn", "mdx"})


def _as_size(value: Any, default: int) -> int:
    # Zero, missing and non-numeric values all mean "use the default".
    try:
        number = int(value)
    except (TypeError, ValueError):
        number = 0
    return max(MIN_BYTES, number or default)


def _as_bool(value: Any, default: bool) -> bool:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "off")
    return bool(value)


def _as_globs(value: Any) -> Tuple[str, ...]:
    if not value:
        return ()
    if isinstance(value, str):
        value = [value]
    return tuple(str(g) for g in value if g)


@dataclass(frozen=True)
class BundleConfig:
    """Options for one bundling run. Built once and passed to every core call."""
    max_bytes: int = DEFAULT_MAX_BYTES
    max_json_bytes: int = DEFAULT_MAX_JSON_BYTES
    separator: str = DEFAULT_SEPARATOR
    ignore_globs: Tuple[str, ...] = ()
    exclude_markdown: bool = True
    include_headers: bool = True
    metadata_inside_fence: bool = False

    def __post_init__(self):
        object.__setattr__(self, "max_bytes", max(MIN_BYTES, int(self.max_bytes)))
        object.__setattr__(self, "max_json_bytes", max(MIN_BYTES, int(self.max_json_bytes)))
        object.__setattr__(self, "ignore_globs", _as_globs(self.ignore_globs))

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "BundleConfig":
        """
        Builds a config from a flat settings record.
        Keys are camelCase and may carry the ``multicopy.`` prefix used in editor settings.
        """
        flat = {}
        for key, value in data.items():
            if key.startswith(SETTINGS_PREFIX):
                key = key[len(SETTINGS_PREFIX):]
            flat[key] = value

        return cls(
            max_bytes=_as_size(flat.get("maxBytes"), DEFAULT_MAX_BYTES),
            max_json_bytes=_as_size(flat.get("maxJsonBytes"), DEFAULT_MAX_JSON_BYTES),
            separator=str(flat.get("separator") or DEFAULT_SEPARATOR),
            ignore_globs=_as_globs(flat.get("ignoreGlobs")),
            exclude_markdown=_as_bool(flat.get("excludeMarkdown"), True),
            include_headers=_as_bool(flat.get("includeHeaders"), True),
            metadata_inside_fence=_as_bool(flat.get("metadataInsideFence"), False),
        )

    def with_overrides(self, **overrides: Any) -> "BundleConfig":
        """Returns a copy with every non-None override applied (CLI flags win over the file)."""
        changes = {k: v for k, v in overrides.items() if v is not None}
        if "ignore_globs" in changes:
            changes["ignore_globs"] = merge_globs(self.ignore_globs, _as_globs(changes["ignore_globs"]))
        return replace(self, **changes)


def load_config(config_file: Optional[Path]) -> BundleConfig:
    """
    Loads settings from a JSON file.
    A missing file (or no file at all) yields the defaults.
    """
    if config_file is None or not config_file.exists():
        return BundleConfig()

    try:
        data = json.loads(config_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        raise ConfigError(str(config_file), f"Invalid JSON: {e}")
    except OSError as e:
        raise ConfigError(str(config_file), str(e))

    if not isinstance(data, dict):
        raise ConfigError(str(config_file), "Top-level value must be an object")
    return BundleConfig.from_mapping(data)


def find_config_file(base_dir: Path, explicit: Optional[str] = None) -> Optional[Path]:
    if explicit:
        return Path(explicit)
    candidate = base_dir / CONFIG_FILE_NAME
    return candidate if candidate.is_file() else None


def is_markdown(extension: str) -> bool:
    return extension.lower() in MARKDOWN_EXTENSIONS


def merge_globs(*groups: Iterable[str]) -> Tuple[str, ...]:
    merged = []
    for group in groups:
        for glob in group:
            if glob and glob not in merged:
                merged.append(glob)
    return tuple(merged)
