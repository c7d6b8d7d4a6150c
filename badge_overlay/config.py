"""
Configuration management for Badge Overlay.

Loads the optional badge YAML config and merges it over the environment
defaults from constants.py.

Example badge.yml:

    output_dir: /data/outputs
    public_url_prefix: /outputs
    max_workers: 4
    timeout: 30
    style:
      background_color: "#FF6B35"
      text_color: "#FFFFFF"
      corner_radius: 12
    layout: bottom_center        # or a mapping, see layout.get_layout_policy
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ruamel.yaml import YAML

from .constants import (
    logger,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PUBLIC_URL_PREFIX,
    MAX_BADGE_WORKERS,
    BATCH_TIMEOUT,
)
from .layout import LayoutPolicy, get_layout_policy
from .models import BadgeStyle

CONFIG_KEYS = ('output_dir', 'public_url_prefix', 'max_workers', 'timeout', 'style', 'layout')


@dataclass(frozen=True)
class BadgeConfig:
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    public_url_prefix: str = DEFAULT_PUBLIC_URL_PREFIX
    max_workers: int = MAX_BADGE_WORKERS
    timeout: Optional[float] = BATCH_TIMEOUT
    style: BadgeStyle = field(default_factory=BadgeStyle)
    layout: LayoutPolicy = field(default_factory=get_layout_policy)


def _read_yaml(path: Path) -> Dict[str, Any]:
    """Read a YAML file and return its contents."""
    yaml_parser = YAML(typ='safe')
    with path.open('r') as f:
        data = yaml_parser.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Badge config {path} must be a mapping, got {type(data).__name__}")
    return dict(data)


def _coerce_max_workers(value: Any) -> int:
    try:
        workers = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid max_workers: {value!r}") from None
    if workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {workers}")
    return workers


def _coerce_timeout(value: Any) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        timeout = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"Invalid timeout: {value!r}") from None
    if timeout <= 0:
        raise ValueError(f"timeout must be > 0, got {timeout}")
    return timeout


def apply_config_values(config: BadgeConfig, values: Mapping[str, Any]) -> BadgeConfig:
    """
    Return a copy of config with the given raw values applied.

    Keys whose value is None are left unchanged. style values are merged into
    the current style rather than replacing it.
    """
    unknown = set(values) - set(CONFIG_KEYS)
    if unknown:
        raise ValueError(f"Unknown badge config key(s): {', '.join(sorted(unknown))}")

    changes: Dict[str, Any] = {}
    if values.get('output_dir') is not None:
        changes['output_dir'] = Path(values['output_dir'])
    if values.get('public_url_prefix') is not None:
        changes['public_url_prefix'] = str(values['public_url_prefix'])
    if values.get('max_workers') is not None:
        changes['max_workers'] = _coerce_max_workers(values['max_workers'])
    if 'timeout' in values and values['timeout'] is not None:
        changes['timeout'] = _coerce_timeout(values['timeout'])
    if values.get('style') is not None:
        style = values['style']
        if isinstance(style, BadgeStyle):
            changes['style'] = style
        elif isinstance(style, Mapping):
            changes['style'] = config.style.merged(style)
        else:
            raise ValueError(f"style must be a mapping, got {type(style).__name__}")
    if values.get('layout') is not None:
        changes['layout'] = get_layout_policy(values['layout'])

    return replace(config, **changes)


def load_badge_config(
    path: Optional[Union[str, Path]] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> BadgeConfig:
    """
    Load badge configuration.

    Precedence, lowest first: environment defaults, the YAML file at path,
    then explicit overrides (typically CLI flags).
    """
    config = BadgeConfig()

    if path is not None:
        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Badge config not found: {config_path}")
        config = apply_config_values(config, _read_yaml(config_path))
        logger.info(f"CONFIG_LOADED path={config_path}")

    if overrides:
        config = apply_config_values(config, overrides)

    return config
