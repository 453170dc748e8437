"""
Engine settings, loaded from YAML over built-in defaults.
"""
import logging
import os

import yaml

logger = logging.getLogger(__name__)


def get_default_settings():
    """Return default settings."""
    return {
        'stale_after_seconds': 30,
        'min_group_size': 3,
        'max_group_size': 99,
        'default_group_size': 4,
        'min_tournament_participants': 4,
        'grouping_strategy': 'block',
    }


def load_settings(file_path=None):
    settings = get_default_settings()
    if not file_path or not os.path.exists(file_path):
        return settings
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        logger.warning(f'Failed to parse {file_path}: {e}')
        return settings
    if isinstance(data, dict):
        settings.update(data)
    elif data is not None:
        logger.warning(f'Ignoring {file_path}: expected a mapping, got {type(data).__name__}')
    return settings


def clamp_group_size(size, settings=None):
    settings = settings or get_default_settings()
    low = settings.get('min_group_size', 3)
    high = settings.get('max_group_size', 99)
    return max(low, min(high, int(size)))
