"""Filesystem locations for configuration and logs."""

from pathlib import Path

APP_DIR_NAME = '.browser-bridge'


def get_app_dir() -> Path:
    """Return the browser-bridge directory under the user's home."""

    return Path.home() / APP_DIR_NAME


def get_log_dir() -> Path:
    return get_app_dir() / 'logs'


__all__ = ['get_app_dir', 'get_log_dir']
