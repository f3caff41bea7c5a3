"""Settings and config persistence for krakenx.

Config is stored at ~/.config/krakenx/config.json (XDG-compliant).

Lookup order for each setting: CLI flag, environment variable, config
file, built-in default.

Usage:
    from krakenx.conf import get_read_timeout, get_backend

    get_read_timeout()      # ms to wait for a status report
    get_backend()           # 'hidapi' or 'pyusb'

    # Low-level config access
    from krakenx.conf import load_config, save_config
"""
from __future__ import annotations

import json
import logging
import os

from .constants import BACKENDS, DEFAULT_BACKEND, DEFAULT_READ_TIMEOUT_MS

log = logging.getLogger(__name__)

# =========================================================================
# Config file location (XDG-compliant)
# =========================================================================

_XDG_CONFIG = os.environ.get('XDG_CONFIG_HOME', os.path.expanduser('~/.config'))
CONFIG_DIR = os.path.join(_XDG_CONFIG, 'krakenx')
CONFIG_PATH = os.path.join(CONFIG_DIR, 'config.json')

ENV_TIMEOUT = 'KRAKENX_TIMEOUT_MS'
ENV_BACKEND = 'KRAKENX_BACKEND'


# =========================================================================
# Low-level config persistence
# =========================================================================

def load_config() -> dict:
    """Load user config from disk. Returns empty dict on missing/corrupt file."""
    try:
        with open(CONFIG_PATH, 'r') as f:
            config = json.load(f)
    except (FileNotFoundError, json.JSONDecodeError, OSError):
        return {}
    return config if isinstance(config, dict) else {}


def save_config(config: dict):
    """Save user config to disk."""
    os.makedirs(CONFIG_DIR, exist_ok=True)
    with open(CONFIG_PATH, 'w') as f:
        json.dump(config, f, indent=2)


# =========================================================================
# Read timeout
# =========================================================================

def _positive_int(value) -> int | None:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def get_read_timeout() -> int:
    """Status-report read timeout in ms. Defaults to 1000."""
    env = os.environ.get(ENV_TIMEOUT)
    if env is not None:
        timeout = _positive_int(env)
        if timeout is not None:
            return timeout
        log.warning("Ignoring invalid %s=%r", ENV_TIMEOUT, env)

    timeout = _positive_int(load_config().get('read_timeout_ms'))
    return timeout if timeout is not None else DEFAULT_READ_TIMEOUT_MS


def save_read_timeout(timeout_ms: int):
    config = load_config()
    config['read_timeout_ms'] = timeout_ms
    save_config(config)


# =========================================================================
# Transport backend
# =========================================================================

def get_backend() -> str:
    """Transport backend name. Defaults to 'hidapi'."""
    env = os.environ.get(ENV_BACKEND)
    if env is not None:
        if env in BACKENDS:
            return env
        log.warning("Ignoring unknown %s=%r", ENV_BACKEND, env)

    backend = load_config().get('backend')
    return backend if backend in BACKENDS else DEFAULT_BACKEND


def save_backend(backend: str):
    if backend not in BACKENDS:
        raise ValueError(f"Unknown transport backend: {backend}")
    config = load_config()
    config['backend'] = backend
    save_config(config)
