"""
Probe defaults.

Module constants hold the built-in defaults; ProbeSettings.from_env() lets
STATUSPROBE_* environment variables override them. Command-line flags in
probe.py override both.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

DEFAULT_HOST = "www.google.com"
DEFAULT_SERVICE = "http"
DEFAULT_PATH = "/"
DEFAULT_PREFIX = "HTTP/1.0"
DEFAULT_TIMEOUT = 10.0  # seconds

ENV_PREFIX = "STATUSPROBE_"


@dataclass
class ProbeSettings:
    host: str = DEFAULT_HOST
    service: str = DEFAULT_SERVICE
    path: str = DEFAULT_PATH
    prefix: str = DEFAULT_PREFIX
    timeout: Optional[float] = DEFAULT_TIMEOUT

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ProbeSettings":
        env = os.environ if environ is None else environ
        settings = cls()
        for field in ("host", "service", "path", "prefix"):
            value = env.get(ENV_PREFIX + field.upper())
            if value:
                setattr(settings, field, value)
        timeout = env.get(ENV_PREFIX + "TIMEOUT")
        if timeout:
            settings.timeout = parse_timeout(timeout)
        return settings


def parse_timeout(text: str) -> Optional[float]:
    """'0', 'none' or 'off' disable the timeout; anything else must be a positive number."""
    if text.strip().lower() in ("0", "none", "off"):
        return None
    value = float(text)
    if value <= 0:
        raise ValueError(f"timeout must be positive: {text!r}")
    return value
