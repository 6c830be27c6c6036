from __future__ import annotations

import os
import sys
from typing import Mapping, Protocol

SERVERLESS_MARKERS = (
    "VERCEL",
    "VERCEL_URL",
    "VERCEL_ENV",
    "NETLIFY",
    "AWS_LAMBDA_FUNCTION_NAME",
)

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


class DeploymentEnvironment(Protocol):
    def is_constrained(self) -> bool: ...

    def is_windows_like(self) -> bool: ...


class ProcessEnvironment:
    """Reads the deployment flavour from the process environment.

    ``CERT_CONSTRAINED`` wins when set; otherwise serverless markers, or a
    production linux box whose HOME is not a user directory, count as
    constrained.
    """

    def __init__(self, environ: Mapping[str, str] | None = None, platform: str | None = None):
        self._environ = environ if environ is not None else os.environ
        self._platform = platform or sys.platform

    def is_constrained(self) -> bool:
        override = (self._environ.get("CERT_CONSTRAINED") or "").strip().lower()
        if override in _TRUTHY:
            return True
        if override in _FALSY:
            return False
        if any(self._environ.get(marker) for marker in SERVERLESS_MARKERS):
            return True
        production = (
            self._environ.get("FLASK_ENV") == "production"
            or self._environ.get("NODE_ENV") == "production"
        )
        home = self._environ.get("HOME", "")
        return production and self._platform.startswith("linux") and "user" not in home

    def is_windows_like(self) -> bool:
        return self._platform.startswith(("win", "cygwin"))


class StaticEnvironment:
    def __init__(self, constrained: bool = False, windows_like: bool = False):
        self.constrained = constrained
        self.windows_like = windows_like

    def is_constrained(self) -> bool:
        return self.constrained

    def is_windows_like(self) -> bool:
        return self.windows_like
