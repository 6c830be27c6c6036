import logging
import os
import tempfile
import threading
from datetime import date

import requests

from .text import slugify

logger = logging.getLogger("eventcert.fonts")

_path_locks: dict[str, threading.Lock] = {}
_path_locks_guard = threading.Lock()


def ensure_dir(path: str) -> None:
    """Create directory if missing (mkdir -p equivalent)."""
    os.makedirs(path, exist_ok=True)


def write_atomic(path: str, data, mode: str = "wb") -> None:
    """Write data to a temporary file then atomically rename to target path."""
    dir_path = os.path.dirname(path)
    ensure_dir(dir_path)
    fd, tmp_path = tempfile.mkstemp(dir=dir_path)
    try:
        with os.fdopen(fd, mode) as f:
            f.write(data)
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def _lock_for(path: str) -> threading.Lock:
    key = os.path.abspath(path)
    with _path_locks_guard:
        lock = _path_locks.get(key)
        if lock is None:
            lock = threading.Lock()
            _path_locks[key] = lock
        return lock


def download_if_missing(
    url: str,
    dest: str,
    http: requests.Session | None = None,
    timeout: float = 10.0,
) -> str:
    """Fetch ``url`` into ``dest`` unless a non-empty file is already there.

    Concurrent callers for the same destination are serialised and the file
    only appears once fully written, so readers never see a partial download.
    Network errors propagate as ``requests.RequestException``.
    """
    with _lock_for(dest):
        if os.path.exists(dest) and os.path.getsize(dest) > 0:
            return dest
        getter = http or requests
        resp = getter.get(url, timeout=timeout)
        resp.raise_for_status()
        if not resp.content:
            raise requests.RequestException(f"empty body from {url}")
        write_atomic(dest, resp.content)
        logger.info("[CERT-FONT] downloaded %s -> %s (%d bytes)", url, dest, len(resp.content))
        return dest


def certificate_output_path(
    site_root: str, event_id: str | None, event_date: date, user_name: str, extension: str
) -> str:
    folder = os.path.join(
        site_root, "certificates", str(event_date.year), event_id or "sem-evento"
    )
    return os.path.join(folder, f"{slugify(user_name) or 'participante'}.{extension}")
