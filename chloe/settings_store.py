# ─────────────────────────────────────────────────────────────────────────────
# chloe/settings_store.py
# ─────────────────────────────────────────────────────────────────────────────
"""Stockage persistant des réglages locaux (chemin du runtime Java).

Le store délègue la lecture/écriture à un backend interchangeable :
* FileSettingsBackend : fichier de lignes ``clé=valeur`` ;
* EnvSettingsBackend  : variables d'environnement ``CHLOE_<CLÉ>`` ;
* MemorySettingsBackend : dictionnaire en mémoire (tests).

Les cycles lecture-modification-écriture sont sérialisés par un verrou de
processus et, pour le backend fichier, par un fichier verrou exclusif.
"""

from __future__ import annotations
import logging
import os
import sys
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional

from .exceptions import SettingsLockTimeout

logger = logging.getLogger(__name__)

JAVA_PATH_KEY = "java_path"


def default_settings_path() -> Path:
    """Fichier de réglages dans le dossier de configuration de l'utilisateur."""
    if sys.platform.startswith("win"):
        base = os.environ.get("APPDATA") or os.path.expanduser("~")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or os.path.join(os.path.expanduser("~"), ".config")
    return Path(base) / "chloe" / "chloe.conf"


class MemorySettingsBackend:
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data = dict(initial or {})

    def read(self) -> Dict[str, str]:
        return dict(self._data)

    def write(self, data: Dict[str, str]) -> None:
        self._data = dict(data)

    @contextmanager
    def locked(self) -> Iterator[None]:
        yield


class EnvSettingsBackend:
    """Réglages portés par l'environnement du processus."""

    def __init__(self, prefix: str = "CHLOE_", environ=None):
        self.prefix = prefix
        self.environ = os.environ if environ is None else environ

    def read(self) -> Dict[str, str]:
        n = len(self.prefix)
        return {
            key[n:].lower(): value
            for key, value in self.environ.items()
            if key.startswith(self.prefix)
        }

    def write(self, data: Dict[str, str]) -> None:
        for key in [k for k in self.environ if k.startswith(self.prefix)]:
            if key[len(self.prefix):].lower() not in data:
                del self.environ[key]
        for key, value in data.items():
            self.environ[self.prefix + key.upper()] = value

    @contextmanager
    def locked(self) -> Iterator[None]:
        yield


def _pid_alive(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    return True


class FileSettingsBackend:
    """Fichier de réglages ``clé=valeur`` ; un fichier absent vaut un store vide.

    Le verrou contient le PID de son détenteur. Il est considéré comme
    abandonné si ce processus n'existe plus (POSIX) ou s'il est plus ancien
    que ``stale_after`` secondes ; il est alors supprimé.
    """

    def __init__(self, path=None, lock_timeout: float = 10.0, stale_after: float = 60.0):
        self.path = Path(path) if path else default_settings_path()
        self.lock_timeout = lock_timeout
        self.stale_after = stale_after

    @property
    def lock_path(self) -> Path:
        return self.path.with_name(self.path.name + ".lock")

    def _lock_is_stale(self) -> bool:
        try:
            owner = self.lock_path.read_text(encoding="ascii", errors="replace").strip()
            age = time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            return False
        if age > self.stale_after:
            return True
        # Sans PID, le verrou est en cours de création
        if os.name == "posix" and owner.isdigit():
            return not _pid_alive(int(owner))
        return False

    def _break_stale_lock(self) -> None:
        logger.warning("Verrou abandonné supprimé: %s", self.lock_path)
        try:
            os.unlink(self.lock_path)
        except FileNotFoundError:
            logger.debug("Verrou %s supprimé entre-temps", self.lock_path)

    def read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data: Dict[str, str] = {}
        with open(self.path, "r", encoding="utf-8") as f:
            for line in f:
                line = line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                data[key.strip()] = value.strip()
        return data

    def write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8", newline="\n") as f:
            for key, value in data.items():
                f.write(f"{key}={value}\n")
        os.replace(tmp_path, self.path)

    @contextmanager
    def locked(self) -> Iterator[None]:
        """Verrou inter-processus par création exclusive d'un fichier .lock."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        deadline = time.monotonic() + self.lock_timeout
        while True:
            try:
                fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
                break
            except FileExistsError:
                if self._lock_is_stale():
                    self._break_stale_lock()
                    continue
                if time.monotonic() >= deadline:
                    raise SettingsLockTimeout(
                        f"Verrou {self.lock_path} toujours présent après {self.lock_timeout}s"
                    )
                time.sleep(0.05)
        try:
            os.write(fd, str(os.getpid()).encode("ascii"))
            os.close(fd)
            yield
        finally:
            try:
                os.unlink(self.lock_path)
            except FileNotFoundError:
                logger.warning("Verrou %s déjà supprimé", self.lock_path)


class SettingsStore:
    """Accès clé/valeur aux réglages persistants."""

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else FileSettingsBackend()
        self._lock = threading.Lock()

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self.backend.read().get(key)
        return value if value else default

    def set(self, key: str, value: str) -> None:
        """Remplace la valeur de la clé (une seule ligne par clé)."""
        with self._lock, self.backend.locked():
            data = self.backend.read()
            data[key] = str(value)
            self.backend.write(data)
        logger.debug("Réglage enregistré: %s=%s", key, value)

    def delete(self, key: str) -> None:
        with self._lock, self.backend.locked():
            data = self.backend.read()
            if data.pop(key, None) is not None:
                self.backend.write(data)

    def as_dict(self) -> Dict[str, str]:
        return self.backend.read()
