# ─────────────────────────────────────────────────────────────────────────────
# chloe/env_utils.py
# ─────────────────────────────────────────────────────────────────────────────
"""Environnement d'exécution du moteur Chloe et lancement de sous-processus.

Ce module assure :
* la localisation du runtime Java (réglage mémorisé, configuration, PATH) ;
* la localisation de l'archive du moteur ;
* l'exécution tracée d'une commande externe, interruptible par timeout ou
  par annulation.

Éléments publics
----------------
RuntimeLocator(store=None, config=None, executable="java")
    Résout et mémorise le chemin du runtime Java.
safe_subprocess(cmd_args, env=None, timeout=None, logger=None, cancel_event=None)
    Lanceur de processus externes avec journalisation détaillée.
validate_environment(locator) → dict
    Vérifie le runtime et l'archive du moteur avant un lancement.
"""

from __future__ import annotations
import logging
import os
import re
import shutil
import subprocess
import time
from pathlib import Path
from typing import Dict, Optional, Tuple

from .config import Config
from .exceptions import EngineArtifactNotFound, RuntimeNotFound
from .settings_store import JAVA_PATH_KEY, FileSettingsBackend, SettingsStore

_logger = logging.getLogger(__name__)

ENGINE_BIN_DIR = Path(__file__).parent / "bin"
ENGINE_JAR_PATTERN = "Chloe*.jar"

SUCCESS = "success"
FAILED = "failed"
TIMED_OUT = "timed_out"
CANCELLED = "cancelled"


def _version_key(path: Path) -> Tuple:
    """Clé de tri par numéro de version : Chloe5-0.0.10 après Chloe5-0.0.9."""
    return tuple(int(n) for n in re.findall(r"\d+", path.stem)), path.name


class RuntimeLocator:
    """Résolution du runtime Java utilisé pour lancer le moteur.

    Ordre de résolution : chemin mémorisé dans le store, Config.JAVA_PATH,
    recherche de l'exécutable dans le PATH.
    """

    def __init__(self, store: Optional[SettingsStore] = None, config: Optional[Config] = None,
                 executable: str = "java"):
        self.config = config or Config()
        if store is None:
            store = SettingsStore(FileSettingsBackend(self.config.SETTINGS_FILE))
        self.store = store
        self.executable = executable

    def resolve_runtime(self) -> str:
        persisted = self.store.get(JAVA_PATH_KEY)
        if persisted:
            if not os.path.isfile(persisted):
                _logger.warning("Runtime mémorisé introuvable sur disque: %s", persisted)
            _logger.debug("Runtime mémorisé: %s", persisted)
            return persisted

        if self.config.JAVA_PATH:
            _logger.debug("Runtime issu de la configuration: %s", self.config.JAVA_PATH)
            return self.config.JAVA_PATH

        found = shutil.which(self.executable)
        if found:
            _logger.debug("Runtime trouvé dans le PATH: %s", found)
            return found

        raise RuntimeNotFound(
            f"Runtime '{self.executable}' introuvable. Installez Java (JRE 8 ou plus) "
            f"et ajoutez-le au PATH, ou indiquez son chemin avec "
            f"RuntimeLocator.set_runtime_path('/chemin/vers/{self.executable}')."
        )

    def persist_runtime(self, path) -> None:
        """Mémorise le chemin du runtime ; une nouvelle valeur remplace l'ancienne."""
        self.store.set(JAVA_PATH_KEY, os.fspath(path))
        _logger.info("Chemin du runtime mémorisé: %s", path)

    # Noms historiques du binding
    get_runtime_path = resolve_runtime
    set_runtime_path = persist_runtime

    def locate_engine_artifact(self) -> Path:
        if self.config.ENGINE_JAR:
            jar = Path(self.config.ENGINE_JAR).expanduser()
            if not jar.is_file():
                raise EngineArtifactNotFound(f"ENGINE_JAR ne désigne pas un fichier: {jar}")
            return jar

        candidates = []
        if ENGINE_BIN_DIR.is_dir():
            candidates = sorted(ENGINE_BIN_DIR.glob(ENGINE_JAR_PATTERN), key=_version_key)
        if not candidates:
            raise EngineArtifactNotFound(
                f"Aucune archive {ENGINE_JAR_PATTERN} dans {ENGINE_BIN_DIR}; "
                f"renseignez ENGINE_JAR (ou CHLOE_ENGINE_JAR)."
            )
        return candidates[-1]


def validate_environment(locator: RuntimeLocator, logger=None) -> Dict[str, str]:
    """Vérifie l'environnement et retourne le runtime et l'archive à utiliser."""
    logger = logger or _logger
    java_cmd = locator.resolve_runtime()
    engine_jar = locator.locate_engine_artifact()
    logger.debug("Environnement validé (runtime=%s, moteur=%s)", java_cmd, engine_jar)
    return {
        "JAVA_CMD": java_cmd,
        "ENGINE_JAR": str(engine_jar),
    }


def safe_subprocess(
        cmd_args: list[str],
        env: Optional[Dict[str, str]] = None,
        timeout: Optional[float] = None,
        logger=None,
        cancel_event=None,
        poll_interval: float = 0.2,
) -> Tuple[Optional[int], str]:
    """Exécute une commande et attend sa fin.

    Retourne le code retour et l'issue (success, failed, timed_out,
    cancelled). En cas de timeout ou d'annulation le processus est tué.
    """
    logger = logger or _logger
    cmd_display = " ".join(cmd_args)[:200] + ("…" if len(" ".join(cmd_args)) > 200 else "")

    if cancel_event is not None and cancel_event.is_set():
        logger.warning("Lancement annulé avant démarrage: %s", cmd_display)
        return None, CANCELLED

    logger.info("Lancement sous-processus: %s", cmd_display)
    try:
        proc = subprocess.Popen(
            cmd_args,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            env=env,
        )
    except OSError as e:
        logger.error("Erreur système lors de l'exécution: %s", str(e))
        raise

    deadline = None if timeout is None else time.monotonic() + timeout
    outcome = None
    while True:
        wait = poll_interval
        if deadline is not None:
            wait = max(0.0, min(wait, deadline - time.monotonic()))
        try:
            stdout, stderr = proc.communicate(timeout=wait)
            break
        except subprocess.TimeoutExpired:
            if cancel_event is not None and cancel_event.is_set():
                outcome = CANCELLED
            elif deadline is not None and time.monotonic() >= deadline:
                outcome = TIMED_OUT
            else:
                continue
            proc.kill()
            stdout, stderr = proc.communicate()
            break

    if stdout:
        logger.debug("Sortie standard:\n%s", stdout.strip())
    if stderr:
        logger.debug("Sortie erreur:\n%s", stderr.strip())

    if outcome == TIMED_OUT:
        logger.error("Timeout dépassé (%ss) sur commande: %s", timeout, cmd_display)
        return proc.returncode, outcome
    if outcome == CANCELLED:
        logger.warning("Commande annulée: %s", cmd_display)
        return proc.returncode, outcome

    if proc.returncode != 0:
        logger.error(
            "Échec commande (code %d): %s\nSortie erreur:\n%s",
            proc.returncode,
            cmd_display,
            (stderr or "").strip(),
        )
        return proc.returncode, FAILED
    return 0, SUCCESS
