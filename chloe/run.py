# ─────────────────────────────────────────────────────────────────────────────
# chloe/run.py
# ─────────────────────────────────────────────────────────────────────────────
"""Lancement du moteur Chloe sur un ou plusieurs fichiers de propriétés.

La commande construite est ``<java> -jar <archive moteur> <fichier>`` ; elle
est exécutée de façon synchrone et son issue est retournée à l'appelant.

Éléments publics
----------------
ExitStatus
    Issue d'une exécution (chemin, code retour, issue).
Dispatcher(locator=None, engine_jar=None, timeout=None)
    command(path), dispatch(path), dispatch_many(paths).
run_chloe(record, properties_file=None, dispatcher=None) → ExitStatus
    Écrit l'enregistrement puis lance le moteur.
"""

from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional

from .config import Config
from .config_io import load_config
from .env_utils import (
    CANCELLED,
    SUCCESS,
    TIMED_OUT,
    RuntimeLocator,
    safe_subprocess,
    validate_environment,
)
from .exceptions import EngineCancelled, EngineNonZeroExit, EngineTimeout
from .properties import PropertiesRecord, write_properties

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExitStatus:
    path: Path
    returncode: Optional[int]
    outcome: str

    @property
    def ok(self) -> bool:
        return self.outcome == SUCCESS


class Dispatcher:
    """Exécute le moteur externe, un fichier de propriétés à la fois."""

    def __init__(self, locator: Optional[RuntimeLocator] = None, engine_jar=None,
                 timeout: Optional[float] = None, config: Optional[Config] = None):
        self.config = config or (locator.config if locator else Config())
        self.locator = locator or RuntimeLocator(config=self.config)
        self.engine_jar = engine_jar
        self.timeout = timeout if timeout is not None else self.config.ENGINE_TIMEOUT_S

    def _environment(self):
        env = validate_environment(self.locator, logger)
        if self.engine_jar is not None:
            env["ENGINE_JAR"] = os.fspath(self.engine_jar)
        return env

    def command(self, path) -> List[str]:
        env = self._environment()
        return [env["JAVA_CMD"], "-jar", env["ENGINE_JAR"], os.fspath(path)]

    def _run(self, cmd: List[str], path: Path, timeout, cancel_event) -> ExitStatus:
        returncode, outcome = safe_subprocess(
            cmd, timeout=timeout, logger=logger, cancel_event=cancel_event,
        )
        logger.info("Moteur terminé (%s, code %s): %s", outcome, returncode, path)
        return ExitStatus(path, returncode, outcome)

    def dispatch(self, path, *, check: bool = True, timeout: Optional[float] = None,
                 cancel_event=None) -> ExitStatus:
        """Lance le moteur sur un fichier et attend la fin.

        Avec ``check=True`` une issue autre que success lève EngineNonZeroExit,
        EngineTimeout ou EngineCancelled.
        """
        path = Path(path)
        cmd = self.command(path)
        timeout = timeout if timeout is not None else self.timeout
        status = self._run(cmd, path, timeout, cancel_event)
        if check:
            _raise_for_status(status, timeout)
        return status

    def dispatch_many(self, paths: Iterable, *, timeout: Optional[float] = None,
                      cancel_event=None) -> List[ExitStatus]:
        """Lance les fichiers l'un après l'autre ; un échec n'arrête pas la suite."""
        env = self._environment()
        timeout = timeout if timeout is not None else self.timeout
        statuses = []
        for path in paths:
            path = Path(path)
            cmd = [env["JAVA_CMD"], "-jar", env["ENGINE_JAR"], os.fspath(path)]
            statuses.append(self._run(cmd, path, timeout, cancel_event))
        failed = [s for s in statuses if not s.ok]
        if failed:
            logger.warning("%d/%d exécutions en échec", len(failed), len(statuses))
        return statuses


def _raise_for_status(status: ExitStatus, timeout) -> None:
    if status.outcome == TIMED_OUT:
        raise EngineTimeout(timeout, status.path)
    if status.outcome == CANCELLED:
        raise EngineCancelled(status.path)
    if not status.ok:
        raise EngineNonZeroExit(status.returncode, status.path)


def run_chloe(
        record: PropertiesRecord,
        properties_file=None,
        dispatcher: Optional[Dispatcher] = None,
        **dispatch_kwargs,
) -> ExitStatus:
    """Écrit l'enregistrement puis lance le moteur dessus.

    Sans dispatcher, la configuration YAML (default_config.yaml et variables
    CHLOE_*) est chargée pour en construire un.
    """
    dispatcher = dispatcher or Dispatcher(config=load_config())
    path = write_properties(record, properties_file, scratch_dir=dispatcher.config.SCRATCH_DIR)
    return dispatcher.dispatch(path, **dispatch_kwargs)
