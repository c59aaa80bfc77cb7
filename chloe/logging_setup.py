# ─────────────────────────────────────────────────────────────────────────────
# chloe/logging_setup.py
# ─────────────────────────────────────────────────────────────────────────────
"""Politique générale de journalisation.

Les modules du package journalisent via ``logging.getLogger(__name__)``,
sous l'espace de noms ``chloe``. L'application appelante configure la sortie
avec setup_logging ; la commande lancée et le code retour du moteur sont
tracés au niveau INFO, les sorties du moteur au niveau DEBUG.

Fonction publique
-----------------
setup_logging(level=logging.INFO)
    Configure et retourne le logger principal du package.
"""

from __future__ import annotations
import logging
import sys
from typing import Union


def setup_logging(level: Union[int, str] = logging.INFO) -> logging.Logger:
    """Initialise et retourne le logger 'chloe'.

    La configuration applique un format horodaté vers stdout et un niveau
    paramétrable (entier ou nom, par exemple "DEBUG").

    Paramètres
    ----------
    level : int | str, optionnel
        Niveau minimal de journalisation (par défaut : logging.INFO).

    Retour
    ------
    logging.Logger
        Instance configurée du logger nommé 'chloe'.
    """
    if isinstance(level, str):
        numeric_level = logging.getLevelName(level.upper())
        if not isinstance(numeric_level, int):
            raise ValueError(f"Niveau de log invalide: {level}")
        level = numeric_level

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True  # S'assure de surcharger toute config existante
    )

    logger = logging.getLogger("chloe")
    logger.setLevel(level)
    logger.debug("Logger chloe configuré avec niveau %s", logging.getLevelName(level))

    return logger
