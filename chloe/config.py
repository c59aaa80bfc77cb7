# ───────────────────────────────────────────────────────────────────────────
# chloe/config.py
# ───────────────────────────────────────────────────────────────────────────
"""Schéma de configuration typé du binding Chloe.

Les valeurs proviennent du fichier ``default_config.yaml`` livré avec le
package, éventuellement surchargé par un fichier YAML utilisateur.

Attributes:
    Config: Dataclass contenant les paramètres d'exécution du moteur.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional


@dataclass
class Config:
    """Conteneur de configuration pour le lancement du moteur Chloe.

    Champs:
        JAVA_PATH: Exécutable Java à utiliser si aucun chemin n'est mémorisé
        ENGINE_JAR: Archive du moteur (par défaut celle livrée dans chloe/bin)
        SETTINGS_FILE: Fichier clé=valeur mémorisant le chemin du runtime
        SCRATCH_DIR: Dossier des fichiers de propriétés temporaires
        ENGINE_TIMEOUT_S: Durée maximale d'une exécution du moteur (secondes)
        LOG_LEVEL: Niveau de journalisation (DEBUG, INFO, ...)
    """

    # Runtime et moteur
    JAVA_PATH: Optional[str] = None
    ENGINE_JAR: Optional[str] = None
    ENGINE_TIMEOUT_S: Optional[float] = None

    # Fichiers
    SETTINGS_FILE: Optional[str] = None
    SCRATCH_DIR: Optional[str] = None

    # Journalisation
    LOG_LEVEL: Optional[str] = None
