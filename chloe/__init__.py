# ───────────────────────────────────────────────────────────────────────────
# chloe/__init__.py
# ───────────────────────────────────────────────────────────────────────────
"""Binding Python du moteur d'analyse paysagère Chloe.

Traduit des demandes d'analyse (fenêtres glissantes, classification,
grain bocager, ...) en fichier de propriétés ``clé=valeur`` puis lance le
moteur Java externe sur ce fichier.

API publique:
    Config: Schéma de configuration
    load_config() : Charge la configuration YAML
    setup_logging() : Configure le système de logs
    RuntimeLocator : Localise et mémorise le runtime Java
    list_metrics() : Catalogue des métriques disponibles
    TreatmentRequest / build() : Construction générique d'un enregistrement
    write_properties() : Écriture du fichier de propriétés
    Dispatcher / run_chloe() : Lancement du moteur
    sliding_window(), grid_window(), ... : Traitements de haut niveau
"""

from __future__ import annotations

# Metadata
__version__ = "1.0.0"
__license__ = "MIT"

# Imports principaux
from .config import Config
from .config_io import load_config, merge_configs, save_config
from .logging_setup import setup_logging
from .exceptions import (
    ChloeError,
    MissingParameter,
    ConflictingParameters,
    InvalidParameter,
    RuntimeNotFound,
    EngineArtifactNotFound,
    CatalogUnavailable,
    SerializationIOError,
    EngineNonZeroExit,
    EngineTimeout,
    EngineCancelled,
)
from .settings_store import (
    SettingsStore,
    FileSettingsBackend,
    EnvSettingsBackend,
    MemorySettingsBackend,
)
from .env_utils import RuntimeLocator, safe_subprocess, validate_environment
from .metrics import list_metrics, generate_value_metrics, generate_couple_metrics
from .properties import PropertiesRecord, write_properties, read_properties
from .registry import TreatmentRequest, build
from .run import Dispatcher, ExitStatus, run_chloe
from .api import (
    sliding_window,
    selected_window,
    grid_window,
    map_window,
    search_replace,
    classification,
    combine,
    cluster,
    overlay,
    distance,
    raster_from_csv,
    raster_from_shapefile,
    grain_bocager,
    eco_landscape,
    erosion,
    ephestia_toulouse,
)

__all__ = [
    # Configuration et environnement
    "Config",
    "load_config",
    "merge_configs",
    "save_config",
    "setup_logging",
    "SettingsStore",
    "FileSettingsBackend",
    "EnvSettingsBackend",
    "MemorySettingsBackend",
    "RuntimeLocator",
    "safe_subprocess",
    "validate_environment",

    # Erreurs
    "ChloeError",
    "MissingParameter",
    "ConflictingParameters",
    "InvalidParameter",
    "RuntimeNotFound",
    "EngineArtifactNotFound",
    "CatalogUnavailable",
    "SerializationIOError",
    "EngineNonZeroExit",
    "EngineTimeout",
    "EngineCancelled",

    # Construction et lancement
    "list_metrics",
    "generate_value_metrics",
    "generate_couple_metrics",
    "PropertiesRecord",
    "write_properties",
    "read_properties",
    "TreatmentRequest",
    "build",
    "Dispatcher",
    "ExitStatus",
    "run_chloe",

    # Traitements
    "sliding_window",
    "selected_window",
    "grid_window",
    "map_window",
    "search_replace",
    "classification",
    "combine",
    "cluster",
    "overlay",
    "distance",
    "raster_from_csv",
    "raster_from_shapefile",
    "grain_bocager",
    "eco_landscape",
    "erosion",
    "ephestia_toulouse",

    # Metadata
    "__version__"
]

# Documentation supplémentaire
__doc__ += """
Workflow typique:
    1. Mémoriser le runtime si besoin (RuntimeLocator().set_runtime_path)
    2. Choisir les métriques (list_metrics)
    3. Lancer le traitement (sliding_window, grain_bocager, ...)
"""
