# ─────────────────────────────────────────────────────────────────────────────
# chloe/config_io.py
# ─────────────────────────────────────────────────────────────────────────────
"""Lecture/écriture des configurations YAML du binding Chloe.

La configuration livrée (default_config.yaml) est fusionnée avec un fichier
utilisateur optionnel ; les valeurs ``${env:VAR}`` sont résolues depuis
l'environnement.
"""

from __future__ import annotations
from dataclasses import asdict
from typing import Any, Mapping, Dict
import os
import re
import logging
from pathlib import Path

import yaml

from .config import Config

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parent / "default_config.yaml"

# Pattern pour la détection des variables d'environnement
_ENV_VAR_PATTERN = re.compile(r"^\$\{env:([A-Za-z_][A-Za-z0-9_]*)}$")


class ConfigIOError(RuntimeError):
    """Exception personnalisée pour les erreurs de gestion de configuration."""
    pass


def _resolve_env_vars(value: Any) -> Any:
    """Résout les valeurs au format exact ${env:VAR}; les autres sont inchangées."""
    if isinstance(value, str):
        match = _ENV_VAR_PATTERN.match(value.strip())
        if match:
            env_var = match.group(1)
            resolved_value = os.getenv(env_var, "")
            logger.debug("Résolution variable d'environnement: %s -> %s", env_var, resolved_value)
            return resolved_value
    return value


def _load_single_config(file_path) -> Dict[str, Any]:
    """Charge un fichier YAML et résout ses variables d'environnement.

    Raises:
        ConfigIOError: Si le fichier est inaccessible ou invalide
    """
    try:
        path = Path(file_path).absolute()
        logger.debug("Chargement configuration depuis: %s", path)

        with open(path, 'r', encoding='utf-8') as f:
            raw_config = yaml.safe_load(f) or {}

        if not isinstance(raw_config, dict):
            raise ConfigIOError(f"Le fichier {file_path} doit contenir un mapping YAML")

        return {
            key: _resolve_env_vars(value)
            for key, value in raw_config.items()
        }

    except yaml.YAMLError as e:
        error_msg = f"Erreur de syntaxe YAML dans {file_path}: {e}"
        logger.error(error_msg)
        raise ConfigIOError(error_msg) from e
    except OSError as e:
        error_msg = f"Erreur d'accès au fichier {file_path}: {e}"
        logger.error(error_msg)
        raise ConfigIOError(error_msg) from e


def _is_valid_config_value(value: Any) -> bool:
    """Une valeur est valide si elle n'est ni None, ni une chaîne/collection vide."""
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    if isinstance(value, (list, dict, set)) and not value:
        return False
    return True


def merge_configs(
        user_config: Mapping[str, Any],
        default_config: Mapping[str, Any]
) -> Dict[str, Any]:
    """Fusionne deux configurations selon la politique 'empty-is-missing'.

    Pour chaque clé, la valeur utilisateur est retenue si elle est valide,
    sinon la valeur par défaut ; une valeur finale vide devient None.
    """
    merged_config = {}
    for key in list(default_config) + [k for k in user_config if k not in default_config]:
        user_value = user_config.get(key)
        value = user_value if _is_valid_config_value(user_value) else default_config.get(key)
        merged_config[key] = value if _is_valid_config_value(value) else None

    logger.debug("Fusion config terminée. Clés fusionnées: %d", len(merged_config))
    return merged_config


def load_config(user_config_path=None, default_config_path=None) -> Config:
    """Charge la configuration livrée, surchargée par le fichier utilisateur.

    Raises:
        ConfigIOError: Si le chargement ou la fusion échoue
    """
    default_config_path = default_config_path or DEFAULT_CONFIG_PATH
    default_config = _load_single_config(default_config_path)
    user_config = _load_single_config(user_config_path) if user_config_path else {}

    merged = merge_configs(user_config, default_config)
    try:
        config = Config(**merged)
    except TypeError as e:
        error_msg = (
            f"Clés de configuration inconnues:\n"
            f"User: {user_config_path}\n"
            f"Default: {default_config_path}\n"
            f"Erreur: {e}"
        )
        logger.error(error_msg)
        raise ConfigIOError(error_msg) from e

    if config.ENGINE_TIMEOUT_S is not None:
        try:
            config.ENGINE_TIMEOUT_S = float(config.ENGINE_TIMEOUT_S)
        except (TypeError, ValueError) as e:
            raise ConfigIOError(f"ENGINE_TIMEOUT_S invalide: {config.ENGINE_TIMEOUT_S!r}") from e
    return config


def save_config(
        config: Config,
        output_path,
        *,
        minimal_output: bool = True
) -> None:
    """Sauvegarde une configuration dans un fichier YAML éditable.

    Raises:
        ConfigIOError: Si l'écriture échoue
    """
    path = Path(output_path).absolute()
    logger.info("Sauvegarde configuration vers: %s", path)

    config_dict = asdict(config)
    if minimal_output:
        config_dict = {
            k: v for k, v in config_dict.items()
            if _is_valid_config_value(v)
        }

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(
                config_dict,
                f,
                sort_keys=False,
                allow_unicode=True,
                default_flow_style=False
            )
    except OSError as e:
        error_msg = f"Erreur lors de la sauvegarde vers {output_path}: {e}"
        logger.error(error_msg)
        raise ConfigIOError(error_msg) from e

    logger.debug("Configuration sauvegardée. Taille: %d octets", path.stat().st_size)
