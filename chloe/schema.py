# ─────────────────────────────────────────────────────────────────────────────
# chloe/schema.py
# ─────────────────────────────────────────────────────────────────────────────
"""Règles de validation communes aux builders de traitements.

Une valeur est considérée comme absente si elle vaut None, est une chaîne vide
ou une collection vide (politique 'empty-is-missing', comme pour la
configuration YAML).
"""

from __future__ import annotations
from typing import Any, Dict, Iterable, Optional

import numpy as np

from .exceptions import ConflictingParameters, InvalidParameter, MissingParameter
from .properties import PropertiesRecord
from .values import Value


def is_present(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str) and not value.strip():
        return False
    if isinstance(value, np.ndarray):
        return value.size > 0
    if isinstance(value, (list, tuple, dict, set)) and not value:
        return False
    return True


def require(kind: str, **fields: Any) -> None:
    """Lève MissingParameter pour le premier champ absent."""
    for name, value in fields.items():
        if not is_present(value):
            raise MissingParameter(name, kind)


def exclusive(kind: str, **fields: Any) -> Optional[str]:
    """Vérifie qu'au plus un des champs est renseigné et retourne son nom."""
    supplied = [name for name, value in fields.items() if is_present(value)]
    if len(supplied) > 1:
        raise ConflictingParameters(supplied, kind)
    return supplied[0] if supplied else None


def one_of(kind: str, **fields: Any) -> str:
    """Exactement un des champs doit être renseigné."""
    supplied = exclusive(kind, **fields)
    if supplied is None:
        raise MissingParameter(" | ".join(fields), kind)
    return supplied


def choice(name: str, value: str, allowed: Iterable[str]) -> str:
    allowed = tuple(allowed)
    if value not in allowed:
        raise InvalidParameter(name, value, f"valeurs acceptées: {', '.join(allowed)}")
    return value


def to_record(params: Dict[str, Value]) -> PropertiesRecord:
    """Transforme une table normalisée (ordonnée) en enregistrement."""
    return PropertiesRecord(list(params.items()))
