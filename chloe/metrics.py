# ─────────────────────────────────────────────────────────────────────────────
# chloe/metrics.py
# ─────────────────────────────────────────────────────────────────────────────
"""Catalogue des métriques paysagères disponibles dans le moteur Chloe.

Le catalogue est un fichier CSV séparé par ';' livré avec le package
(colonnes name, type, process, description). Les métriques dont le process
vaut "value" ou "couple" doivent être complétées par une valeur ou un couple
de valeurs, par exemple ``pNV_1`` ou ``pNC_1-2``.

Fonctions publiques
-------------------
list_metrics(type=None, process=None) → DataFrame
generate_value_metrics(metrics, values) → list[str]
generate_couple_metrics(metrics, values) → list[str]
"""

from __future__ import annotations
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import pandas as pd

from .exceptions import CatalogUnavailable

logger = logging.getLogger(__name__)

METRICS_CATALOG_PATH = Path(__file__).parent / "data" / "metrics.csv"

Filter = Optional[Union[str, Sequence[str]]]


def _load_catalog(catalog_path) -> pd.DataFrame:
    path = Path(catalog_path) if catalog_path else METRICS_CATALOG_PATH
    try:
        catalog = pd.read_csv(path, sep=";", header=0, dtype=str, keep_default_na=False)
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        logger.error("Catalogue des métriques illisible (%s): %s", path, e)
        raise CatalogUnavailable(f"Catalogue des métriques illisible: {path}") from e

    if catalog.shape[1] < 3:
        raise CatalogUnavailable(
            f"Le catalogue {path} doit contenir au moins 3 colonnes (name;type;process)"
        )
    return catalog


def _mask(column: pd.Series, accepted: Filter) -> pd.Series:
    if isinstance(accepted, str):
        return column == accepted
    return column.isin(list(accepted))


def list_metrics(type: Filter = None, process: Filter = None, catalog_path=None) -> pd.DataFrame:
    """Liste les métriques, filtrées par type et/ou par process.

    Les filtres absents ne restreignent rien ; l'ordre du catalogue est
    conservé. Seules les trois premières colonnes sont retournées.
    """
    catalog = _load_catalog(catalog_path)
    name_col, type_col, process_col = catalog.columns[:3]

    selection = pd.Series(True, index=catalog.index)
    if type is not None:
        selection &= _mask(catalog[type_col], type)
    if process is not None:
        selection &= _mask(catalog[process_col], process)

    return catalog.loc[selection, [name_col, type_col, process_col]].reset_index(drop=True)


def _values(values: Iterable) -> List:
    return [v.item() if isinstance(v, np.generic) else v for v in np.asarray(values).ravel()]


def generate_value_metrics(metrics: Iterable[str], values: Iterable) -> List[str]:
    """Associe chaque métrique à chaque valeur : ``NV`` et 1 → ``NV_1``."""
    values = _values(values)
    return [f"{m}_{v}" for m in metrics for v in values]


def generate_couple_metrics(metrics: Iterable[str], values: Iterable) -> List[str]:
    """Associe chaque métrique aux couples de valeurs v1 < v2 : ``pNC_1-2``."""
    values = _values(values)
    return [
        f"{m}_{v1}-{v2}"
        for m in metrics
        for v1 in values
        for v2 in values
        if v2 > v1
    ]
