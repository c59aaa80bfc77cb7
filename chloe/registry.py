# ─────────────────────────────────────────────────────────────────────────────
# chloe/registry.py
# ─────────────────────────────────────────────────────────────────────────────
"""Requête de traitement générique et table des builders par type."""

from __future__ import annotations
import inspect
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Mapping

from . import procedures, treatments
from .exceptions import InvalidParameter
from .properties import PropertiesRecord

BUILDERS: Mapping[str, Callable[..., PropertiesRecord]] = MappingProxyType({
    "sliding": treatments.build_sliding,
    "selected": treatments.build_selected,
    "grid": treatments.build_grid,
    "map": treatments.build_map,
    "search_and_replace": treatments.build_search_and_replace,
    "classification": treatments.build_classification,
    "combine": treatments.build_combine,
    "cluster": treatments.build_cluster,
    "overlay": treatments.build_overlay,
    "distance": treatments.build_distance,
    "raster_from_csv": treatments.build_raster_from_csv,
    "raster_from_shapefile": treatments.build_raster_from_shapefile,
    "grain_bocager": procedures.build_grain_bocager,
    "ecolandscape": procedures.build_ecolandscape,
    "erosion": procedures.build_erosion,
    "ephestia_toulouse": procedures.build_ephestia_toulouse,
})


@dataclass(frozen=True)
class TreatmentRequest:
    """Demande de traitement : un type et ses paramètres nommés."""

    kind: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.kind not in BUILDERS:
            raise InvalidParameter("kind", self.kind, f"types connus: {', '.join(BUILDERS)}")
        object.__setattr__(self, "parameters", MappingProxyType(dict(self.parameters)))


def build(request: TreatmentRequest) -> PropertiesRecord:
    """Valide la requête et construit son enregistrement de propriétés.

    Un champ requis absent est signalé par le builder (MissingParameter) ;
    un nom inconnu lève InvalidParameter.
    """
    builder = BUILDERS[request.kind]
    unknown = sorted(set(request.parameters) - set(inspect.signature(builder).parameters))
    if unknown:
        raise InvalidParameter("parameters", unknown, f"inconnus pour '{request.kind}'")
    return builder(**request.parameters)
