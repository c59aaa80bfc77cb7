# ─────────────────────────────────────────────────────────────────────────────
# chloe/procedures.py
# ─────────────────────────────────────────────────────────────────────────────
"""Builders des procédures composites (plusieurs étapes côté moteur).

Une procédure émet ``procedure=<nom>`` en tête et ``treatment=<étape>`` en
dernière ligne. L'étape lancée par le moteur est :

* grain_bocager : déduite des sorties demandées, la dernière condition
  satisfaite l'emportant (ordre ci-dessous), ou imposée par ``treatment`` ;
* ecolandscape  : choisie explicitement (``rupture`` par défaut) ;
* erosion, ephestia_toulouse : étape unique portant le nom de la procédure.

Précédence grain_bocager (de la plus faible à la plus forte) ::

    wood_height                             → wood_height_recovery
    wood_type                               → wood_type_detection
    influence_distance                      → influence_distance_calculation
    grain_bocager                           → grain_bocager_calculation
    functional_grain_bocager_clustering     → functional_clustering
    functional_grain_bocager                → functional_clustering
    functional_grain_bocager_proportion     → global_issues_calculation
    functional_grain_bocager_fragmentation  → global_issues_calculation
    output_folder                           → global_issues_calculation
"""

from __future__ import annotations
import logging
from typing import Dict, Optional, Sequence

from . import schema
from .exceptions import MissingParameter
from .properties import PropertiesRecord
from .values import Number, Text, Value, to_list, to_value

logger = logging.getLogger(__name__)

GRAIN_BOCAGER_STAGES = (
    "wood_height_recovery",
    "wood_type_detection",
    "influence_distance_calculation",
    "grain_bocager_calculation",
    "functional_clustering",
    "global_issues_calculation",
)

ECOLANDSCAPE_STAGES = (
    "calcul_metrics",
    "standardization",
    "clustering",
    "gradient",
    "mapping",
    "rupture",
)


def build_grain_bocager(
        territory=None,
        envelope=None,
        bocage=None,
        wood_removal=None,
        wood_planting=None,
        height_planting_attribute: str = "hauteur",
        wood_height=None,
        wood_type=None,
        influence_distance=None,
        thresholds: Sequence[float] = (0.20, 0.33, 0.45),
        threshold: float = 0.33,
        grain_bocager_window_radius: float = 250,
        grain_bocager_cellsize: float = 5,
        grain_bocager=None,
        grain_bocager_4classes=None,
        functional_grain_bocager=None,
        functional_grain_bocager_clustering=None,
        issues_window_radius: float = 1000,
        issues_cellsize: float = 50,
        functional_grain_bocager_proportion=None,
        functional_grain_bocager_fragmentation=None,
        output_folder=None,
        output_prefix: str = "",
        treatment: Optional[str] = None,
) -> PropertiesRecord:
    """Indicateurs de grain bocager.

    Si plusieurs sorties terminales sont demandées, l'étape retenue est celle
    de la sortie la plus avancée dans la table de précédence du module ; passer
    ``treatment`` pour choisir l'étape explicitement.
    """
    kind = "grain_bocager"
    schema.exclusive(kind, envelope=envelope, territory=territory)
    if treatment is not None:
        schema.choice("treatment", treatment, GRAIN_BOCAGER_STAGES)

    params: Dict[str, Value] = {"procedure": Text(kind)}
    stage: Optional[str] = None

    if schema.is_present(bocage):
        params["bocage"] = to_value(bocage)
        if schema.is_present(envelope):
            params["envelope"] = to_value(envelope)
        elif schema.is_present(territory):
            params["territory"] = to_value(territory)
    if schema.is_present(wood_height):
        params["wood_height"] = to_value(wood_height)
        stage = "wood_height_recovery"
    if schema.is_present(wood_removal):
        params["wood_removal"] = to_value(wood_removal)
    if schema.is_present(wood_planting):
        params["wood_planting"] = to_value(wood_planting)
        params["height_planting_attribute"] = Text(height_planting_attribute)
    if schema.is_present(wood_type):
        params["wood_type"] = to_value(wood_type)
        stage = "wood_type_detection"
    if schema.is_present(influence_distance):
        params["influence_distance"] = to_value(influence_distance)
        stage = "influence_distance_calculation"
    if schema.is_present(grain_bocager):
        params["grain_bocager"] = to_value(grain_bocager)
        stage = "grain_bocager_calculation"

    params["thresholds"] = to_list(thresholds)
    params["threshold"] = Number(threshold)
    params["grain_bocager_window_radius"] = Number(grain_bocager_window_radius)
    params["grain_bocager_cellsize"] = Number(grain_bocager_cellsize)

    if schema.is_present(grain_bocager_4classes):
        params["grain_bocager_4classes"] = to_value(grain_bocager_4classes)
    if schema.is_present(functional_grain_bocager_clustering):
        params["functional_grain_bocager_clustering"] = to_value(functional_grain_bocager_clustering)
        stage = "functional_clustering"
    if schema.is_present(functional_grain_bocager):
        params["functional_grain_bocager"] = to_value(functional_grain_bocager)
        stage = "functional_clustering"
    if schema.is_present(functional_grain_bocager_proportion):
        params["functional_grain_bocager_proportion"] = to_value(functional_grain_bocager_proportion)
        stage = "global_issues_calculation"
    if schema.is_present(functional_grain_bocager_fragmentation):
        params["functional_grain_bocager_fragmentation"] = to_value(functional_grain_bocager_fragmentation)
        stage = "global_issues_calculation"
    if schema.is_present(output_folder):
        params["output_folder"] = to_value(output_folder)
        params["output_prefix"] = Text(output_prefix or "")
        stage = "global_issues_calculation"

    if treatment is not None:
        if stage is not None and stage != treatment:
            logger.info("Étape %s imposée (étape déduite: %s)", treatment, stage)
        stage = treatment
    if stage is None:
        raise MissingParameter("treatment", kind)

    if stage == "global_issues_calculation":
        params["issues_window_radius"] = Number(issues_window_radius)
        params["issues_cellsize"] = Number(issues_cellsize)
    params["treatment"] = Text(stage)
    return schema.to_record(params)


def build_ecolandscape(
        input_raster=None,
        scales=None,
        classes=None,
        output_folder=None,
        xy_file=None,
        displacement=None,
        treatment: str = "rupture",
) -> PropertiesRecord:
    """Procédure écopaysage : métriques → standardisation → ... → rupture."""
    kind = "ecolandscape"
    schema.require(kind, input_raster=input_raster, scales=scales, classes=classes,
                   output_folder=output_folder)
    schema.choice("treatment", treatment, ECOLANDSCAPE_STAGES)

    params: Dict[str, Value] = {
        "procedure": Text(kind),
        "input_raster": to_value(input_raster),
        "scales": to_list(scales),
        "classes": to_list(classes),
        "output_folder": to_value(output_folder),
    }
    if schema.is_present(xy_file):
        params["xy_file"] = to_value(xy_file)
    if schema.is_present(displacement):
        params["displacement"] = Number(displacement)
    params["treatment"] = Text(treatment)
    return schema.to_record(params)


def build_erosion(
        territory=None,
        elevation=None,
        land_use=None,
        output_folder=None,
        envelope=None,
        infiltration_map=None,
        erodibility_map=None,
        displacement=None,
        output_prefix: str = "",
) -> PropertiesRecord:
    """Modélisation de l'érosion des sols sur un territoire."""
    kind = "erosion"
    schema.require(kind, territory=territory, elevation=elevation, land_use=land_use,
                   output_folder=output_folder)

    params: Dict[str, Value] = {
        "procedure": Text(kind),
        "territory": to_value(territory),
    }
    if schema.is_present(envelope):
        params["envelope"] = to_value(envelope)
    params["elevation"] = to_value(elevation)
    params["land_use"] = to_value(land_use)
    if schema.is_present(infiltration_map):
        params["infiltration_map"] = to_value(infiltration_map)
    if schema.is_present(erodibility_map):
        params["erodibility_map"] = to_value(erodibility_map)
    if schema.is_present(displacement):
        params["displacement"] = Number(displacement)
    params["output_folder"] = to_value(output_folder)
    params["output_prefix"] = Text(output_prefix or "")
    params["treatment"] = Text(kind)
    return schema.to_record(params)


def build_ephestia_toulouse(
        input_raster=None,
        sizes=None,
        output_folder=None,
        territory=None,
        displacement=None,
        output_prefix: str = "",
) -> PropertiesRecord:
    kind = "ephestia_toulouse"
    schema.require(kind, input_raster=input_raster, sizes=sizes, output_folder=output_folder)

    params: Dict[str, Value] = {
        "procedure": Text(kind),
        "input_raster": to_value(input_raster),
        "sizes": to_list(sizes),
    }
    if schema.is_present(territory):
        params["territory"] = to_value(territory)
    if schema.is_present(displacement):
        params["displacement"] = Number(displacement)
    params["output_folder"] = to_value(output_folder)
    params["output_prefix"] = Text(output_prefix or "")
    params["treatment"] = Text(kind)
    return schema.to_record(params)
