# ─────────────────────────────────────────────────────────────────────────────
# chloe/treatments.py
# ─────────────────────────────────────────────────────────────────────────────
"""Builders des traitements simples du moteur Chloe.

Chaque builder est une fonction pure :
1. validation des champs requis et des paires exclusives ;
2. application des dérivations documentées (forme, type de distance) ;
3. construction d'une table normalisée, dans un ordre d'émission fixe ;
4. conversion en PropertiesRecord.

Aucune entrée/sortie n'est effectuée ici : l'écriture et le lancement sont
délégués à properties.py et run.py.
"""

from __future__ import annotations
import logging
from typing import Any, Dict, Optional

from . import schema
from .exceptions import MissingParameter
from .properties import PropertiesRecord
from .values import Flag, Number, Text, Value, to_list, to_pairs, to_value

logger = logging.getLogger(__name__)

DISTANCE_TYPES = ("THRESHOLD", "WEIGHTED", "FAST_GAUSSIAN", "FAST_SQUARE")
FAST_DISTANCE_TYPES = ("FAST_GAUSSIAN", "FAST_SQUARE")
SHAPES = ("CIRCLE", "SQUARE", "FUNCTIONAL")
DEFAULT_DISTANCE_FUNCTION = "exp(-pow(distance, 2)/pow(dmax/2, 2))"
DISTANCE_MAP_TYPES = ("EUCLIDEAN", "FUNCTIONAL")


def _window_distance(
        params: Dict[str, Value],
        distance_type: str,
        distance_function: Optional[str],
        shape: str,
        friction_raster: Any,
) -> None:
    """Dérive distance_type / shape pour les fenêtres glissantes et sélectionnées."""
    schema.choice("distance_type", distance_type, DISTANCE_TYPES)
    schema.choice("shape", shape, SHAPES)

    if schema.is_present(distance_function) or distance_type == "WEIGHTED":
        params["distance_type"] = Text("WEIGHTED")
        params["distance_function"] = Text(distance_function or DEFAULT_DISTANCE_FUNCTION)
    else:
        params["distance_type"] = Text(distance_type)

    if schema.is_present(friction_raster):
        params["shape"] = Text("FUNCTIONAL")
        params["friction_raster"] = to_value(friction_raster)
    elif shape == "FUNCTIONAL":
        logger.warning("Forme FUNCTIONAL sans friction_raster: repli sur CIRCLE")
        params["shape"] = Text("CIRCLE")
    else:
        params["shape"] = Text(shape)


def _put(params: Dict[str, Value], key: str, value: Any) -> None:
    if schema.is_present(value):
        params[key] = to_value(value)


# ─────────────────────────────────────────────────────────────────────────────
# Analyses par fenêtres
# ─────────────────────────────────────────────────────────────────────────────

def build_sliding(
        input_raster=None,
        metrics=None,
        sizes=None,
        distance_type: str = "THRESHOLD",
        distance_function: Optional[str] = None,
        friction_raster=None,
        shape: str = "CIRCLE",
        displacement: int = 1,
        interpolation: bool = False,
        filters=None,
        unfilters=None,
        maximum_rate_nodata_value: float = 100,
        output_raster=None,
        output_csv=None,
        output_folder=None,
) -> PropertiesRecord:
    """Analyse par fenêtre glissante.

    Pour les types FAST_GAUSSIAN et FAST_SQUARE, ni la fonction de pondération
    ni la forme ne sont transmises au moteur.
    """
    kind = "sliding"
    schema.require(kind, input_raster=input_raster, metrics=metrics, sizes=sizes)
    schema.exclusive(kind, filters=filters, unfilters=unfilters)
    schema.exclusive(kind, output_raster=output_raster, output_folder=output_folder)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "metrics": to_list(metrics),
        "sizes": to_list(sizes),
    }
    if distance_type in FAST_DISTANCE_TYPES:
        params["distance_type"] = Text(distance_type)
    else:
        _window_distance(params, distance_type, distance_function, shape, friction_raster)

    if displacement != 1:
        params["displacement"] = Number(displacement)
        params["interpolation"] = Flag(bool(interpolation))
    if schema.is_present(filters):
        params["filters"] = to_list(filters)
    if schema.is_present(unfilters):
        params["unfilters"] = to_list(unfilters)
    if maximum_rate_nodata_value != 100:
        params["maximum_rate_nodata_value"] = Number(maximum_rate_nodata_value)
    _put(params, "output_raster", output_raster)
    _put(params, "output_csv", output_csv)
    _put(params, "output_folder", output_folder)
    return schema.to_record(params)


def build_selected(
        input_raster=None,
        metrics=None,
        sizes=None,
        points=None,
        shape: str = "CIRCLE",
        distance_type: str = "THRESHOLD",
        distance_function: Optional[str] = None,
        friction_raster=None,
        output_raster=None,
        output_csv=None,
        output_folder=None,
        windows_path=None,
) -> PropertiesRecord:
    """Analyse sur fenêtres centrées sur des points (fichier 'ID';'X';'Y')."""
    kind = "selected"
    schema.require(kind, input_raster=input_raster, metrics=metrics, sizes=sizes, points=points)
    schema.exclusive(kind, output_raster=output_raster, output_folder=output_folder)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "metrics": to_list(metrics),
        "sizes": to_list(sizes),
        "points": to_value(points),
    }
    _window_distance(params, distance_type, distance_function, shape, friction_raster)
    _put(params, "output_raster", output_raster)
    _put(params, "output_csv", output_csv)
    _put(params, "output_folder", output_folder)
    _put(params, "windows_path", windows_path)
    return schema.to_record(params)


def build_grid(
        input_raster=None,
        metrics=None,
        sizes=None,
        maximum_rate_nodata_value: float = 100,
        output_raster=None,
        output_csv=None,
        output_folder=None,
) -> PropertiesRecord:
    kind = "grid"
    schema.require(kind, input_raster=input_raster, metrics=metrics, sizes=sizes)
    schema.exclusive(kind, output_raster=output_raster, output_folder=output_folder)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "metrics": to_list(metrics),
        "sizes": to_list(sizes),
    }
    if maximum_rate_nodata_value != 100:
        params["maximum_rate_nodata_value"] = Number(maximum_rate_nodata_value)
    _put(params, "output_raster", output_raster)
    _put(params, "output_csv", output_csv)
    _put(params, "output_folder", output_folder)
    return schema.to_record(params)


def build_map(input_raster=None, metrics=None, output_csv=None) -> PropertiesRecord:
    """Métriques calculées sur la carte entière."""
    kind = "map"
    schema.require(kind, input_raster=input_raster, metrics=metrics)
    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "metrics": to_list(metrics),
    }
    _put(params, "output_csv", output_csv)
    return schema.to_record(params)


# ─────────────────────────────────────────────────────────────────────────────
# Transformations de rasters
# ─────────────────────────────────────────────────────────────────────────────

def build_search_and_replace(input_raster=None, changes=None, output_raster=None,
                             nodata_value=None) -> PropertiesRecord:
    """Remplace des valeurs de pixels selon des couples (ancienne, nouvelle)."""
    kind = "search_and_replace"
    schema.require(kind, input_raster=input_raster, changes=changes, output_raster=output_raster)
    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "changes": to_pairs("changes", changes),
    }
    _put(params, "nodata_value", nodata_value)
    params["output_raster"] = to_value(output_raster)
    return schema.to_record(params)


def build_classification(input_raster=None, domains=None, output_raster=None) -> PropertiesRecord:
    """Classification par intervalles inclusifs (min, max) de valeurs."""
    kind = "classification"
    schema.require(kind, input_raster=input_raster, domains=domains, output_raster=output_raster)
    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "domains": to_pairs("domains", domains, sep="-"),
        "output_raster": to_value(output_raster),
    }
    return schema.to_record(params)


def build_combine(factors=None, combination: Optional[str] = None, output_raster=None) -> PropertiesRecord:
    """Combinaison de rasters nommés par une expression arithmétique."""
    kind = "combine"
    schema.require(kind, factors=factors, combination=combination, output_raster=output_raster)
    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "factors": to_pairs("factors", factors),
        "combination": Text(combination),
        "output_raster": to_value(output_raster),
    }
    return schema.to_record(params)


def build_cluster(
        input_raster=None,
        cluster_sources=None,
        cluster_type: str = "QUEEN",
        distance_raster=None,
        max_distance=None,
        output_raster=None,
        output_csv=None,
) -> PropertiesRecord:
    kind = "cluster"
    schema.require(kind, input_raster=input_raster, cluster_sources=cluster_sources,
                   cluster_type=cluster_type)
    if cluster_type == "DISTANCE":
        schema.require(kind, distance_raster=distance_raster, max_distance=max_distance)
    if not (schema.is_present(output_raster) or schema.is_present(output_csv)):
        raise MissingParameter("output_raster | output_csv", kind)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "cluster_sources": to_list(cluster_sources),
        "cluster_type": Text(cluster_type),
    }
    if cluster_type == "DISTANCE":
        params["distance_raster"] = to_value(distance_raster)
        params["max_distance"] = to_value(max_distance)
    _put(params, "output_raster", output_raster)
    _put(params, "output_csv", output_csv)
    return schema.to_record(params)


def build_overlay(input_raster=None, output_raster=None) -> PropertiesRecord:
    """Superposition de plusieurs rasters."""
    kind = "overlay"
    schema.require(kind, input_raster=input_raster, output_raster=output_raster)
    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "output_raster": to_value(output_raster),
    }
    return schema.to_record(params)


def build_distance(
        input_raster=None,
        distance_sources=None,
        output_raster=None,
        distance_type: str = "EUCLIDEAN",
        friction_raster=None,
        max_distance=None,
) -> PropertiesRecord:
    """Carte de distance aux pixels sources (euclidienne ou fonctionnelle)."""
    kind = "distance"
    schema.require(kind, input_raster=input_raster, distance_sources=distance_sources,
                   output_raster=output_raster)
    schema.choice("distance_type", distance_type, DISTANCE_MAP_TYPES)
    if distance_type == "FUNCTIONAL":
        schema.require(kind, friction_raster=friction_raster)
    elif schema.is_present(friction_raster):
        logger.warning("friction_raster ignoré pour une distance %s", distance_type)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_raster": to_list(input_raster),
        "distance_sources": to_list(distance_sources),
        "distance_type": Text(distance_type),
    }
    if distance_type == "FUNCTIONAL":
        params["friction_raster"] = to_value(friction_raster)
    _put(params, "max_distance", max_distance)
    params["output_raster"] = to_value(output_raster)
    return schema.to_record(params)


# ─────────────────────────────────────────────────────────────────────────────
# Rastérisation
# ─────────────────────────────────────────────────────────────────────────────

def build_raster_from_csv(
        input_csv=None,
        variables=None,
        entete=None,
        ref_raster=None,
        width=None,
        height=None,
        xmin=None,
        ymin=None,
        cellsize=None,
        nodata_value=None,
        crs=None,
        output_raster=None,
        output_folder=None,
        output_prefix=None,
        type_mime: str = "GEOTIFF",
) -> PropertiesRecord:
    """Rastérisation de variables d'un fichier CSV.

    La géométrie provient soit d'un fichier d'entête, soit d'un raster de
    référence, soit de l'emprise explicite (width, height, xmin, ymin,
    cellsize). La sortie est soit un raster unique, soit un dossier.
    """
    kind = "raster_from_csv"
    schema.require(kind, input_csv=input_csv, variables=variables)
    explicit = any(schema.is_present(v) for v in (width, height, xmin, ymin, cellsize))
    geometry = schema.exclusive(kind, entete=entete, ref_raster=ref_raster,
                                **{"width/height/xmin/ymin/cellsize": explicit or None})
    if geometry not in ("entete", "ref_raster"):
        schema.require(kind, width=width, height=height, xmin=xmin, ymin=ymin, cellsize=cellsize)
    output = schema.one_of(kind, output_raster=output_raster, output_folder=output_folder)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_csv": to_value(input_csv),
        "variables": to_list(variables),
    }
    if geometry == "entete":
        params["entete"] = to_value(entete)
    elif geometry == "ref_raster":
        params["ref_raster"] = to_value(ref_raster)
    else:
        for key, value in (("width", width), ("height", height), ("xmin", xmin),
                           ("ymin", ymin), ("cellsize", cellsize)):
            params[key] = to_value(value)
        _put(params, "nodata_value", nodata_value)
        _put(params, "crs", crs)

    if output == "output_raster":
        params["output_raster"] = to_value(output_raster)
    else:
        params["output_folder"] = to_value(output_folder)
        _put(params, "output_prefix", output_prefix)
        params["type_mime"] = Text(type_mime)
    return schema.to_record(params)


def build_raster_from_shapefile(
        input_shapefile=None,
        attribute: Optional[str] = None,
        output_raster=None,
        entete=None,
        ref_raster=None,
        xmin=None,
        xmax=None,
        ymin=None,
        ymax=None,
        cellsize=None,
        fill_value=None,
        nodata_value=None,
) -> PropertiesRecord:
    kind = "raster_from_shapefile"
    schema.require(kind, input_shapefile=input_shapefile, attribute=attribute,
                   output_raster=output_raster)
    explicit = any(schema.is_present(v) for v in (xmin, xmax, ymin, ymax, cellsize))
    geometry = schema.exclusive(kind, entete=entete, ref_raster=ref_raster,
                                **{"xmin/xmax/ymin/ymax/cellsize": explicit or None})
    if geometry not in ("entete", "ref_raster"):
        schema.require(kind, xmin=xmin, xmax=xmax, ymin=ymin, ymax=ymax, cellsize=cellsize)

    params: Dict[str, Value] = {
        "treatment": Text(kind),
        "input_shapefile": to_value(input_shapefile),
        "attribute": Text(attribute),
    }
    if geometry == "entete":
        params["entete"] = to_value(entete)
    elif geometry == "ref_raster":
        params["ref_raster"] = to_value(ref_raster)
    else:
        for key, value in (("xmin", xmin), ("xmax", xmax), ("ymin", ymin),
                           ("ymax", ymax), ("cellsize", cellsize)):
            params[key] = to_value(value)
    _put(params, "fill_value", fill_value)
    _put(params, "nodata_value", nodata_value)
    params["output_raster"] = to_value(output_raster)
    return schema.to_record(params)
