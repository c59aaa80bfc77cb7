# ─────────────────────────────────────────────────────────────────────────────
# chloe/api.py
# ─────────────────────────────────────────────────────────────────────────────
"""Fonctions de haut niveau : construire, écrire et lancer un traitement.

Chaque fonction accepte les paramètres du builder correspondant, plus :
* ``properties_file`` : chemin du fichier de propriétés (temporaire sinon) ;
* ``dispatcher`` : Dispatcher à utiliser (sinon construit depuis la
  configuration YAML chargée à chaque appel).

Exemple::

    from chloe import sliding_window
    sliding_window("sample.tif", metrics=["SHDI", "HET"], sizes=[51, 101],
                   output_csv="sample_metrics.csv", displacement=5,
                   interpolation=True)
"""

from __future__ import annotations
import functools
from typing import Callable, Optional

from . import procedures, treatments
from .properties import PropertiesRecord
from .run import Dispatcher, ExitStatus, run_chloe


def _launcher(name: str, builder: Callable[..., PropertiesRecord]) -> Callable[..., ExitStatus]:
    @functools.wraps(builder)
    def launch(*args, properties_file=None, dispatcher: Optional[Dispatcher] = None, **kwargs):
        # La validation précède toute écriture sur disque
        record = builder(*args, **kwargs)
        return run_chloe(record, properties_file, dispatcher)

    launch.__name__ = launch.__qualname__ = name
    return launch


sliding_window = _launcher("sliding_window", treatments.build_sliding)
selected_window = _launcher("selected_window", treatments.build_selected)
grid_window = _launcher("grid_window", treatments.build_grid)
map_window = _launcher("map_window", treatments.build_map)
search_replace = _launcher("search_replace", treatments.build_search_and_replace)
classification = _launcher("classification", treatments.build_classification)
combine = _launcher("combine", treatments.build_combine)
cluster = _launcher("cluster", treatments.build_cluster)
overlay = _launcher("overlay", treatments.build_overlay)
distance = _launcher("distance", treatments.build_distance)
raster_from_csv = _launcher("raster_from_csv", treatments.build_raster_from_csv)
raster_from_shapefile = _launcher("raster_from_shapefile", treatments.build_raster_from_shapefile)

grain_bocager = _launcher("grain_bocager", procedures.build_grain_bocager)
eco_landscape = _launcher("eco_landscape", procedures.build_ecolandscape)
erosion = _launcher("erosion", procedures.build_erosion)
ephestia_toulouse = _launcher("ephestia_toulouse", procedures.build_ephestia_toulouse)
