import pytest

from chloe import ConflictingParameters, InvalidParameter, MissingParameter
from chloe.treatments import (
    DEFAULT_DISTANCE_FUNCTION,
    build_classification,
    build_cluster,
    build_combine,
    build_distance,
    build_grid,
    build_map,
    build_overlay,
    build_raster_from_csv,
    build_raster_from_shapefile,
    build_search_and_replace,
    build_selected,
    build_sliding,
)


def test_sliding_fast_gaussian():
    record = build_sliding("sample.tif", metrics=["SHDI", "HET"], sizes=[51, 101],
                           distance_type="FAST_GAUSSIAN")
    assert record.lines() == [
        "treatment=sliding",
        "input_raster={sample.tif}",
        "metrics={SHDI;HET}",
        "sizes={51;101}",
        "distance_type=FAST_GAUSSIAN",
    ]
    assert "distance_function" not in record
    assert "shape" not in record


def test_sliding_fast_ignores_distance_function():
    record = build_sliding("sample.tif", ["SHDI"], [51], distance_type="FAST_SQUARE",
                           distance_function="exp(-distance)")
    assert record["distance_type"] == "FAST_SQUARE"
    assert "distance_function" not in record


def test_sliding_friction_forces_functional_shape():
    record = build_sliding("sample.tif", ["SHDI"], [51], shape="CIRCLE", friction_raster="f.tif")
    assert record["shape"] == "FUNCTIONAL"
    assert record["friction_raster"] == "f.tif"
    assert record.keys().index("shape") + 1 == record.keys().index("friction_raster")


def test_sliding_functional_without_friction_falls_back_to_circle():
    record = build_sliding("sample.tif", ["SHDI"], [51], shape="FUNCTIONAL")
    assert record["shape"] == "CIRCLE"
    assert "friction_raster" not in record


def test_sliding_distance_function_upgrades_to_weighted():
    record = build_sliding("sample.tif", ["SHDI"], [51], distance_type="THRESHOLD",
                           distance_function="exp(-distance)")
    assert record["distance_type"] == "WEIGHTED"
    assert record["distance_function"] == "exp(-distance)"


def test_sliding_weighted_uses_gaussian_by_default():
    record = build_sliding("sample.tif", ["SHDI"], [51], distance_type="WEIGHTED")
    assert record["distance_function"] == DEFAULT_DISTANCE_FUNCTION


def test_sliding_full_order():
    record = build_sliding(
        ["a.tif", "b.tif"], ["SHDI"], [51],
        displacement=5, interpolation=True, filters=[1, 2],
        maximum_rate_nodata_value=20, output_csv="out.csv", output_folder="out",
    )
    assert record.lines() == [
        "treatment=sliding",
        "input_raster={a.tif;b.tif}",
        "metrics={SHDI}",
        "sizes={51}",
        "distance_type=THRESHOLD",
        "shape=CIRCLE",
        "displacement=5",
        "interpolation=true",
        "filters={1;2}",
        "maximum_rate_nodata_value=20",
        "output_csv=out.csv",
        "output_folder=out",
    ]


def test_sliding_default_displacement_emits_nothing():
    record = build_sliding("sample.tif", ["SHDI"], [51], interpolation=True)
    assert "displacement" not in record
    assert "interpolation" not in record
    assert "maximum_rate_nodata_value" not in record


@pytest.mark.parametrize("kwargs", [
    {"distance_type": "GAUSSIAN"},
    {"shape": "HEXAGON"},
])
def test_sliding_rejects_unknown_enumerations(kwargs):
    with pytest.raises(InvalidParameter):
        build_sliding("sample.tif", ["SHDI"], [51], **kwargs)


@pytest.mark.parametrize("kwargs, names", [
    ({"filters": [1], "unfilters": [2]}, ("filters", "unfilters")),
    ({"output_raster": "o.tif", "output_folder": "out"}, ("output_raster", "output_folder")),
])
def test_sliding_exclusive_pairs(kwargs, names):
    with pytest.raises(ConflictingParameters) as excinfo:
        build_sliding("sample.tif", ["SHDI"], [51], **kwargs)
    assert excinfo.value.names == names


def test_sliding_is_deterministic():
    kwargs = dict(metrics=["SHDI", "HET"], sizes=[51, 101], friction_raster="f.tif",
                  displacement=3, output_csv="o.csv")
    assert build_sliding("s.tif", **kwargs).text() == build_sliding("s.tif", **kwargs).text()


def test_selected_window():
    record = build_selected("sample.tif", ["SHDI"], [51], points="pts.csv",
                            distance_function="exp(-distance)", windows_path="win")
    assert record.lines() == [
        "treatment=selected",
        "input_raster={sample.tif}",
        "metrics={SHDI}",
        "sizes={51}",
        "points=pts.csv",
        "distance_type=WEIGHTED",
        "distance_function=exp(-distance)",
        "shape=CIRCLE",
        "windows_path=win",
    ]


def test_grid_and_map():
    grid = build_grid("sample.tif", ["SHDI"], [100], maximum_rate_nodata_value=50,
                      output_csv="grid.csv")
    assert grid.lines() == [
        "treatment=grid",
        "input_raster={sample.tif}",
        "metrics={SHDI}",
        "sizes={100}",
        "maximum_rate_nodata_value=50",
        "output_csv=grid.csv",
    ]
    assert build_map("sample.tif", ["SHDI", "NP"]).lines() == [
        "treatment=map",
        "input_raster={sample.tif}",
        "metrics={SHDI;NP}",
    ]


def test_search_and_replace():
    record = build_search_and_replace("in.tif", [(1, 5), (7, 3)], "out.tif", nodata_value=-1)
    assert record.lines() == [
        "treatment=search_and_replace",
        "input_raster={in.tif}",
        "changes={(1,5);(7,3)}",
        "nodata_value=-1",
        "output_raster=out.tif",
    ]


def test_classification_uses_ranges():
    record = build_classification("in.tif", [(1, 5), (6, 10)], "out.tif")
    assert record["domains"] == "{(1-5);(6-10)}"


def test_combine():
    record = build_combine([("f1", "f1.tif"), ("f2", "f2.tif")], '"f1" * 2 + "f2"', "out.tif")
    assert record.lines() == [
        "treatment=combine",
        "factors={(f1,f1.tif);(f2,f2.tif)}",
        'combination="f1" * 2 + "f2"',
        "output_raster=out.tif",
    ]


def test_cluster_distance_requires_raster_and_max_distance():
    with pytest.raises(MissingParameter) as excinfo:
        build_cluster("in.tif", [1, 2], cluster_type="DISTANCE", output_csv="c.csv")
    assert excinfo.value.name == "distance_raster"

    record = build_cluster("in.tif", [1, 2], cluster_type="DISTANCE", distance_raster="d.tif",
                           max_distance=100, output_raster="c.tif")
    assert record.keys() == ["treatment", "input_raster", "cluster_sources", "cluster_type",
                             "distance_raster", "max_distance", "output_raster"]


def test_cluster_requires_an_output():
    with pytest.raises(MissingParameter):
        build_cluster("in.tif", [1])


def test_overlay():
    assert build_overlay(["a.tif", "b.tif"], "o.tif").lines() == [
        "treatment=overlay",
        "input_raster={a.tif;b.tif}",
        "output_raster=o.tif",
    ]


def test_distance_functional_requires_friction():
    with pytest.raises(MissingParameter) as excinfo:
        build_distance("in.tif", [1], "out.tif", distance_type="FUNCTIONAL")
    assert excinfo.value.name == "friction_raster"

    record = build_distance("in.tif", [1], "out.tif", distance_type="FUNCTIONAL",
                            friction_raster="f.tif", max_distance=250)
    assert record.lines() == [
        "treatment=distance",
        "input_raster={in.tif}",
        "distance_sources={1}",
        "distance_type=FUNCTIONAL",
        "friction_raster=f.tif",
        "max_distance=250",
        "output_raster=out.tif",
    ]


def test_distance_euclidean_drops_friction():
    record = build_distance("in.tif", [1], "out.tif", friction_raster="f.tif")
    assert "friction_raster" not in record


def test_raster_from_csv_explicit_geometry_and_folder():
    record = build_raster_from_csv(
        "table.csv", ["SHDI", "HET"], width=100, height=50, xmin=0.5, ymin=10,
        cellsize=5, nodata_value=-1, crs="EPSG:2154", output_folder="out",
        output_prefix="t_",
    )
    assert record.lines() == [
        "treatment=raster_from_csv",
        "input_csv=table.csv",
        "variables={SHDI;HET}",
        "width=100",
        "height=50",
        "xmin=0.5",
        "ymin=10",
        "cellsize=5",
        "nodata_value=-1",
        "crs=EPSG:2154",
        "output_folder=out",
        "output_prefix=t_",
        "type_mime=GEOTIFF",
    ]


def test_raster_from_csv_partial_geometry_is_missing():
    with pytest.raises(MissingParameter) as excinfo:
        build_raster_from_csv("table.csv", ["SHDI"], width=100, output_raster="o.tif")
    assert excinfo.value.name == "height"


@pytest.mark.parametrize("kwargs", [
    {"entete": "h.txt", "ref_raster": "r.tif", "output_raster": "o.tif"},
    {"entete": "h.txt", "width": 10, "output_raster": "o.tif"},
    {"entete": "h.txt", "output_raster": "o.tif", "output_folder": "out"},
])
def test_raster_from_csv_exclusive_sources(kwargs):
    with pytest.raises(ConflictingParameters):
        build_raster_from_csv("table.csv", ["SHDI"], **kwargs)


def test_raster_from_shapefile_with_ref_raster():
    record = build_raster_from_shapefile("parcels.shp", "code", "o.tif", ref_raster="r.tif",
                                         fill_value=0)
    assert record.lines() == [
        "treatment=raster_from_shapefile",
        "input_shapefile=parcels.shp",
        "attribute=code",
        "ref_raster=r.tif",
        "fill_value=0",
        "output_raster=o.tif",
    ]


@pytest.mark.parametrize("call", [
    lambda: build_sliding("a.tif", ["SHDI;HET"], [51]),
    lambda: build_map("a.tif", ["{SHDI}"]),
    lambda: build_combine([("a,b", "a.tif")], "a", "o.tif"),
    lambda: build_search_and_replace("in.tif", [("(1", 5)], "o.tif"),
    lambda: build_combine([("a", "a.tif")], "a\n*2", "o.tif"),
])
def test_reserved_characters_rejected_at_build_time(call):
    with pytest.raises(InvalidParameter):
        call()
