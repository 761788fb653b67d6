from datetime import timedelta

from pricepaid.common.geo import GeoPoint, geo_from_lat_long, is_valid_coordinate
from pricepaid.common.ids import generate_run_id
from pricepaid.common.models import BuildType, ContractType, PropertyType, RefreshType
from pricepaid.common.time_utils import next_check_iso


def test_generate_run_id_prefix():
    assert generate_run_id().startswith("run-")
    assert generate_run_id("ingest").startswith("ingest-")


def test_next_check_iso_is_in_the_future():
    assert next_check_iso(timedelta(days=7)) > next_check_iso(timedelta(0))


def test_zero_coordinate_is_the_no_data_sentinel_not_a_location():
    # A literal 0 means the store had no data; it is not the equator or prime meridian.
    assert not is_valid_coordinate(0.0)
    assert geo_from_lat_long(0.0, 0.0) is None
    assert geo_from_lat_long(51.5, 0.0) is None


def test_coordinate_bounds_are_exclusive():
    assert not is_valid_coordinate(90.0)
    assert not is_valid_coordinate(-90.0)
    assert not is_valid_coordinate(91.0)
    assert is_valid_coordinate(-0.141)


def test_geo_from_lat_long_parses_strings_and_rejects_garbage():
    assert geo_from_lat_long("51.501", "-0.141") == GeoPoint(lat=51.501, long=-0.141)
    assert geo_from_lat_long("north", "-0.141") is None
    assert geo_from_lat_long(None, -0.141) is None


def test_geojson_orders_longitude_first():
    assert GeoPoint(lat=51.5, long=-0.1).to_geojson() == {"type": "Point", "coordinates": [-0.1, 51.5]}


def test_code_descriptions():
    assert PropertyType.parse("S").description == "Semi Detached"
    assert PropertyType.parse("X") is None
    assert PropertyType.parse(None) is None
    assert BuildType.parse("Y") is BuildType.NEW_BUILD
    assert BuildType.parse("N").description == "Old Build"
    assert ContractType.parse("F") is ContractType.FREEHOLD
    assert ContractType.parse("L").description == "Leasehold"


def test_refresh_type_labels():
    assert RefreshType.latest_month().label() == "latest-month"
    assert RefreshType.for_year(2021).label() == "year-2021"
    assert RefreshType.latest_month().is_latest_month
    assert not RefreshType.for_year(2021).is_latest_month
