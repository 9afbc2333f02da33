from __future__ import annotations

import pytest

from conftest import make_record

from pharmacy_guard.errors import MalformedQuery
from pharmacy_guard.nearest import find_nearest, haversine_km, parse_query_point, query_nearest


def test_haversine_known_distances():
    assert haversine_km(35.76, -5.83, 35.76, -5.83) == 0
    # One degree of latitude is ~111.19 km on a 6371 km sphere
    assert haversine_km(0, 0, 1, 0) == pytest.approx(111.195, abs=0.001)


def test_nearest_scenario():
    records = [
        make_record("Pharmacie Centre", 35.759, -5.834),
        make_record("Pharmacie Ouest", 35.770, -5.900),
    ]

    match = find_nearest(35.760, -5.835, records)

    assert match.record.name == "Pharmacie Centre"
    assert 0.1 <= match.distance_km <= 0.2
    assert match.distance_km == round(match.distance_km, 3)


def test_nearest_empty_subset_is_not_found():
    assert find_nearest(35.76, -5.83, []) is None


def test_nearest_skips_closed_and_unlocated_records():
    records = [
        make_record("Pharmacie Fermee", 35.7601, -5.8351, is_open=False),
        make_record("Pharmacie Sans Position"),
        make_record("Pharmacie Loin", 35.80, -5.90),
    ]

    match = find_nearest(35.760, -5.835, records)
    assert match.record.name == "Pharmacie Loin"

    assert find_nearest(35.760, -5.835, records[:2]) is None


def test_nearest_tie_keeps_first_record():
    records = [
        make_record("Pharmacie Premiere", 35.77, -5.83),
        make_record("Pharmacie Seconde", 35.77, -5.83),
    ]
    assert find_nearest(35.76, -5.83, records).record.name == "Pharmacie Premiere"
    assert find_nearest(35.76, -5.83, records[::-1]).record.name == "Pharmacie Seconde"


def test_query_nearest_reads_open_records(memory_store):
    memory_store.replace_all([
        make_record("Pharmacie Fermee", 35.760, -5.835, is_open=False),
        make_record("Pharmacie Ouverte", 35.770, -5.900),
    ])

    match = query_nearest(memory_store, 35.760, -5.835)

    assert match.record.name == "Pharmacie Ouverte"
    assert match.record.id is not None
    assert match.to_dict()["distance"] == match.distance_km


@pytest.mark.parametrize("lat, lon", [("35.76", "-5.83"), (35.76, -5.83), (0, 0), (-90, 180)])
def test_parse_query_point_accepts_numbers(lat, lon):
    assert parse_query_point(lat, lon) == (float(lat), float(lon))


@pytest.mark.parametrize("lat, lon", [
    (None, -5.83),
    (35.76, ""),
    ("north", -5.83),
    (True, -5.83),
    (float("nan"), -5.83),
    ([35.76], -5.83),
    (91, 0),
    (0, -180.5),
])
def test_parse_query_point_rejects_malformed(lat, lon):
    with pytest.raises(MalformedQuery):
        parse_query_point(lat, lon)
