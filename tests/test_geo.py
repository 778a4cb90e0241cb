import math

import pytest

from app.services.geo import (
    EARTH_RADIUS_KM, bounding_box, find_nearby_hospitals, haversine_km
)
from tests.conftest import MUMBAI


class TestHaversine:

    def test_same_point(self):
        assert haversine_km(19.07, 72.87, 19.07, 72.87) == 0.0

    def test_one_degree_of_latitude(self):
        expected = EARTH_RADIUS_KM * math.pi / 180
        assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(expected, rel=1e-9)

    def test_mumbai_to_pune(self):
        assert haversine_km(19.0760, 72.8777, 18.5204, 73.8567) == pytest.approx(120, abs=5)

    def test_symmetric(self):
        there = haversine_km(19.07, 72.87, 28.61, 77.21)
        back = haversine_km(28.61, 77.21, 19.07, 72.87)
        assert there == pytest.approx(back)

    def test_antipodes(self):
        assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(EARTH_RADIUS_KM * math.pi)


class TestBoundingBox:

    def test_box_contains_radius(self):
        min_lat, max_lat, min_lon, max_lon = bounding_box(19.07, 72.87, 50)
        assert haversine_km(19.07, 72.87, max_lat, 72.87) == pytest.approx(50, rel=1e-6)
        assert min_lat < 19.07 < max_lat
        assert min_lon < 72.87 < max_lon

    def test_pole_drops_longitude_bounds(self):
        _, max_lat, min_lon, max_lon = bounding_box(89.9, 10.0, 50)
        assert max_lat == 90.0
        assert min_lon is None and max_lon is None

    def test_antimeridian_drops_longitude_bounds(self):
        _, _, min_lon, max_lon = bounding_box(0.0, 179.9, 50)
        assert min_lon is None and max_lon is None


class TestFindNearby:

    def test_filters_and_orders_by_distance(self, db_session, make_hospital):
        far = make_hospital(latitude=19.61)
        mid = make_hospital(latitude=19.16)
        near = make_hospital(latitude=19.097)

        matches = find_nearby_hospitals(db_session, *MUMBAI, radius_km=50)
        assert [hospital.id for hospital, _ in matches] == [near.id, mid.id]
        assert far.id not in [hospital.id for hospital, _ in matches]

    def test_radius_bounds_results(self, db_session, make_hospital):
        make_hospital(latitude=19.16)
        assert find_nearby_hospitals(db_session, *MUMBAI, radius_km=9.9) == []
        assert len(find_nearby_hospitals(db_session, *MUMBAI, radius_km=10.1)) == 1

    def test_limit(self, db_session, make_hospital):
        for offset in (0.01, 0.02, 0.03):
            make_hospital(latitude=MUMBAI[0] + offset)
        matches = find_nearby_hospitals(db_session, *MUMBAI, limit=2)
        assert len(matches) == 2
        assert matches[0][1] < matches[1][1]

    def test_emergency_only(self, db_session, make_hospital):
        make_hospital(emergency_services=False)
        assert len(find_nearby_hospitals(db_session, *MUMBAI)) == 1
        assert find_nearby_hospitals(db_session, *MUMBAI, emergency_only=True) == []

    def test_inactive_hospitals_excluded(self, db_session, make_hospital):
        make_hospital(is_active=False)
        assert find_nearby_hospitals(db_session, *MUMBAI) == []

    def test_search_across_antimeridian(self, db_session, make_hospital):
        hospital = make_hospital(latitude=0.0, longitude=-179.95)
        matches = find_nearby_hospitals(db_session, 0.0, 179.95, radius_km=50)
        assert [h.id for h, _ in matches] == [hospital.id]


class TestNearbyEndpoint:

    def test_nearby_hospitals(self, client, register_hospital):
        register_hospital(email="near@example.com", name="Near", latitude=19.097)
        register_hospital(email="far@example.com", name="Far", latitude=19.61)

        response = client.get(
            "/api/v1/hospitals/nearby",
            params={"latitude": MUMBAI[0], "longitude": MUMBAI[1], "radius": 50}
        )
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["data"][0]["name"] == "Near"
        assert body["data"][0]["distance"] == pytest.approx(3.0, abs=0.1)
        assert body["data"][0]["coordinates"] == [MUMBAI[1], 19.097]

    def test_nearby_requires_coordinates(self, client, test_db):
        response = client.get("/api/v1/hospitals/nearby", params={"latitude": 19.0})
        assert response.status_code == 400
