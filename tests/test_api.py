"""
API tests: every route against an in-memory catalog.

The app's session, session factory and container cache dependencies are
overridden so requests share the test database.
"""

import uuid

import pytest
from fastapi.testclient import TestClient

from casefit.api.deps import get_container_cache, get_session_factory
from casefit.db.session import get_db
from casefit.main import app
from casefit.repositories.cache import ContainerQueryCache


@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_container_cache] = lambda: ContainerQueryCache(0)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def pair(make_payload, make_container):
    return make_payload(), make_container()


def _find(client, payload_id, **body):
    return client.post(f"/api/v1/matching/payloads/{payload_id}/containers", json=body)


@pytest.mark.integration
class TestServiceEndpoints:

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["status"] == "running"

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["components"]["database"] == "healthy"
        assert "container_cache" in body["components"]

    def test_config(self, client):
        body = client.get("/config").json()
        assert body["matching"]["clearance_buffer"] == 0.5
        assert body["feedback"]["algorithm_weight"] == 0.7


@pytest.mark.integration
class TestMatchingEndpoints:

    def test_find_compatible_containers(self, client, pair):
        payload, container = pair

        response = _find(client, payload.id)

        assert response.status_code == 200
        body = response.json()
        assert body["total_eligible"] == 1
        candidate = body["candidates"][0]
        assert candidate["container"]["id"] == str(container.id)
        assert candidate["compatibility_score"] == 92
        assert candidate["price_category"] == "mid-range"
        assert set(candidate["rules"]) == {"dimension", "protection", "feature", "rating"}

    def test_find_records_matches(self, client, pair):
        payload, _ = pair
        _find(client, payload.id)

        body = client.get("/api/v1/matches", params={"payload_id": str(payload.id)}).json()

        assert body["total"] == 1
        assert body["matches"][0]["payload"]["name"] == "Prophet 6"

    def test_unknown_payload(self, client):
        assert _find(client, uuid.uuid4()).status_code == 404

    def test_malformed_payload_id(self, client):
        assert _find(client, "not-a-uuid").status_code == 400

    def test_bad_sort_field(self, client, pair):
        payload, _ = pair
        assert _find(client, payload.id, sort_by="colour").status_code == 400

    def test_out_of_range_threshold(self, client, pair):
        payload, _ = pair
        assert _find(client, payload.id, min_compatibility_score=150).status_code == 422

    def test_score_pair_persists_nothing(self, client, pair):
        payload, container = pair

        response = client.post(
            "/api/v1/matching/score",
            json={"payload_id": str(payload.id), "container_id": str(container.id)},
        )

        assert response.status_code == 200
        assert response.json()["compatibility_score"] == 92
        assert client.get("/api/v1/matches").json()["total"] == 0

    def test_score_unknown_container(self, client, pair):
        payload, _ = pair
        response = client.post(
            "/api/v1/matching/score",
            json={"payload_id": str(payload.id), "container_id": str(uuid.uuid4())},
        )
        assert response.status_code == 404

    def test_batch_run(self, client, pair):
        response = client.post("/api/v1/matching/run", json={"max_workers": 1, "timeout_seconds": 30})

        assert response.status_code == 200
        body = response.json()
        assert body["total_payloads"] == 1
        assert body["processed"] == 1
        assert body["matches_upserted"] == 1

    def test_statistics(self, client, pair):
        payload, _ = pair
        _find(client, payload.id)

        body = client.get("/api/v1/matching/statistics").json()

        assert body["total_matches"] == 1
        assert body["average_score"] == 92
        top = body["score_distribution"][-1]
        assert top["range"] == "80-100"
        assert top["count"] == 1


@pytest.mark.integration
class TestMatchEndpoints:

    def test_get_match(self, client, pair):
        payload, _ = pair
        _find(client, payload.id)
        match_id = client.get("/api/v1/matches").json()["matches"][0]["id"]

        response = client.get(f"/api/v1/matches/{match_id}")

        assert response.status_code == 200
        assert response.json()["protection_level"] == "high"

    def test_min_score_filter(self, client, pair):
        payload, _ = pair
        _find(client, payload.id)

        assert client.get("/api/v1/matches", params={"min_score": 95}).json()["total"] == 0

    def test_match_without_protection_level(self, client, make_payload, make_container):
        payload = make_payload()
        make_container(protection_level=None)
        _find(client, payload.id, min_compatibility_score=0)

        body = client.get("/api/v1/matches").json()

        assert body["total"] == 1
        assert body["matches"][0]["protection_level"] is None
        assert body["matches"][0]["container"]["protection_level"] is None

    def test_unknown_match(self, client):
        assert client.get(f"/api/v1/matches/{uuid.uuid4()}").status_code == 404

    def test_malformed_match_id(self, client):
        assert client.get("/api/v1/matches/nope").status_code == 400


@pytest.mark.integration
class TestRecommendationEndpoints:

    def test_budget_alternative(self, client, pair, make_container):
        payload, primary = pair
        budget = make_container(name="Gator Budget Case", price=80)

        response = client.post(
            "/api/v1/recommendations",
            json={"payload_id": str(payload.id), "primary_container_id": str(primary.id)},
        )

        assert response.status_code == 200
        body = response.json()
        budget_recs = [r for r in body["recommendations"] if r["recommendation_type"] == "budget"]
        assert [r["container"]["id"] for r in budget_recs] == [str(budget.id)]
        assert all(0 <= r["confidence_score"] <= 100 for r in body["recommendations"])

    def test_primary_without_price(self, client, make_payload, make_container):
        payload = make_payload()
        primary = make_container(price=None)

        response = client.post(
            "/api/v1/recommendations",
            json={"payload_id": str(payload.id), "primary_container_id": str(primary.id)},
        )

        assert response.status_code == 400

    def test_unknown_primary(self, client, make_payload):
        response = client.post(
            "/api/v1/recommendations",
            json={"payload_id": str(make_payload().id), "primary_container_id": str(uuid.uuid4())},
        )
        assert response.status_code == 404


@pytest.mark.integration
class TestFeedbackEndpoints:

    def _submit(self, client, payload, container, rating, **extra):
        return client.post(
            "/api/v1/feedback",
            json={
                "payload_id": str(payload.id),
                "container_id": str(container.id),
                "rating": rating,
                **extra,
            },
        )

    def test_submit_creates_match(self, client, pair):
        payload, container = pair

        response = self._submit(client, payload, container, 4, actually_purchased=True)

        assert response.status_code == 201
        body = response.json()
        assert body["match_created"] is True
        assert body["compatibility_score"] == 80
        assert body["feedback"]["match_id"] == body["match_id"]

    def test_submit_blends_existing_match(self, client, pair):
        payload, container = pair
        _find(client, payload.id)

        body = self._submit(client, payload, container, 1).json()

        # round(92 * 0.7 + 20 * 0.3) = 70
        assert body["previous_score"] == 92
        assert body["compatibility_score"] == 70
        assert body["match_created"] is False

    def test_rating_out_of_range(self, client, pair):
        payload, container = pair
        assert self._submit(client, payload, container, 6).status_code == 422

    def test_unknown_container(self, client, make_payload):
        response = client.post(
            "/api/v1/feedback",
            json={"payload_id": str(make_payload().id), "container_id": str(uuid.uuid4()), "rating": 3},
        )
        assert response.status_code == 404

    def test_list_feedback(self, client, pair):
        payload, container = pair
        self._submit(client, payload, container, 5)
        self._submit(client, payload, container, 3)

        body = client.get(
            "/api/v1/feedback",
            params={"payload_id": str(payload.id), "container_id": str(container.id)},
        ).json()

        assert body["total"] == 2
        assert body["average_rating"] == 4.0

    def test_statistics_and_top_rated(self, client, pair):
        payload, container = pair
        self._submit(client, payload, container, 5, actually_purchased=True)
        self._submit(client, payload, container, 4)

        stats = client.get("/api/v1/feedback/statistics").json()
        top = client.get("/api/v1/feedback/top-rated", params={"payload_id": str(payload.id)}).json()

        assert stats["total_feedback"] == 2
        assert stats["purchase_rate"] == 50.0
        assert top[0]["container"]["id"] == str(container.id)
        assert top[0]["feedback_count"] == 2
