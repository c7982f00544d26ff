# Copyright (c) 2025 Cade Russell (Ghost Peony)
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Tests for the skills HTTP API."""
import shutil

import pytest
from fastapi.testclient import TestClient

from conftest import write_skill
from skilldex.core.skills.engine import SkillEngine
from skilldex.main import create_app


@pytest.fixture
def engine(skill_root, test_settings):
    return SkillEngine(root_path=str(skill_root), settings=test_settings)


@pytest.fixture
def client(engine):
    with TestClient(create_app(engine)) as c:
        yield c


class TestListing:
    def test_list_skills(self, client):
        response = client.get("/api/skills")

        assert response.status_code == 200
        names = [s["name"] for s in response.json()]
        assert names == ["junit5", "mockito", "pytest-fixtures", "test-data-builders"]

    def test_list_skills_filtered(self, client):
        response = client.get("/api/skills", params={"category": "test-data", "language": "python"})
        assert [s["name"] for s in response.json()] == ["pytest-fixtures", "test-data-builders"]

    def test_skill_detail(self, client):
        response = client.get("/api/skills/by-name/junit5")

        assert response.status_code == 200
        data = response.json()
        assert data["categories"] == ["assertion", "test-framework"]
        assert data["languages"] == ["java", "kotlin"]
        assert data["body"] == "Skill body."
        assert data["version"] == "1.0.0"

    def test_unknown_skill_returns_error_format(self, client):
        response = client.get("/api/skills/by-name/nope")

        assert response.status_code == 404
        data = response.json()
        assert data["error"] == "ResourceNotFoundError"
        assert data["detail"]["resource_id"] == "nope"

    def test_agents(self, client):
        response = client.get("/api/skills/agents")
        assert [a["name"] for a in response.json()] == ["test-writer"]

        response = client.get("/api/skills/agents/test-writer")
        assert response.json()["declared_categories"] == ["mocking", "test-framework"]

        assert client.get("/api/skills/agents/missing").status_code == 404


class TestResolve:
    def test_resolve_with_gap(self, client):
        response = client.post("/api/skills/resolve", json={
            "language": "java",
            "categories": ["test-framework", "contract-testing"],
        })

        assert response.status_code == 200
        data = response.json()
        assert data["generation"] == 1
        assert data["slots"][0]["skill"]["name"] == "junit5"
        assert data["slots"][0]["score"] == 100
        gap = data["slots"][1]
        assert gap["skill"] is None
        assert gap["category"] == "contract-testing"
        assert "contract-testing" in gap["note"]
        assert data["gaps"] == ["contract-testing"]

    def test_language_inferred_from_file_path(self, client):
        response = client.post("/api/skills/resolve", json={
            "categories": ["mocking", "test-data"],
            "file_path": "src/test/java/OrderServiceTest.java",
        })

        data = response.json()
        assert data["language"] == "java"
        assert [slot["skill"]["name"] for slot in data["slots"]] == ["mockito", "test-data-builders"]

    def test_task_keywords_used(self, client):
        response = client.post("/api/skills/resolve", json={
            "language": "python",
            "categories": ["test-data"],
            "task": "Write a builder for order test data",
        })

        data = response.json()
        assert "builder" in data["keywords"]
        assert data["slots"][0]["skill"]["name"] == "test-data-builders"

    def test_invalid_body_rejected(self, client):
        response = client.post("/api/skills/resolve", json={"categories": "mocking"})

        assert response.status_code == 422
        assert response.json()["error"] == "ValidationError"


class TestStatusAndReload:
    def test_status(self, client, engine):
        data = client.get("/api/skills/status").json()

        assert data["generation"] == 1
        assert data["skill_count"] == 4
        assert data["agent_count"] == 1
        assert data["errors"] == []
        assert data["watching"] is False

    def test_reload_reports_errors(self, client, skill_root):
        write_skill(skill_root, "legacy", categories=None)

        response = client.post("/api/skills/reload")

        assert response.status_code == 200
        data = response.json()
        assert data["generation"] == 2
        assert data["skill_count"] == 4
        assert data["errors"][0]["error"] == "EmptyCategoriesError"

    def test_health(self, client):
        data = client.get("/health").json()
        assert data == {"status": "healthy", "generation": 1, "skills": 4}


class TestReservedLookingNames:
    @pytest.mark.parametrize("name", ["status", "agents", "resolve"])
    def test_skill_named_like_a_route_is_reachable(self, client, skill_root, name):
        write_skill(skill_root, name, description=f"skill called {name}")
        client.post("/api/skills/reload")

        response = client.get(f"/api/skills/by-name/{name}")

        assert response.status_code == 200
        assert response.json()["description"] == f"skill called {name}"


class TestUnavailable:
    def test_queries_refused_before_initialize(self, engine):
        # No context manager: lifespan never runs, so the engine stays uninitialized
        client = TestClient(create_app(engine))

        response = client.get("/api/skills")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "ServiceUnavailableError"
        assert data["detail"]["served_generation"] == 0
        assert client.post("/api/skills/resolve", json={"categories": ["mocking"]}).status_code == 503

    def test_status_available_before_initialize(self, engine):
        client = TestClient(create_app(engine))

        response = client.get("/api/skills/status")

        assert response.status_code == 200
        assert response.json()["generation"] == 0

    def test_reload_on_vanished_root(self, client, skill_root):
        shutil.rmtree(skill_root)

        response = client.post("/api/skills/reload")

        assert response.status_code == 503
        data = response.json()
        assert data["error"] == "RootUnreadableError"
        assert data["detail"]["served_generation"] == 1
        assert "reason" in data["detail"]

        # Last good snapshot keeps answering queries
        assert client.get("/api/skills/by-name/mockito").status_code == 200
