"""Tests for the HTTP API."""

from pathlib import Path

import pytest
from starlette.testclient import TestClient

from depmap_cli.config import ServerSettings
from depmap_cli.server import create_app


@pytest.fixture
def client() -> TestClient:
    settings = ServerSettings(
        cors_origins=["http://localhost:4321"],
        match_mode="first",
        max_workers=2,
        include_error_files=False,
    )
    return TestClient(create_app(settings))


def test_health(client: TestClient):
    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert "T" in data["timestamp"]


def test_dependency_map(client: TestClient, sample_project_path: Path):
    """Test a successful request returns the graph in node/link form."""
    response = client.post("/dependency-map", json={"folderPath": str(sample_project_path)})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["folderPath"] == str(sample_project_path)
    graph = data["dependencyMap"]
    assert {"id": "./src/index.ts"} in graph["nodes"]
    assert len(graph["nodes"]) == 8
    assert len(graph["links"]) == 10
    assert {"source": "./src/lib/index.ts", "target": "./src/lib/helper.js"} in graph["links"]


def test_dependency_map_missing_folder(client: TestClient, temp_dir: Path):
    response = client.post("/dependency-map", json={"folderPath": str(temp_dir / "missing")})

    assert response.status_code == 400
    assert response.json() == {"error": "Folder does not exist", "code": "FOLDER_NOT_FOUND"}


@pytest.mark.parametrize("body,code", [
    ({}, "MISSING_FOLDER_PATH"),
    ({"folderPath": None}, "MISSING_FOLDER_PATH"),
    ({"folderPath": 42}, "INVALID_FOLDER_PATH_TYPE"),
    ({"folderPath": ["a"]}, "INVALID_FOLDER_PATH_TYPE"),
    ({"folderPath": ""}, "EMPTY_FOLDER_PATH"),
    ({"folderPath": "   "}, "EMPTY_FOLDER_PATH"),
    ([], "INVALID_BODY"),
    ("just a string", "INVALID_BODY"),
])
def test_dependency_map_validation(client: TestClient, body, code: str):
    response = client.post("/dependency-map", json=body)

    assert response.status_code == 400
    assert response.json()["code"] == code
    assert response.json()["error"]


def test_dependency_map_malformed_json(client: TestClient):
    response = client.post(
        "/dependency-map",
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_BODY"


def test_dependency_map_root_escape(client: TestClient, make_project):
    root = make_project({"a.ts": "import x from '../outside';\n"})

    response = client.post("/dependency-map", json={"folderPath": str(root)})

    assert response.status_code == 400
    assert response.json()["code"] == "ROOT_ESCAPE"
    assert "../outside" in response.json()["error"]


def test_health_wrong_method(client: TestClient):
    assert client.post("/health").status_code == 405


def test_cors_allowed_origin(client: TestClient):
    response = client.options(
        "/dependency-map",
        headers={
            "Origin": "http://localhost:4321",
            "Access-Control-Request-Method": "POST",
        },
    )

    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "http://localhost:4321"


def test_cors_disallowed_origin(client: TestClient):
    response = client.get("/health", headers={"Origin": "http://evil.example"})

    assert response.status_code == 200
    assert "access-control-allow-origin" not in response.headers


def test_dependency_map_invalid_match_mode(sample_project_path: Path):
    """Test a misconfigured match mode is reported as a structured error."""
    client = TestClient(create_app(ServerSettings(match_mode="best", max_workers=1)))

    response = client.post("/dependency-map", json={"folderPath": str(sample_project_path)})

    assert response.status_code == 400
    assert response.json()["code"] == "INVALID_MATCH_MODE"
    assert "best" in response.json()["error"]
