"""
Tests des routes HTTP du service bylines.

Chaque test construit une application sur un conteneur isolé (stockage mémoire) et vérifie les
codes de retour ainsi que l'enveloppe d'erreur `{code, message, trace_id, details}`.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from bylines.app import main
from bylines.app.main import create_app
from bylines.core.container import Container
from bylines.core.http_constants import (
    HTTP_BAD_REQUEST,
    HTTP_CONFLICT,
    HTTP_CREATED,
    HTTP_METHOD_NOT_ALLOWED,
    HTTP_NOT_FOUND,
    HTTP_OK,
)
from bylines.domain.entities import ContentItem
from tests.fakes import make_settings


@pytest.fixture
def client(container) -> TestClient:
    return TestClient(create_app(container))


def test_health(client) -> None:
    """Teste que l'endpoint de santé retourne un statut OK et les backends utilisés."""
    r = client.get("/health")
    assert r.status_code == HTTP_OK
    assert r.json() == {"status": "ok", "storage": "memory", "locks": "memory", "redis_url": False}


def test_request_id_header(client) -> None:
    r = client.get("/health", headers={"X-Request-ID": "req-1"})
    assert r.headers["X-Request-ID"] == "req-1"
    assert "X-Process-Time-ms" in r.headers


def test_create_and_get_byline(client) -> None:
    """Teste la création (201) puis la lecture d'une byline."""
    r = client.post("/bylines", json={"slug": "b1", "display_name": "Byline 1"})
    assert r.status_code == HTTP_CREATED
    body = r.json()
    assert body["slug"] == "b1"
    assert body["display_name"] == "Byline 1"

    r = client.get(f"/bylines/{body['id']}")
    assert r.status_code == HTTP_OK
    assert r.json() == body


def test_duplicate_slug_envelope(client) -> None:
    """Teste l'enveloppe d'erreur 409 sur slug dupliqué."""
    client.post("/bylines", json={"slug": "b1"})
    r = client.post("/bylines", json={"slug": "b1"}, headers={"X-Trace-ID": "trace-123"})
    assert r.status_code == HTTP_CONFLICT
    assert r.json() == {
        "code": "DUPLICATE_SLUG",
        "message": "slug already in use: b1",
        "trace_id": "trace-123",
        "details": {"slug": "b1"},
    }


def test_empty_slug_is_bad_request(client) -> None:
    r = client.post("/bylines", json={"slug": "  "})
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["code"] == "INVALID_SLUG"


def test_missing_byline_is_not_found(client) -> None:
    r = client.get("/bylines/999")
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "NOT_FOUND"


def test_update_byline(client) -> None:
    """Teste la mise à jour partielle et le 404 sur id inconnu."""
    created = client.post("/bylines", json={"slug": "b1", "bio": "Before"}).json()
    r = client.patch(f"/bylines/{created['id']}", json={"bio": "After"})
    assert r.status_code == HTTP_OK
    assert r.json()["bio"] == "After"
    assert r.json()["slug"] == "b1"

    r = client.patch("/bylines/999", json={"bio": "x"})
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "BYLINE_NOT_FOUND"


def test_user_byline_routes(client) -> None:
    """Teste la création idempotente de la byline d'un compte."""
    assert client.get("/users/7/byline").status_code == HTTP_NOT_FOUND

    first = client.post("/users/7/byline")
    second = client.post("/users/7/byline")
    assert first.status_code == HTTP_OK
    assert first.json() == second.json()
    assert first.json()["slug"] == "foobar"
    assert first.json()["linked_user_id"] == 7
    assert client.get("/users/7/byline").json() == first.json()

    r = client.post("/users/404/byline")
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json()["code"] == "USER_NOT_FOUND"


def test_save_and_read_content_bylines(client) -> None:
    """Teste la sauvegarde du payload de l'éditeur puis sa relecture ordonnée."""
    b1 = client.post("/bylines", json={"slug": "b1"}).json()
    r = client.put("/content/42/bylines", json={"bylines": ["u7", b1["id"], "junk"]})
    assert r.status_code == HTTP_OK
    assert [b["slug"] for b in r.json()["bylines"]] == ["foobar", "b1"]

    r = client.get("/content/42/bylines")
    assert r.json()["content_item_id"] == 42
    assert [b["slug"] for b in r.json()["bylines"]] == ["foobar", "b1"]

    r = client.put("/content/42/bylines", json={"bylines": None})
    assert r.json()["bylines"] == []


def test_fail_policy_rejects_save(users) -> None:
    """Teste le rejet 400 d'un jeton non résolu avec la politique stricte."""
    strict = Container(
        settings=make_settings(BYLINES_UNRESOLVED_TOKEN_POLICY="fail"), users=users
    )
    client = TestClient(create_app(strict))
    r = client.put("/content/42/bylines", json={"bylines": [999]})
    assert r.status_code == HTTP_BAD_REQUEST
    assert r.json()["code"] == "UNRESOLVED_TOKEN"
    assert r.json()["details"]["reason"] == "not_found"


def test_graphql_endpoint(client, container) -> None:
    """Teste l'exécution d'une requête GraphQL via HTTP."""
    container.content_store.save(ContentItem(1, "post", "Hello"))
    client.put("/content/1/bylines", json={"bylines": ["u7"]})
    r = client.post(
        "/graphql",
        json={
            "query": "query Posts { posts { nodes { title bylines { displayName } } } }",
            "operationName": "Posts",
        },
    )
    assert r.status_code == HTTP_OK
    assert r.json() == {
        "data": {"posts": {"nodes": [{"title": "Hello", "bylines": [{"displayName": "Foo Bar"}]}]}}
    }


def test_graphql_errors_are_returned_with_200(client) -> None:
    r = client.post("/graphql", json={"query": "{ unknownField }"})
    assert r.status_code == HTTP_OK
    assert r.json()["errors"]


def test_metrics_exposed(client) -> None:
    """Teste que l'endpoint /metrics expose les métriques métier."""
    client.post("/bylines", json={"slug": "b1"})
    r = client.get("/metrics")
    assert r.status_code == HTTP_OK
    assert b"http_requests_total" in r.content
    assert b"bylines_created_total" in r.content


def test_unmatched_routes_use_error_envelope(client) -> None:
    """Teste que les 404/405 produits par le routeur passent aussi par l'enveloppe d'erreur."""
    r = client.get("/nowhere", headers={"X-Trace-ID": "trace-404"})
    assert r.status_code == HTTP_NOT_FOUND
    assert r.json() == {"code": "NOT_FOUND", "message": "Not Found", "trace_id": "trace-404"}

    r = client.get("/graphql")
    assert r.status_code == HTTP_METHOD_NOT_ALLOWED
    assert r.json()["code"] == "METHOD_NOT_ALLOWED"


def test_run_uses_configured_host_and_port() -> None:
    """Teste que le point d'entrée lance uvicorn avec APP_HOST et APP_PORT."""
    settings = main.app.state.container.settings
    with patch("bylines.app.main.uvicorn.run") as run:
        main.run()
    run.assert_called_once_with(main.app, host=settings.APP_HOST, port=settings.APP_PORT)
