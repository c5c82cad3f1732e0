from http import HTTPStatus

import pytest
from fastapi.testclient import TestClient

from coinboard import crud
from coinboard.main import app

CORS_EXPECTED = {
    "access-control-allow-origin": "*",
    "access-control-allow-methods": "GET, POST, PUT, PATCH, DELETE, OPTIONS",
    "access-control-allow-headers": "Content-Type, Authorization",
}


def _assert_cors(response):
    for header, value in CORS_EXPECTED.items():
        assert response.headers[header] == value


@pytest.mark.parametrize(
    "path", ["/api/go/users", "/api/go/users/1", "/api/go/coin", "/not/a/route"]
)
def test_options_short_circuits_with_cors_headers(client, path):
    response = client.options(path)

    assert response.status_code == HTTPStatus.OK
    assert response.content == b""
    _assert_cors(response)


def test_regular_responses_carry_cors_and_json_content_type(client):
    response = client.get("/api/go/users")

    assert response.status_code == HTTPStatus.OK
    assert response.headers["content-type"] == "application/json"
    _assert_cors(response)


def test_error_responses_carry_cors_and_json_content_type(client):
    response = client.get("/api/go/users/abc")

    assert response.status_code == HTTPStatus.BAD_REQUEST
    assert response.headers["content-type"] == "application/json"
    _assert_cors(response)


def test_unknown_route_is_json_404(client):
    response = client.get("/api/go/nothing-here")

    assert response.status_code == HTTPStatus.NOT_FOUND
    assert response.headers["content-type"] == "application/json"
    assert response.json() == {"detail": "Not Found"}


def test_unhandled_error_is_json_500_with_cors_headers(monkeypatch):
    def _boom(db):
        raise ValueError("unexpected row shape")

    monkeypatch.setattr(crud, "get_users", _boom)

    with TestClient(app, raise_server_exceptions=False) as test_client:
        response = test_client.get("/api/go/users")

    assert response.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert response.json() == {"detail": "Internal server error"}
    assert "unexpected row shape" not in response.text
    assert response.headers["content-type"] == "application/json"
    _assert_cors(response)


@pytest.mark.parametrize("path", ["/docs", "/redoc"])
def test_html_docs_pages_are_not_served(client, path):
    response = client.get(path)

    assert response.status_code == HTTPStatus.NOT_FOUND
