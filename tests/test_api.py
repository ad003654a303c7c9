"""Tests for the HTTP endpoint."""

import pytest

from api import create_app
from tap_extractor.config import Config
from tap_extractor.exceptions import FetchError
from tap_extractor.pipeline import TapListPipeline


@pytest.fixture
def pipeline(config, source, engine):
    return TapListPipeline(config, source=source, engine=engine)


@pytest.fixture
def client(pipeline):
    app = create_app(pipeline=pipeline)
    app.config["TESTING"] = True
    return app.test_client()


def test_get_returns_tap_list_json(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.mimetype == "application/json"
    assert response.get_json()[0]["Brewery"] == "Acme Brewing"
    assert response.headers["Access-Control-Allow-Origin"] == "*"


def test_repeated_gets_serve_cached_bytes(client, source):
    first = client.get("/").data
    second = client.get("/").data

    assert first == second
    assert source.fetch_calls == 1


def test_post_not_allowed(client):
    assert client.post("/").status_code == 405


def test_unavailable_list_is_502(client, source):
    source.error = FetchError("unreachable")

    response = client.get("/")

    assert response.status_code == 502
    assert "unreachable" in response.get_json()["error"]


def test_warm_up_builds_document_at_start(source, engine):
    pipeline = TapListPipeline(Config(warm_on_start=True), source=source, engine=engine)

    create_app(pipeline=pipeline)

    assert source.fetch_calls == 1
    assert pipeline.cache.get() is not None


def test_warm_up_failure_is_not_fatal(source, engine):
    source.error = FetchError("unreachable")
    pipeline = TapListPipeline(Config(warm_on_start=True), source=source, engine=engine)

    app = create_app(pipeline=pipeline)

    assert pipeline.cache.get() is None
    assert app.test_client().get("/").status_code == 502
