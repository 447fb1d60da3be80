"""Tests for the REST API."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from api import create_app
from identity import hash_value

from conftest import API_KEY, SOURCE_NAME, make_listing, make_entry


@pytest.fixture
def client(context):
    """A test client around an app sharing the in-memory context."""
    asyncio.run(context.sources.add(SOURCE_NAME, API_KEY))
    with TestClient(create_app(context=context)) as client:
        yield client


def upload(client, api_key=API_KEY, **fields):
    payload = {"worldID": 74, "itemID": 5333, "uploaderID": "uploader-1"}
    payload.update(fields)
    return client.post(f"/upload/{api_key}", json=payload)


def test_root(client):
    """Test the service banner."""
    response = client.get("/")
    assert response.status_code == 200
    assert response.json()["name"] == "Market Board API"


def test_upload_then_snapshot(client):
    """Test that an accepted upload is readable by world id and name."""
    response = upload(client, listings=[make_listing()])
    assert response.status_code == 200
    assert response.text == "Success"

    by_id = client.get("/api/74/5333").json()
    by_name = client.get("/api/coeurl/5333").json()
    assert by_id["listings"][0]["total"] == 3600
    assert by_name["listings"] == by_id["listings"]


def test_upload_errors(client):
    """Test the status codes of rejected uploads."""
    assert upload(client, api_key="wrong", listings=[make_listing()]).status_code == 401
    assert upload(client).status_code == 418
    assert upload(client, worldID=16, listings=[make_listing()]).status_code == 415
    assert upload(client, worldID=100, listings=[make_listing()]).status_code == 415
    assert upload(client, worldID=17, listings=[make_listing()]).status_code == 200

    response = client.post(
        f"/upload/{API_KEY}", content=b"not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 415

    response = client.post(
        f"/upload/{API_KEY}", content=b"{}", headers={"Content-Type": "text/plain"}
    )
    assert response.status_code == 415


def test_blacklisted_upload(client, context):
    """Test that banned uploaders are forbidden."""
    asyncio.run(context.blacklist.ban(hash_value("uploader-1")))
    assert upload(client, listings=[make_listing()]).status_code == 403


def test_multi_item_snapshot(client):
    """Test the gap-filled multi item response."""
    upload(client, itemID=2, listings=[make_listing()])

    body = client.get("/api/74/1,2,3").json()
    assert body["unresolvedItems"] == [1, 3]
    assert len(body["items"]) == 3


def test_invalid_item_ids(client):
    """Test that unparsable item ids are a bad request."""
    assert client.get("/api/74/abc").status_code == 400


def test_history(client):
    """Test extended history reads with an entry limit."""
    upload(client, entries=[make_entry(timestamp=t) for t in (1, 2, 3)])

    assert len(client.get("/api/history/74/5333?entries=10000").json()["entries"]) == 3
    assert len(client.get("/api/history/74/5333?entries=1").json()["entries"]) == 1


def test_content(client):
    """Test content identity lookups."""
    upload(client, contentID="42", characterName="Some One")

    assert client.get(f"/api/content/{hash_value('42')}").json()["characterName"] == "Some One"
    assert client.get("/api/content/unknown").json() == {}


def test_extra_stats(client):
    """Test the upload activity endpoints."""
    upload(client, listings=[make_listing()])
    upload(client, itemID=5334, listings=[make_listing()])

    days = client.get("/api/extra/stats/upload-history").json()["uploadCountByDay"]
    assert days[0]["count"] == 2

    recent = client.get("/api/extra/stats/most-recently-updated?entries=1").json()["items"]
    least = client.get("/api/extra/stats/least-recently-updated").json()["items"]
    assert len(recent) == 1
    assert {item["itemID"] for item in least} == {5333, 5334}
