"""
HTTP surface tests: conversion, channel and variable endpoints.
"""

import pytest
from fastapi.testclient import TestClient


def _content():
    return {
        "version": "2022-01-01",
        "elements": [
            {
                "type": "channel",
                "channel": "email",
                "elements": [
                    {"type": "meta", "title": "Welcome"},
                    {"type": "text", "content": "Hi {{name}}", "text_style": "h1"},
                    {"type": "action", "content": "Go", "href": "https://x.io"},
                ],
            },
            {
                "type": "channel",
                "channel": "sms",
                "raw": {"subject": "Text subject"},
                "elements": [{"type": "text", "content": "Hey"}],
            },
        ],
    }


@pytest.fixture()
def client():
    """Return a TestClient for the FastAPI app."""
    from designer.main import app
    return TestClient(app)


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------

class TestHealth:
    """Root and health endpoints."""

    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Designer API"

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


# ===========================================================================
# POST /api/convert/to-tree
# ===========================================================================

class TestToTree:
    """POST /api/convert/to-tree loads one channel as an editing tree."""

    def test_loads_channel(self, client):
        response = client.post("/api/convert/to-tree", json={"content": _content(), "channel": "email"})
        assert response.status_code == 200
        data = response.json()
        assert data["channel"] == "email"
        assert [b["type"] for b in data["doc"]["content"]] == ["heading", "button"]
        assert data["title"]["value"] == "Welcome"
        assert data["title"]["location"] == "structured"
        assert data["diagnostics"] == []

    def test_raw_title_state(self, client):
        response = client.post("/api/convert/to-tree", json={"content": _content(), "channel": "sms"})
        title = response.json()["title"]
        assert (title["location"], title["raw_key"], title["value"]) == ("raw", "subject", "Text subject")

    def test_default_channel(self, client):
        response = client.post("/api/convert/to-tree", json={"content": _content()})
        assert response.json()["channel"] == "email"

    def test_missing_channel_loads_defaults(self, client):
        response = client.post("/api/convert/to-tree", json={"content": _content(), "channel": "push"})
        data = response.json()
        assert data["title"]["location"] == "raw"
        assert [b["type"] for b in data["doc"]["content"]] == ["paragraph"]

    def test_unknown_channel_400(self, client):
        response = client.post("/api/convert/to-tree", json={"content": _content(), "channel": "fax"})
        assert response.status_code == 400
        assert "fax" in response.json()["detail"]

    def test_diagnostics_reported(self, client):
        content = {
            "elements": [{
                "type": "channel",
                "channel": "email",
                "elements": [{"type": "hologram"}, {"type": "text", "content": "ok"}],
            }],
        }
        response = client.post("/api/convert/to-tree", json={"content": content, "channel": "email"})
        assert response.status_code == 200
        data = response.json()
        assert [d["code"] for d in data["diagnostics"]] == ["unknown_node_type"]
        assert len(data["doc"]["content"]) == 1

    def test_inbox_buttons_paired(self, client):
        content = {
            "elements": [{
                "type": "channel",
                "channel": "inbox",
                "elements": [
                    {"type": "action", "content": "Accept", "href": "a", "align": "left"},
                    {"type": "action", "content": "Decline", "href": "d", "align": "left"},
                ],
            }],
        }
        loaded = client.post("/api/convert/to-tree", json={"content": content, "channel": "inbox"}).json()
        [row] = loaded["doc"]["content"]
        assert row["type"] == "buttonRow"
        assert [b["attrs"]["label"] for b in row["content"]] == ["Accept", "Decline"]

        saved = client.post("/api/convert/to-elemental", json={
            "content": content, "channel": "inbox", "doc": loaded["doc"], "title_state": loaded["title"],
        }).json()
        assert saved["elements"] == content["elements"][0]["elements"]


# ===========================================================================
# POST /api/convert/to-elemental
# ===========================================================================

class TestToElemental:
    """POST /api/convert/to-elemental saves a tree back into the document."""

    def _load(self, client, channel):
        return client.post("/api/convert/to-tree", json={"content": _content(), "channel": channel}).json()

    def test_unchanged_round_trip(self, client):
        loaded = self._load(client, "email")
        response = client.post("/api/convert/to-elemental", json={
            "content": _content(),
            "channel": "email",
            "doc": loaded["doc"],
            "title_state": loaded["title"],
        })
        assert response.status_code == 200
        data = response.json()
        assert data["content"] == _content()
        assert data["elements"] == _content()["elements"][0]["elements"]

    def test_new_title_stays_in_raw(self, client):
        loaded = self._load(client, "sms")
        response = client.post("/api/convert/to-elemental", json={
            "content": _content(),
            "channel": "sms",
            "doc": loaded["doc"],
            "title": "New subject",
            "title_state": loaded["title"],
        })
        channels = response.json()["content"]["elements"]
        assert channels[1]["raw"] == {"subject": "New subject"}
        assert channels[1]["elements"] == [{"type": "text", "content": "Hey"}]
        assert channels[0] == _content()["elements"][0]

    def test_edited_doc(self, client):
        doc = {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "Edited", "marks": [{"type": "bold"}]}]},
            ],
        }
        response = client.post("/api/convert/to-elemental", json={
            "content": _content(), "channel": "email", "doc": doc,
        })
        assert response.json()["elements"] == [
            {"type": "meta", "title": "Welcome"},
            {"type": "text", "elements": [{"type": "string", "content": "Edited", "bold": True}]},
        ]

    def test_new_document(self, client):
        doc = {"type": "doc", "content": [{"type": "paragraph", "content": [{"type": "text", "text": "Hi"}]}]}
        response = client.post("/api/convert/to-elemental", json={"channel": "sms", "doc": doc})
        assert response.json()["content"] == {
            "version": "2022-01-01",
            "elements": [{"type": "channel", "channel": "sms", "elements": [{"type": "text", "content": "Hi"}]}],
        }

    def test_unknown_channel_400(self, client):
        response = client.post("/api/convert/to-elemental", json={"channel": "fax", "doc": {"type": "doc"}})
        assert response.status_code == 400

    def test_missing_doc_422(self, client):
        response = client.post("/api/convert/to-elemental", json={"channel": "email"})
        assert response.status_code == 422


# ===========================================================================
# POST /api/convert/to-markdown
# ===========================================================================

class TestToMarkdown:
    """POST /api/convert/to-markdown exports a tree."""

    def test_export(self, client):
        doc = {
            "type": "doc",
            "content": [
                {"type": "heading", "attrs": {"level": 1}, "content": [{"type": "text", "text": "Hi"}]},
                {"type": "paragraph", "content": [{"type": "text", "text": "there", "marks": [{"type": "italic"}]}]},
            ],
        }
        response = client.post("/api/convert/to-markdown", json={"doc": doc})
        assert response.status_code == 200
        assert response.json() == {"markdown": "# Hi\n\n*there*"}


# ===========================================================================
# /api/channels
# ===========================================================================

class TestChannels:
    """Channel defaults, listing and removal."""

    def test_defaults(self, client):
        response = client.get("/api/channels/push/defaults")
        assert response.status_code == 200
        assert response.json() == {
            "channel": "push",
            "elements": [{"type": "text", "content": "\n"}],
            "raw": {"title": "", "text": ""},
        }

    def test_defaults_unknown_channel(self, client):
        assert client.get("/api/channels/fax/defaults").status_code == 400

    def test_list(self, client):
        response = client.post("/api/channels/list", json={"content": _content()})
        assert response.json() == {"channels": ["email", "sms"]}

    def test_remove(self, client):
        response = client.post("/api/channels/email/remove", json={"content": _content()})
        assert response.status_code == 200
        content = response.json()["content"]
        assert [c["channel"] for c in content["elements"]] == ["sms"]


# ===========================================================================
# POST /api/variables
# ===========================================================================

class TestVariables:
    """POST /api/variables lists variable names."""

    def test_variables(self, client):
        content = _content()
        content["elements"][0]["elements"].append({"type": "variable", "name": "order_id"})
        response = client.post("/api/variables", json={"content": content})
        assert response.status_code == 200
        assert response.json() == {"variables": ["name", "order_id"]}
