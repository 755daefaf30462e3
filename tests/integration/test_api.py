"""
API integration tests.

Runs the FastAPI app against an in-memory store through TestClient;
outbound delivery is stubbed with monkeypatch.
"""

from __future__ import annotations

import uuid

import pytest
import requests
from fastapi.testclient import TestClient

from pagefeed.api.app import create_app
from pagefeed.config import ENV
from pagefeed.storage.backend import InMemoryBackend
from pagefeed.storage.page_store import PageStore

FROM_TIMESTAMP = "2025-12-20T00:00:00+09:00"


def cosense_payload(*pages: tuple[str, str], project: str = "test-project") -> dict:
    return {
        "text": "",
        "mrkdown": True,
        "username": "Cosense",
        "attachments": [
            {
                "title": title,
                "title_link": f"https://scrapbox.io/{project}/{title}",
                "text": "edited",
                "rawText": "edited",
                "mrkdwn_in": ["text"],
                "author_name": author,
            }
            for title, author in pages
        ],
    }


class _DownBackend(InMemoryBackend):
    def get(self, key):
        raise ConnectionError("backend offline")

    def scan(self, prefix):
        raise ConnectionError("backend offline")


class TestAdminRegistration:
    def test_registers_new_webhook_id(self, client, store):
        response = client.post("/api/admin/webhooks", json={"apiKey": "test-admin-key"})

        assert response.status_code == 201
        body = response.json()
        assert body["status"] == "registered"
        assert uuid.UUID(body["webhookId"]).version == 4
        assert store.is_registered(body["webhookId"])

    def test_each_registration_gets_a_new_id(self, client):
        first = client.post("/api/admin/webhooks", json={"apiKey": "test-admin-key"}).json()
        second = client.post("/api/admin/webhooks", json={"apiKey": "test-admin-key"}).json()

        assert first["webhookId"] != second["webhookId"]

    def test_missing_api_key(self, client):
        response = client.post("/api/admin/webhooks", json={})

        assert response.status_code == 400
        assert response.json()["detail"] == "apiKey is required"

    def test_wrong_api_key(self, client):
        response = client.post("/api/admin/webhooks", json={"apiKey": "wrong"})

        assert response.status_code == 401

    def test_server_key_not_configured(self, client, monkeypatch):
        monkeypatch.delenv("ADMIN_API_KEY")

        response = client.post("/api/admin/webhooks", json={"apiKey": "anything"})

        assert response.status_code == 500
        assert response.json()["detail"] == "Server configuration error"


class TestWebhookIngest:
    def test_records_pages(self, client, store, webhook_id):
        response = client.post(
            f"/api/webhooks/{webhook_id}/slack",
            json=cosense_payload(("TestPage", "Alice"), ("Other", "Bob")),
        )

        assert response.status_code == 200
        assert response.json() == {"status": "received", "count": 2}
        page = store.get_page(webhook_id, "test-project", "TestPage")
        assert page.authors == ["Alice"]
        assert page.link == "https://scrapbox.io/test-project/TestPage"

    def test_authors_merge_across_webhooks(self, client, store, webhook_id):
        client.post(f"/api/webhooks/{webhook_id}/slack", json=cosense_payload(("SharedPage", "Alice")))
        client.post(f"/api/webhooks/{webhook_id}/slack", json=cosense_payload(("SharedPage", "Bob")))

        page = store.get_page(webhook_id, "test-project", "SharedPage")
        assert set(page.authors) == {"Alice", "Bob"}

    def test_no_attachments(self, client, webhook_id):
        response = client.post(f"/api/webhooks/{webhook_id}/slack", json=cosense_payload())

        assert response.status_code == 400
        assert response.json()["detail"] == "No attachments"

    def test_unregistered_webhook_id(self, client, store):
        response = client.post("/api/webhooks/unknown/slack", json=cosense_payload(("TestPage", "Alice")))

        assert response.status_code == 404
        assert store.count_pages("unknown") == 0

    def test_registration_check_can_be_disabled(self, client, monkeypatch):
        monkeypatch.setenv("PAGEFEED_REQUIRE_REGISTRATION", "false")

        response = client.post("/api/webhooks/open-id/slack", json=cosense_payload(("TestPage", "Alice")))

        assert response.status_code == 200

    def test_unparseable_project_url(self, client, webhook_id):
        payload = cosense_payload(("TestPage", "Alice"))
        payload["attachments"][0]["title_link"] = "not-a-url"

        response = client.post(f"/api/webhooks/{webhook_id}/slack", json=payload)

        assert response.status_code == 400

    def test_malformed_body_is_sanitized_422(self, client, webhook_id):
        response = client.post(
            f"/api/webhooks/{webhook_id}/slack",
            json={"attachments": [{"title_link": "https://scrapbox.io/p/x"}]},
        )

        assert response.status_code == 422
        assert response.json()["invalid_fields"] == ["title"]

    def test_storage_outage_is_503(self, monkeypatch):
        monkeypatch.setenv("PAGEFEED_REQUIRE_REGISTRATION", "false")
        client = TestClient(create_app(store=PageStore(_DownBackend())))

        response = client.post("/api/webhooks/any/slack", json=cosense_payload(("TestPage", "Alice")))

        assert response.status_code == 503
        assert "offline" not in response.text


class TestMessage:
    def test_discord_digest_without_webhook_url(self, client, webhook_id):
        client.post(f"/api/webhooks/{webhook_id}/slack", json=cosense_payload(("TestPage", "Alice")))

        response = client.post(
            "/api/message",
            json={"webhookId": webhook_id, "notification": "Discord", "from_timestamp": FROM_TIMESTAMP},
        )

        assert response.status_code == 200
        assert response.json() == {
            "status": "sent",
            "service": "Discord",
            "pageCount": 1,
            "messageCount": 1,
            "delivered": False,
        }

    def test_x_digest_is_posted(self, client, webhook_id, monkeypatch):
        for name in ("API_KEY", "API_KEY_SECRET", "ACCESS_TOKEN", "ACCESS_TOKEN_SECRET"):
            monkeypatch.setenv(name, f"{name.lower()}-value")
        posted = []

        class Created:
            status_code = 201

            def raise_for_status(self):
                return None

            def json(self):
                return {"data": {"id": "1"}}

        def fake_post(url, **kwargs):
            posted.append(kwargs["json"]["text"])
            return Created()

        monkeypatch.setattr(requests, "post", fake_post)
        client.post(
            f"/api/webhooks/{webhook_id}/slack",
            json=cosense_payload(*[(f"Page-{i:02d}", "Alice") for i in range(50)]),
        )

        response = client.post(
            "/api/message",
            json={"webhookId": webhook_id, "notification": "X", "from_timestamp": FROM_TIMESTAMP},
        )

        assert response.status_code == 200
        assert response.json()["pageCount"] == 50
        assert response.json()["delivered"] is True
        assert len(posted) == 1
        assert posted[0].endswith("more")

    def test_no_pages_sends_empty_state(self, client, webhook_id, monkeypatch):
        monkeypatch.setenv("DISCORD_WEBHOOK_URL", "https://discord.example/webhook")
        sent = []

        class NoContent:
            status_code = 204

            def raise_for_status(self):
                return None

        monkeypatch.setattr(requests, "post", lambda url, **kw: sent.append(kw["json"]) or NoContent())

        response = client.post(
            "/api/message",
            json={"webhookId": webhook_id, "notification": "Discord", "from_timestamp": FROM_TIMESTAMP},
        )

        assert response.json()["pageCount"] == 0
        assert response.json()["delivered"] is True
        assert sent == [{"content": "No pages were updated."}]

    def test_invalid_timestamp_is_400(self, client, webhook_id):
        response = client.post(
            "/api/message",
            json={"webhookId": webhook_id, "notification": "X", "from_timestamp": "last week"},
        )

        assert response.status_code == 400
        assert "timestamp" in response.json()["detail"].lower()

    @pytest.mark.parametrize(
        "body,field",
        [
            ({"notification": "X", "from_timestamp": FROM_TIMESTAMP}, "webhookId"),
            ({"webhookId": "w", "notification": "Slack", "from_timestamp": FROM_TIMESTAMP}, "notification"),
            ({"webhookId": "w", "notification": "X"}, "from_timestamp"),
        ],
    )
    def test_invalid_request_fields(self, client, body, field):
        response = client.post("/api/message", json=body)

        assert response.status_code == 422
        assert field in response.json()["invalid_fields"]

    def test_unregistered_webhook_id(self, client):
        response = client.post(
            "/api/message",
            json={"webhookId": "unknown", "notification": "X", "from_timestamp": FROM_TIMESTAMP},
        )

        assert response.status_code == 404


def test_health(client):
    response = client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "healthy"
    assert body["environment"] == ENV
    assert body["channels"] == {"Discord": False, "X": False}
