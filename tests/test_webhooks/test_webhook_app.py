"""Tests for the webhook HTTP endpoint."""

import hashlib
import hmac
import json
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from gh_triage import __version__
from gh_triage.config import WebhookSettings
from gh_triage.errors import GovernanceWriteError
from gh_triage.webhooks.app import create_app
from gh_triage.webhooks.deduplicator import DeliveryDeduplicator

SECRET = "topsecret"
ISSUE_EVENT = {
    "action": "opened",
    "issue": {
        "number": 7,
        "title": "Crash when saving settings",
        "body": "The app crashes with a stack trace every time I press save.",
        "labels": [],
        "user": {"login": "octocat"},
    },
    "repository": {"full_name": "octo/widgets"},
}


def signed_headers(
    body: bytes,
    delivery: str | None = "delivery-1",
    event: str = "issues",
    secret: str = SECRET,
) -> dict[str, str]:
    digest = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    headers = {
        "X-GitHub-Event": event,
        "X-Hub-Signature-256": f"sha256={digest}",
        "Content-Type": "application/json",
    }
    if delivery is not None:
        headers["X-GitHub-Delivery"] = delivery
    return headers


@pytest.fixture
def processor() -> AsyncMock:
    mock = AsyncMock()
    mock.process.return_value = 200
    return mock


@pytest.fixture
def deduplicator() -> DeliveryDeduplicator:
    return DeliveryDeduplicator()


@pytest.fixture
def client(processor: AsyncMock, deduplicator: DeliveryDeduplicator) -> TestClient:
    settings = WebhookSettings(secret=SECRET, verify_signature=True)
    return TestClient(create_app(processor, settings, deduplicator))


class TestGitHubWebhookEndpoint:
    """Test POST /webhooks/github."""

    def test_valid_delivery_is_processed(
        self, client: TestClient, processor: AsyncMock
    ) -> None:
        """Test a signed issues event reaches the processor."""
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post("/webhooks/github", content=body, headers=signed_headers(body))

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}
        [payload] = processor.process.await_args.args
        assert payload.issue.number == 7

    def test_invalid_signature(self, client: TestClient, processor: AsyncMock) -> None:
        """Test a bad signature is rejected before anything else."""
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post(
            "/webhooks/github", content=body, headers=signed_headers(body, secret="nope")
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Invalid webhook signature"}
        processor.process.assert_not_awaited()

    def test_missing_signature(self, client: TestClient) -> None:
        """Test an unsigned request is rejected."""
        body = json.dumps(ISSUE_EVENT).encode()
        headers = signed_headers(body)
        del headers["X-Hub-Signature-256"]

        response = client.post("/webhooks/github", content=body, headers=headers)

        assert response.status_code == 401

    def test_tampered_body(self, client: TestClient, processor: AsyncMock) -> None:
        """Test a modified body with the original signature is rejected."""
        body = json.dumps(ISSUE_EVENT).encode()
        headers = signed_headers(body)
        tampered = body.replace(b"octocat", b"mallory")

        response = client.post("/webhooks/github", content=tampered, headers=headers)

        assert response.status_code == 401
        processor.process.assert_not_awaited()

    def test_other_events_are_ignored(
        self, client: TestClient, processor: AsyncMock
    ) -> None:
        """Test non-issues events get 204."""
        body = b'{"zen": "Keep it simple."}'

        response = client.post(
            "/webhooks/github", content=body, headers=signed_headers(body, event="ping")
        )

        assert response.status_code == 204
        processor.process.assert_not_awaited()

    def test_missing_delivery_id(self, client: TestClient) -> None:
        """Test the delivery header is required by default."""
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post(
            "/webhooks/github", content=body, headers=signed_headers(body, delivery=None)
        )

        assert response.status_code == 400

    @pytest.mark.parametrize(
        "body",
        [
            b"not json",
            json.dumps({"action": "opened"}).encode(),
            json.dumps({**ISSUE_EVENT, "repository": {"full_name": "no-slash"}}).encode(),
        ],
    )
    def test_malformed_payload(
        self,
        client: TestClient,
        deduplicator: DeliveryDeduplicator,
        body: bytes,
    ) -> None:
        """Test invalid payloads get 400 and are not registered."""
        response = client.post("/webhooks/github", content=body, headers=signed_headers(body))

        assert response.status_code == 400
        assert response.json() == {"error": "Invalid GitHub issue webhook payload"}
        assert len(deduplicator) == 0

    def test_duplicate_delivery(self, client: TestClient, processor: AsyncMock) -> None:
        """Test a redelivered id is acknowledged without reprocessing."""
        body = json.dumps(ISSUE_EVENT).encode()
        headers = signed_headers(body)

        client.post("/webhooks/github", content=body, headers=headers)
        response = client.post("/webhooks/github", content=body, headers=headers)

        assert response.status_code == 200
        assert response.json() == {"status": "duplicate_ignored"}
        assert processor.process.await_count == 1

    def test_processing_failure_allows_redelivery(
        self,
        client: TestClient,
        processor: AsyncMock,
        deduplicator: DeliveryDeduplicator,
    ) -> None:
        """Test a failed delivery is unregistered so GitHub can retry it."""
        processor.process.side_effect = GovernanceWriteError("GitHub rejected label")
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post("/webhooks/github", content=body, headers=signed_headers(body))

        assert response.status_code == 500
        assert len(deduplicator) == 0

        processor.process.side_effect = None
        retry = client.post("/webhooks/github", content=body, headers=signed_headers(body))
        assert retry.status_code == 200

    def test_no_content_from_processor(
        self, client: TestClient, processor: AsyncMock
    ) -> None:
        """Test a 204 from the processor is passed through."""
        processor.process.return_value = 204
        body = json.dumps({**ISSUE_EVENT, "action": "closed"}).encode()

        response = client.post("/webhooks/github", content=body, headers=signed_headers(body))

        assert response.status_code == 204

    def test_repository_allowlist(self, processor: AsyncMock) -> None:
        """Test repositories outside the allowlist are refused."""
        settings = WebhookSettings(
            secret=SECRET, verify_signature=True, allowed_repositories=["Octo/Other"]
        )
        client = TestClient(create_app(processor, settings))
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post("/webhooks/github", content=body, headers=signed_headers(body))

        assert response.status_code == 403
        processor.process.assert_not_awaited()

    def test_unsigned_mode_without_secret(self, processor: AsyncMock) -> None:
        """Test local development without a secret accepts unsigned deliveries."""
        client = TestClient(create_app(processor, WebhookSettings()))
        body = json.dumps(ISSUE_EVENT).encode()

        response = client.post(
            "/webhooks/github",
            content=body,
            headers={"X-GitHub-Event": "issues", "X-GitHub-Delivery": "d-9"},
        )

        assert response.status_code == 200


def test_health(client: TestClient) -> None:
    """Test the health endpoint reports the version."""
    response = client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": __version__}
