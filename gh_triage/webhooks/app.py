"""FastAPI application exposing the GitHub webhook endpoint."""

import json
import logging
import time

from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from .. import __version__
from ..config import LlmSettings, TriagePolicy, TriageSettings, WebhookSettings
from ..github_client.models import IssueWebhookPayload
from .deduplicator import DeliveryDeduplicator, RegistrationResult
from .processor import IssueWebhookProcessor
from .signature import SignatureVerifier

logger = logging.getLogger(__name__)

DELIVERY_SOURCE = "github"

router = APIRouter()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.post("/webhooks/github")
async def github_webhook(request: Request) -> Response:
    state = request.app.state
    settings: WebhookSettings = state.webhook_settings
    verifier: SignatureVerifier = state.signature_verifier
    deduplicator: DeliveryDeduplicator = state.deduplicator
    processor: IssueWebhookProcessor = state.processor

    body = await request.body()
    if not verifier.verify(body, request.headers.get("X-Hub-Signature-256")):
        logger.warning("Rejected webhook with invalid signature")
        return _error(401, "Invalid webhook signature")

    event = request.headers.get("X-GitHub-Event", "")
    if event != "issues":
        logger.debug("Ignoring %s event", event or "unknown")
        return Response(status_code=204)

    delivery_id = (request.headers.get("X-GitHub-Delivery") or "").strip()
    if not delivery_id and settings.require_delivery_id:
        return _error(400, "Missing X-GitHub-Delivery header")

    try:
        payload = IssueWebhookPayload.model_validate(json.loads(body))
    except (json.JSONDecodeError, UnicodeDecodeError, ValidationError) as e:
        logger.info("Invalid issues payload (delivery %s): %s", delivery_id or "-", e)
        return _error(400, "Invalid GitHub issue webhook payload")

    if not settings.is_repository_allowed(payload.repository.full_name):
        logger.info("Repository %s not in allowlist", payload.repository.full_name)
        return _error(403, "Repository not allowed")

    if delivery_id:
        registration = deduplicator.register_if_first_seen(
            DELIVERY_SOURCE,
            delivery_id,
            received_at_ms=int(time.time() * 1000),
            ttl_seconds=settings.delivery_ttl_seconds,
        )
        if registration is RegistrationResult.DUPLICATE:
            logger.info("Ignoring duplicate delivery %s", delivery_id)
            return JSONResponse(status_code=200, content={"status": "duplicate_ignored"})

    try:
        status_code = await processor.process(payload)
    except Exception:
        if delivery_id:
            deduplicator.unregister(DELIVERY_SOURCE, delivery_id)
        logger.exception(
            "Failed processing delivery %s for %s#%s",
            delivery_id or "-",
            payload.repository.full_name,
            payload.issue.number,
        )
        return _error(500, "Internal server error")

    if status_code == 204:
        return Response(status_code=204)
    return JSONResponse(status_code=status_code, content={"status": "ok"})


def create_app(
    processor: IssueWebhookProcessor,
    webhook_settings: WebhookSettings | None = None,
    deduplicator: DeliveryDeduplicator | None = None,
) -> FastAPI:
    """Assemble the app around an already wired processor."""
    settings = webhook_settings or WebhookSettings()
    app = FastAPI(title="gh-triage", version=__version__)
    app.state.webhook_settings = settings
    app.state.signature_verifier = SignatureVerifier(
        settings.secret, required=settings.verify_signature
    )
    app.state.deduplicator = deduplicator or DeliveryDeduplicator()
    app.state.processor = processor
    app.include_router(router)
    return app


def create_app_from_env() -> FastAPI:
    """Wire GitHub, the LLM adapter and the webhook app from environment variables.

    Raises:
        ConfigurationError: If webhook or LLM settings are inconsistent
        ValueError: If GITHUB_TOKEN is missing
    """
    from ..ai.llm import create_llm_gateway
    from ..github_client import (
        GitHubClient,
        GitHubGovernanceGateway,
        GitHubIssueHistoryGateway,
        GitHubRepositoryContextGateway,
    )
    from ..triage.orchestrator import AnalyzeIssueWithAi

    webhook_settings = WebhookSettings.from_env()
    llm_settings = LlmSettings.from_env()
    if llm_settings.tracing_enabled:
        from ..utils.tracing import setup_tracing

        setup_tracing()
    client = GitHubClient()
    governance = GitHubGovernanceGateway(client)
    triage = AnalyzeIssueWithAi(
        llm=create_llm_gateway(llm_settings),
        history=GitHubIssueHistoryGateway(client),
        governance=governance,
        repository_context=GitHubRepositoryContextGateway(client),
        policy=TriagePolicy.from_env(),
        settings=TriageSettings.from_env(),
    )
    return create_app(IssueWebhookProcessor(governance, triage), webhook_settings)
