"""OpenTelemetry span around every LLM generation call."""

import logging
import time
from contextlib import nullcontext

from opentelemetry import trace
from opentelemetry.trace import Span, SpanKind, Status, StatusCode, Tracer

from .llm import LlmGateway, LlmRequest, LlmResult

logger = logging.getLogger(__name__)

SPAN_NAME = "llm.generate_json"


class ObservedLlmGateway:
    """Wraps another gateway and records one span per generate_json call.

    Tracking never changes the outcome of a call. Failures to start or finish
    the span are logged at debug, and the wrapped gateway's result or
    exception is passed through unchanged.
    """

    def __init__(
        self,
        inner: LlmGateway,
        provider: str,
        model: str,
        endpoint: str | None = None,
        tracer: Tracer | None = None,
    ):
        self.inner = inner
        self.provider = provider
        self.model = model
        self.endpoint = endpoint
        self.tracer = tracer or trace.get_tracer(__name__)

    def _request_attributes(self, request: LlmRequest) -> dict[str, str | int | float]:
        attributes: dict[str, str | int | float] = {
            "llm.provider": self.provider,
            "llm.model": self.model,
            "llm.request.max_tokens": request.max_tokens,
            "llm.request.timeout_ms": request.timeout_ms,
            "llm.request.system_prompt_chars": len(request.system_prompt),
            "llm.request.user_prompt_chars": len(request.user_prompt),
        }
        if self.endpoint:
            attributes["llm.endpoint"] = self.endpoint
        if request.temperature is not None:
            attributes["llm.request.temperature"] = request.temperature
        return attributes

    def _start_span(self, request: LlmRequest) -> Span | None:
        try:
            return self.tracer.start_span(
                SPAN_NAME,
                kind=SpanKind.CLIENT,
                attributes=self._request_attributes(request),
            )
        except Exception:
            logger.debug("Could not start LLM span", exc_info=True)
            return None

    def _finish_span(
        self,
        span: Span,
        started: float,
        result: LlmResult | None = None,
        error: Exception | None = None,
    ) -> None:
        try:
            span.set_attribute(
                "llm.duration_ms", round((time.monotonic() - started) * 1000)
            )
            if error is not None:
                span.set_attribute("error.type", type(error).__name__)
                span.record_exception(error)
                span.set_status(Status(StatusCode.ERROR, str(error)))
            elif result is not None:
                span.set_attribute("llm.response.chars", len(result.raw_text))
                span.set_status(Status(StatusCode.OK))
            span.end()
        except Exception:
            logger.debug("Could not record LLM span outcome", exc_info=True)

    async def generate_json(self, request: LlmRequest) -> LlmResult:
        span = self._start_span(request)
        started = time.monotonic()
        # child spans from the provider client nest under this one
        context = (
            trace.use_span(
                span,
                end_on_exit=False,
                record_exception=False,
                set_status_on_exception=False,
            )
            if span is not None
            else nullcontext()
        )
        with context:
            try:
                result = await self.inner.generate_json(request)
            except Exception as e:
                if span is not None:
                    self._finish_span(span, started, error=e)
                raise

        if span is not None:
            self._finish_span(span, started, result=result)
        return result
