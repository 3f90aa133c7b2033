"""OpenTelemetry setup for LLM call spans."""

import logging
import os
import sys
from pathlib import Path

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor, ConsoleSpanExporter

logger = logging.getLogger(__name__)

SERVICE_NAME = "gh-triage"

_provider: TracerProvider | None = None


def setup_tracing(telemetry_file: str | Path | None = None) -> TracerProvider:
    """Install a tracer provider that writes spans as JSON lines.

    Only the first call installs a provider; later calls return it.

    Args:
        telemetry_file: File to append spans to, defaults to LLM_TRACING_FILE.
            Spans go to stderr when neither is set.
    """
    global _provider
    if _provider is not None:
        return _provider

    telemetry_file = telemetry_file or os.getenv("LLM_TRACING_FILE")
    if telemetry_file:
        path = Path(telemetry_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        out = open(path, "a")
        target = str(path)
    else:
        out = sys.stderr
        target = "stderr"

    provider = TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
    provider.add_span_processor(BatchSpanProcessor(ConsoleSpanExporter(out=out)))
    trace.set_tracer_provider(provider)
    _provider = provider

    logger.info("Telemetry (OTel spans) -> %s", target)
    return provider
