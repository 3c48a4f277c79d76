"""Dependency providers that hand app.state services to route handlers."""

from typing import Annotated

from fastapi import Depends, Request

from app.core.pipeline import QuotePipeline
from app.services.metrics import Metrics
from app.services.semantic_cache import SemanticCache


def _from_state(request: Request, name: str):
    service = getattr(request.app.state, name, None)
    if service is None:
        raise RuntimeError(f"{name} not initialized. Check lifespan setup.")
    return service


def get_pipeline(request: Request) -> QuotePipeline:
    return _from_state(request, "pipeline")


def get_semantic_cache(request: Request) -> SemanticCache:
    return _from_state(request, "semantic_cache")


def get_metrics(request: Request) -> Metrics:
    return _from_state(request, "metrics")


PipelineDep = Annotated[QuotePipeline, Depends(get_pipeline)]
SemanticCacheDep = Annotated[SemanticCache, Depends(get_semantic_cache)]
MetricsDep = Annotated[Metrics, Depends(get_metrics)]
