"""
FastAPI routes for the public search proxy
"""

import logging
from typing import Annotated, Any, Dict, Optional

import httpx
from fastapi import APIRouter, Depends, Request

from alexzo.core.config import Settings
from alexzo.core.errors import RateLimitExceeded, ServiceUnconfigured, ValidationError
from alexzo.dependencies import (
    get_http_client,
    get_json_body,
    get_search_rate_limiter,
    get_settings,
)
from alexzo.ratelimit import RateLimiter, client_identifier

from .client import SearchClient

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Search"])


@router.post("/search")
async def search(
    request: Request,
    limiter: Annotated[RateLimiter, Depends(get_search_rate_limiter)],
    settings: Annotated[Settings, Depends(get_settings)],
    http_client: Annotated[httpx.AsyncClient, Depends(get_http_client)],
    body: Annotated[Optional[Dict[str, Any]], Depends(get_json_body)]
):
    """
    Search the web through the configured upstream

    Rate limited per client; requests rejected for a bad body still count.
    """
    decision = limiter.check(client_identifier(request))
    if not decision.allowed:
        raise RateLimitExceeded(decision.retry_after)

    query = (body or {}).get("query")
    if not isinstance(query, str):
        raise ValidationError("Query is required and must be a string")

    if not settings.SEARCH_UPSTREAM_URL:
        raise ServiceUnconfigured("Search service is not configured")

    logger.debug("Search request from %s", client_identifier(request))
    client = SearchClient(http_client, settings.SEARCH_UPSTREAM_URL)
    return await client.search(query)
