"""
FastAPI routes for the API key gateway

Third-party callers reach the image and chat handlers here with an
``Authorization: Bearer alexzo_...`` header.
"""

import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Depends, Header, Request

from alexzo.core.errors import MethodNotAllowed
from alexzo.dependencies import get_gateway, get_json_body
from alexzo.ratelimit import client_identifier

from .gateway import ProxyGateway

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Gateway"])

Gateway = Annotated[ProxyGateway, Depends(get_gateway)]
Payload = Annotated[Optional[Dict[str, Any]], Depends(get_json_body)]
Authorization = Annotated[Optional[str], Header()]

IMAGE_METHOD_MESSAGE = "Method not allowed. Use POST for image generation."
OTHER_METHODS = ["GET", "PUT", "PATCH", "DELETE"]


async def _proxy(request: Request, gateway: ProxyGateway, path: str,
                 authorization: Optional[str], payload: Optional[Dict[str, Any]]):
    client_ip = client_identifier(request)
    logger.debug("Gateway call to %s from %s", path, client_ip)
    return await gateway.handle(path, authorization, payload, client_ip)


@router.post("/proxy/{path:path}")
async def proxy(request: Request, path: str, gateway: Gateway, payload: Payload,
                authorization: Authorization = None):
    """
    Proxy endpoint

    Supported paths: generate, zyfoox/generate, chat/completions
    """
    return await _proxy(request, gateway, path, authorization, payload)


@router.post("/generate")
async def generate(request: Request, gateway: Gateway, payload: Payload,
                   authorization: Authorization = None):
    """Image generation, same as /proxy/generate"""
    return await _proxy(request, gateway, "generate", authorization, payload)


@router.post("/zyfoox")
async def zyfoox(request: Request, gateway: Gateway, payload: Payload,
                 authorization: Authorization = None):
    """Image generation, same as /proxy/zyfoox/generate"""
    return await _proxy(request, gateway, "zyfoox/generate", authorization, payload)


@router.api_route("/proxy/{path:path}", methods=OTHER_METHODS, include_in_schema=False)
@router.api_route("/generate", methods=OTHER_METHODS, include_in_schema=False)
@router.api_route("/zyfoox", methods=OTHER_METHODS, include_in_schema=False)
async def image_method_not_allowed():
    raise MethodNotAllowed(IMAGE_METHOD_MESSAGE)
