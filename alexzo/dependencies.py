"""
FastAPI dependencies for configuration, collaborators and identity

Collaborators live on ``app.state`` (set up by create_app) so tests can
substitute them without touching route code.
"""

from typing import Annotated, Any, Dict, Optional

import httpx
from fastapi import Depends, Header, Request

from alexzo.core.config import Settings
from alexzo.core.errors import AuthenticationError, ServiceUnconfigured
from alexzo.core.security import Identity, IdentityVerifier, bearer_token
from alexzo.gallery.store import GalleryStore
from alexzo.gateway.gateway import ProxyGateway
from alexzo.keys.manager import KeyManager
from alexzo.keys.usage import UsageTracker
from alexzo.ratelimit import RateLimiter


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_key_manager(request: Request) -> KeyManager:
    """Key manager, or 503 when no key store is configured"""
    manager: Optional[KeyManager] = request.app.state.key_manager
    if manager is None:
        raise ServiceUnconfigured("API key storage is not configured")
    return manager


def get_usage_tracker(request: Request) -> UsageTracker:
    tracker: Optional[UsageTracker] = request.app.state.usage_tracker
    if tracker is None:
        raise ServiceUnconfigured("API key storage is not configured")
    return tracker


def get_gallery_store(request: Request) -> GalleryStore:
    store: Optional[GalleryStore] = request.app.state.gallery_store
    if store is None:
        raise ServiceUnconfigured("Image gallery storage is not configured")
    return store


def get_search_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.search_rate_limiter


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


def get_identity_verifier(request: Request) -> IdentityVerifier:
    verifier: Optional[IdentityVerifier] = request.app.state.identity_verifier
    if verifier is None:
        raise ServiceUnconfigured("Authentication service is not configured")
    return verifier


async def get_current_identity(
    verifier: Annotated[IdentityVerifier, Depends(get_identity_verifier)],
    authorization: Annotated[Optional[str], Header()] = None,
) -> Identity:
    """
    Dependency to get the signed-in user from a Firebase ID token
    """
    token = bearer_token(authorization)
    if token is None:
        raise AuthenticationError("Unauthorized")
    return await verifier.verify(token)


def get_gateway(request: Request) -> ProxyGateway:
    return request.app.state.gateway


async def get_json_body(request: Request) -> Optional[Dict[str, Any]]:
    """
    Parsed JSON object body, or None when absent, malformed or not an object

    Routes validate fields themselves so a bad body surfaces as their own 400.
    """
    try:
        payload = await request.json()
    except ValueError:
        return None
    return payload if isinstance(payload, dict) else None
