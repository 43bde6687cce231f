"""
API Key Gateway
Authenticates bearer keys and dispatches proxied calls to their handler
"""

import logging
from typing import Any, Callable, Dict, Optional

from alexzo.core.config import Settings
from alexzo.core.errors import (
    AuthenticationError,
    InternalError,
    NotFoundError,
    ServiceUnconfigured,
)
from alexzo.core.logging import mask_key
from alexzo.keys.manager import INVALID_FORMAT_MESSAGE, KeyManager
from alexzo.keys.models import IssuedKey
from alexzo.keys.usage import UsageTracker

from . import handlers

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

Handler = Callable[[Optional[Dict[str, Any]], str], Dict[str, Any]]


class ProxyGateway:
    """
    Per-request flow:
        Unauthenticated -> KeyLookupPending -> Dispatching
        -> HandlerExecuting -> Responded

    Each step raises on failure; nothing is retried.
    """

    def __init__(
        self,
        key_manager: Optional[KeyManager],
        usage_tracker: Optional[UsageTracker],
        settings: Settings
    ):
        self.key_manager = key_manager
        self.usage_tracker = usage_tracker
        self.settings = settings
        self.routes: Dict[str, Handler] = {
            "generate": self._generate_image,
            "zyfoox/generate": self._generate_image,
            "chat/completions": self._chat_completion,
        }

    @property
    def supported_paths(self) -> str:
        return ", ".join(self.routes)

    def extract_key(self, authorization: Optional[str]) -> str:
        """
        Pull the API key out of an Authorization header

        No store or network access happens here, so malformed credentials
        are rejected before any downstream work.
        """
        if not authorization or not authorization.startswith(BEARER_PREFIX):
            raise AuthenticationError(INVALID_FORMAT_MESSAGE)

        api_key = authorization[len(BEARER_PREFIX):].strip()
        prefix = self.settings.API_KEY_PREFIX
        if not api_key.startswith(prefix) or len(api_key) == len(prefix):
            raise AuthenticationError(INVALID_FORMAT_MESSAGE)
        return api_key

    async def authenticate(self, authorization: Optional[str]) -> IssuedKey:
        """Validate the bearer key against the key store"""
        api_key = self.extract_key(authorization)
        if self.key_manager is None or self.usage_tracker is None:
            raise ServiceUnconfigured("API key storage is not configured")
        try:
            return await self.key_manager.validate(api_key)
        except AuthenticationError:
            raise
        except Exception as e:
            logger.error("Error validating API key %s: %s", mask_key(api_key), e)
            raise InternalError("Error validating API key") from e

    def resolve(self, path: str) -> Handler:
        handler = self.routes.get(path)
        if handler is None:
            raise NotFoundError(
                f"Endpoint not found: {path}. Supported endpoints: {self.supported_paths}"
            )
        return handler

    async def handle(
        self,
        path: str,
        authorization: Optional[str],
        payload: Optional[Dict[str, Any]],
        client_ip: str
    ) -> Dict[str, Any]:
        """
        Authenticate, dispatch, and record usage for one proxied call

        Args:
            path: Logical endpoint, e.g. "generate" or "chat/completions"
            authorization: Raw Authorization header
            payload: Parsed JSON body, None if absent or invalid
            client_ip: Client identifier for response metadata
        """
        issued = await self.authenticate(authorization)

        path = path.strip("/")
        handler = self.resolve(path)

        self.usage_tracker.track(issued.key, path)

        return handler(payload, client_ip)

    def _generate_image(self, payload: Optional[Dict[str, Any]], client_ip: str) -> Dict[str, Any]:
        return handlers.generate_image(
            payload,
            image_base_url=self.settings.IMAGE_UPSTREAM_URL,
            image_model=self.settings.IMAGE_MODEL,
            user_ip=client_ip
        )

    def _chat_completion(self, payload: Optional[Dict[str, Any]], client_ip: str) -> Dict[str, Any]:
        return handlers.chat_completion(payload)
