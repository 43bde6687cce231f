"""
API Key Gateway
Key-authenticated access to image generation and chat completion
"""

from .gateway import ProxyGateway
from .handlers import build_image_url, chat_completion, generate_image

__all__ = [
    'ProxyGateway',
    'build_image_url',
    'chat_completion',
    'generate_image',
]
