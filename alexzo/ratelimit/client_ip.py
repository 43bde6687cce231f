"""
Client identification for rate limiting and request metadata
"""

from fastapi import Request

# Checked in order; the first present header wins
PROXY_HEADERS = ("x-forwarded-for", "x-real-ip", "cf-connecting-ip")


def client_identifier(request: Request) -> str:
    """
    Best-effort client address

    X-Forwarded-For may list several hops; the first entry is the original
    client. Falls back to the socket peer, then to "unknown".
    """
    for header in PROXY_HEADERS:
        value = request.headers.get(header)
        if value:
            first = value.split(",")[0].strip()
            if first:
                return first

    if request.client and request.client.host:
        return request.client.host
    return "unknown"
