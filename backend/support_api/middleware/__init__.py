"""
Middleware package.

WHY: Middleware provides cross-cutting concerns (request ids, access
logging) that apply to all requests.
"""

from support_api.middleware.request_context import (
    RequestContextMiddleware,
    get_request_context,
    get_client_ip,
    get_user_agent,
    RequestContext,
)

__all__ = [
    "RequestContextMiddleware",
    "get_request_context",
    "get_client_ip",
    "get_user_agent",
    "RequestContext",
]
