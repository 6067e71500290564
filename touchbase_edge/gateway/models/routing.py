"""
Routing models.

Values derived from an incoming request while it is classified and prepared
for forwarding. None of them outlive the request.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx


class PathClass(str, Enum):
    """Exactly one class per request path."""

    PUBLIC = "public"
    PROTECTED_FUNCTION = "protected_function"
    SERVICE_FUNCTION = "service_function"
    PASSTHROUGH = "passthrough"
    REJECTED = "rejected"

    @property
    def is_function(self) -> bool:
        return self in (PathClass.PUBLIC, PathClass.PROTECTED_FUNCTION, PathClass.SERVICE_FUNCTION)


class OutboundCredential(str, Enum):
    """Bearer credential attached to a forwarded request."""

    ANONYMOUS_KEY = "anonymous_key"
    SERVICE_ROLE_KEY = "service_role_key"
    CALLER_TOKEN = "caller_token"


@dataclass(frozen=True)
class OutboundRequest:
    """
    Fully prepared backend request.

    The body is not part of it: the forwarder streams the inbound body directly.
    Requests to third-party APIs carry no path class or backend credential.
    """

    method: str
    url: str
    headers: httpx.Headers
    path_class: Optional[PathClass] = None
    credential: Optional[OutboundCredential] = None
