"""
Route table service.

Classifies request paths into exactly one PathClass using an enumerated table
of exact and prefix entries. Exact entries are listed first, so the public and
service endpoints win over the function prefix they live under.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Tuple

from ..config import GatewayConfig
from ..models import PathClass

logger = logging.getLogger("gateway.route_table")

FUNCTION_PREFIX = "/functions/v1/"
PASSTHROUGH_PREFIXES = ("/auth/v1/", "/rest/v1/")


def has_dot_segments(path: str) -> bool:
    """True when the path holds "." or ".." segments, which the backend URL would resolve away."""
    return any(segment in (".", "..") for segment in path.split("/"))


@dataclass(frozen=True)
class RouteEntry:
    pattern: str
    path_class: PathClass
    exact: bool = False

    def matches(self, path: str) -> bool:
        if self.exact:
            return path == self.pattern
        return path.startswith(self.pattern)


class RouteTable:
    def __init__(self, public_endpoints: Iterable[str], service_endpoints: Iterable[str]):
        """
        Args:
            public_endpoints: Function paths exempt from the client secret
            service_endpoints: Function paths forwarded with the service-role key

        Raises:
            ValueError: when the two lists overlap or an entry is not a function path
        """
        public = tuple(public_endpoints)
        service = tuple(service_endpoints)

        overlap = set(public) & set(service)
        if overlap:
            raise ValueError(f"Paths cannot be both public and service endpoints: {sorted(overlap)}")
        for path in public + service:
            if not path.startswith(FUNCTION_PREFIX):
                raise ValueError(f"Endpoint {path} is not under {FUNCTION_PREFIX}")

        entries = [RouteEntry(p, PathClass.PUBLIC, exact=True) for p in public]
        entries += [RouteEntry(p, PathClass.SERVICE_FUNCTION, exact=True) for p in service]
        entries.append(RouteEntry(FUNCTION_PREFIX, PathClass.PROTECTED_FUNCTION))
        entries += [RouteEntry(p, PathClass.PASSTHROUGH) for p in PASSTHROUGH_PREFIXES]
        self._entries: Tuple[RouteEntry, ...] = tuple(entries)

        logger.info(
            f"Route table built: {len(public)} public, {len(service)} service endpoints",
        )

    @classmethod
    def from_config(cls, config: GatewayConfig) -> "RouteTable":
        return cls(config.public_endpoints, config.service_endpoints)

    @property
    def entries(self) -> Tuple[RouteEntry, ...]:
        return self._entries

    def classify(self, path: str) -> PathClass:
        """
        Return the class of the first matching entry, REJECTED when none matches.

        Paths with dot segments are rejected, since the backend URL would
        resolve them to a different path.
        """
        if has_dot_segments(path):
            return PathClass.REJECTED
        for entry in self._entries:
            if entry.matches(path):
                return entry.path_class
        return PathClass.REJECTED

    def is_public(self, path: str) -> bool:
        return self.classify(path) is PathClass.PUBLIC
