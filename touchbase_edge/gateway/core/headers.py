"""
Header policy.

Pure functions computing CORS and security response headers. Nothing here
mutates a shared header object; callers merge the returned dicts into the
response they are building.
"""

from typing import Dict, Iterable, Optional

# Hop-by-hop headers (RFC 7230 section 6.1) plus Host, which is derived from the target URL.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "proxy-authenticate",
        "proxy-authorization",
        "te",
        "trailers",
        "transfer-encoding",
        "upgrade",
        "host",
    }
)

CORS_ALLOW_METHODS = "GET, POST, OPTIONS, PUT, DELETE, PATCH"
CORS_ALLOW_HEADERS = ", ".join(
    [
        "authorization",
        "x-client-info",
        "apikey",
        "content-type",
        "content-profile",
        "x-client-secret",
        "x-supabase-api-version",
        "prefer",
        "range",
        "accept-profile",
        "accept-language",
    ]
)
CORS_MAX_AGE = "86400"

CONTENT_SECURITY_POLICY = {
    "default-src": ["'self'"],
    "connect-src": [
        "'self'",
        "https://*.supabase.co",
        "https://*.groq.com",
        "https://*.brevo.com",
        "https://api.brevo.com",
        "https://api.openai.com",
        "https://api.openrouter.ai",
        "https://openrouter.ai",
        "https://*.googleapis.com",
        "https://*.firebaseapp.com",
        "https://*.appspot.com",
        "https://analytics.google.com",
        "https://*.paypal.com",
        "https://api-m.paypal.com",
        "https://vitals.vercel-insights.com",
        "https://va.vercel-scripts.com",
        "https://play.google.com",
        "https://www.gstatic.com/firebasejs/",
        "wss://*.firebaseio.com",
        "https://api.touchbase.site",
    ],
    "script-src": [
        "'self'",
        "'unsafe-inline'",
        "https://*.paypal.com",
        "https://va.vercel-scripts.com",
        "https://*.firebaseapp.com",
        "https://*.googleapis.com",
        "https://www.gstatic.com",
        "https://play.google.com",
        "https://static.cloudflareinsights.com",
    ],
    "style-src": ["'self'", "'unsafe-inline'", "https://cdn.jsdelivr.net"],
    "img-src": ["'self'", "data:", "https://*", "blob:"],
    "font-src": ["'self'", "data:"],
    "frame-ancestors": ["'self'"],
    "object-src": ["'none'"],
    "base-uri": ["'self'"],
    "frame-src": [
        "https://*.paypal.com",
        "https://api-m.paypal.com",
        "https://*.firebaseapp.com",
        "https://play.google.com",
    ],
    "worker-src": ["'self'", "blob:", "https://www.gstatic.com/firebasejs/"],
    "child-src": ["'self'", "blob:"],
    "manifest-src": ["'self'"],
    "media-src": ["'self'"],
}

PERMISSIONS_POLICY = {
    "geolocation": "self",
    "payment": "*",
    "camera": "self",
    "microphone": "self",
    "magnetometer": "self",
    "accelerometer": "self",
    "gyroscope": "self",
}


def resolve_origin(origin: Optional[str], allowed_origins: Iterable[str]) -> Optional[str]:
    """Return the origin when it is allow-listed, otherwise None."""
    if origin and origin in allowed_origins:
        return origin
    return None


def cors_headers(
    origin: Optional[str], method: str, allowed_origins: Iterable[str]
) -> Dict[str, str]:
    """
    CORS headers granted to a request.

    Args:
        origin: Value of the request's Origin header, if any
        method: Request method; preflight-only headers are added for OPTIONS
        allowed_origins: Static allow-list

    Returns:
        Empty dict when the origin is missing or not allow-listed.
    """
    allowed = resolve_origin(origin, allowed_origins)
    if allowed is None:
        return {}

    headers = {
        "Access-Control-Allow-Origin": allowed,
        "Access-Control-Allow-Credentials": "true",
        "Vary": "Origin",
    }
    if method.upper() == "OPTIONS":
        headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
        headers["Access-Control-Max-Age"] = CORS_MAX_AGE
    return headers


def build_content_security_policy() -> str:
    return "; ".join(
        f"{directive} {' '.join(sources)}" for directive, sources in CONTENT_SECURITY_POLICY.items()
    )


def security_headers() -> Dict[str, str]:
    """Hardening headers for non-function responses."""
    return {
        "X-Frame-Options": "SAMEORIGIN",
        "Content-Security-Policy": build_content_security_policy(),
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains; preload",
        "X-Content-Type-Options": "nosniff",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Permissions-Policy": ", ".join(f"{k}={v}" for k, v in PERMISSIONS_POLICY.items()),
    }
