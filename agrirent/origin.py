"""Cross-origin admission policy."""

import logging
import re

from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from agrirent.config import Settings

logger = logging.getLogger("agrirent")

# Hosting platforms whose subdomains may serve the frontend
HOSTING_PATTERNS = (
    r"https://.*\.netlify\.app",
    r"https://.*\.vercel\.app",
    r"https://.*\.herokuapp\.com",
    r"https://.*\.railway\.app",
    r"https://.*\.render\.com",
    r"https://.*\.surge\.sh",
    r"https://.*\.github\.io",
)


class OriginPolicy:
    """Decides whether a browser origin may call the API."""

    def __init__(
        self,
        frontend_urls: list[str],
        frontend_url: str,
        backend_url: str,
        ports: list[str],
    ) -> None:
        self.frontend_urls = frontend_urls
        self.frontend_url = frontend_url
        self.backend_url = backend_url
        self.ports = ports
        self.pattern_regex = "|".join(f"(?:{p})" for p in HOSTING_PATTERNS)
        self._pattern = re.compile(self.pattern_regex)

    @classmethod
    def from_settings(cls, settings: Settings) -> "OriginPolicy":
        return cls(
            frontend_urls=settings.FRONTEND_URLS,
            frontend_url=settings.FRONTEND_URL,
            backend_url=settings.BACKEND_URL,
            ports=settings.FRONTEND_PORTS,
        )

    def allowed_origins(self) -> list[str]:
        """Exact-match origins, deduplicated in configuration order."""
        origins = [*self.frontend_urls, self.frontend_url, self.backend_url]
        for port in self.ports:
            origins.append(f"http://localhost:{port}")
            origins.append(f"http://127.0.0.1:{port}")
        return list(dict.fromkeys(o for o in origins if o))

    def matches_hosting_pattern(self, origin: str) -> bool:
        return self._pattern.fullmatch(origin) is not None

    def is_allowed(self, origin: str | None) -> bool:
        # Non-browser clients send no Origin header
        if not origin:
            return True
        return origin in self.allowed_origins() or self.matches_hosting_pattern(origin)


class OriginPolicyMiddleware(BaseHTTPMiddleware):
    """Rejects requests from origins the policy does not admit, before routing."""

    def __init__(self, app, policy: OriginPolicy) -> None:
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next) -> Response:
        origin = request.headers.get("origin")
        if not self.policy.is_allowed(origin):
            logger.warning("CORS blocked origin: %s", origin)
            return JSONResponse(status_code=403, content={"detail": "Not allowed by CORS"})
        return await call_next(request)
