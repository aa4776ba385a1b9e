import logging
from typing import Optional, Sequence

from starlette.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_HEADERS = ["Content-Type", "Authorization"]


class AllowListCORSMiddleware(CORSMiddleware):
    """
    CORS policy driven by an origin allow-list.

    An empty list (or a lone "*") allows every origin. Otherwise an origin is
    accepted when it is listed exactly, equals the public API URL (Swagger UI
    served from the same host), or ends with one of the listed entries, which
    lets ``.example.com`` cover its subdomains.
    """

    def __init__(
        self,
        app: ASGIApp,
        allowed_origins: Sequence[str] = (),
        public_api_url: Optional[str] = None,
    ) -> None:
        origins = [origin for origin in allowed_origins if origin]
        # Only a lone "*" is a wildcard; listed with other entries it is ignored
        allow_all = not origins or origins == ["*"]
        if not allow_all:
            origins = [origin for origin in origins if origin != "*"]
        super().__init__(
            app,
            allow_origins=["*"] if allow_all else origins,
            allow_methods=CORS_METHODS,
            allow_headers=CORS_HEADERS,
        )
        self.allowed_origins = origins
        self.public_api_url = public_api_url or None

    def is_allowed_origin(self, origin: str) -> bool:
        logger.debug(f"CORS check for origin: {origin}")
        if self.allow_all_origins:
            return True
        if (
            origin in self.allowed_origins
            or (self.public_api_url and origin == self.public_api_url)
            or any(origin.endswith(allowed) for allowed in self.allowed_origins)
        ):
            return True
        logger.warning(f"Origin blocked by CORS policy: {origin}")
        return False
