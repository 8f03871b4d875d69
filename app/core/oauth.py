"""Federated sign-in clients (authlib Starlette integration).

Providers are registered once at import time from settings. authlib discovers
the authorization/token endpoints and the signing keys from the provider's
OpenID metadata and verifies the returned ID token (signature, issuer,
audience, nonce) inside ``authorize_access_token``.
"""

import logging

from authlib.integrations.starlette_client import OAuth

from app.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

OAUTH_SCOPE = "openid email profile"


def build_oauth(settings: Settings) -> OAuth:
    registry = OAuth()
    if not settings.oauth_google_client_id or not settings.oauth_google_client_secret:
        logger.warning("Google OAuth credentials not set; federated sign-in disabled")
        return registry
    registry.register(
        name="google",
        client_id=settings.oauth_google_client_id,
        client_secret=settings.oauth_google_client_secret,
        server_metadata_url=settings.oauth_google_metadata_url,
        client_kwargs={"scope": OAUTH_SCOPE},
    )
    logger.info("Google OAuth configured")
    return registry


oauth = build_oauth(get_settings())
