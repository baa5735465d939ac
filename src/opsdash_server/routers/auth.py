"""Google OAuth endpoints.

GET /api/v1/auth/google reports whether tokens are stored and, if not,
returns the consent URL. Google redirects back to the callback, which
exchanges the code, stores the tokens and redirects to the dashboard's
email page.
"""

import asyncio
import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, RedirectResponse

from opsdash_server.config import OpsDashSettings
from opsdash_server.dependencies import get_app_settings, get_oauth_manager
from opsdash_server.errors import ConfigurationError
from opsdash_server.integrations.google_auth import GoogleOAuthManager
from opsdash_server.models.common import ErrorResponse
from opsdash_server.models.gmail import AuthStatusResponse
from opsdash_server.routers.responses import from_exception

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.get(
    "/google", response_model=AuthStatusResponse, responses={400: {"model": ErrorResponse}}
)
async def google_auth_status(
    oauth: GoogleOAuthManager = Depends(get_oauth_manager),
) -> AuthStatusResponse | JSONResponse:
    if oauth.is_authenticated():
        return AuthStatusResponse(authenticated=True)
    try:
        return AuthStatusResponse(authenticated=False, auth_url=oauth.authorization_url())
    except ConfigurationError as e:
        return from_exception(e)


@router.get("/google/callback")
async def google_auth_callback(
    code: str | None = None,
    error: str | None = None,
    settings: OpsDashSettings = Depends(get_app_settings),
    oauth: GoogleOAuthManager = Depends(get_oauth_manager),
) -> RedirectResponse:
    """Handle Google's redirect and store the issued tokens.

    Always redirects to the dashboard's email page with either
    success=true or an error query parameter.
    """
    email_page = f"{settings.app_url.rstrip('/')}/email"
    if error:
        return RedirectResponse(f"{email_page}?error={quote(error)}")
    if not code:
        return RedirectResponse(f"{email_page}?error=no_code")

    try:
        await asyncio.to_thread(oauth.exchange_code, code)
    except Exception as e:
        logger.error(f"OAuth callback error: {e}")
        return RedirectResponse(f"{email_page}?error={quote(str(e))}")
    return RedirectResponse(f"{email_page}?success=true")
