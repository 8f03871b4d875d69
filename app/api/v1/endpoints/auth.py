"""Auth endpoints: password and federated sign-in, session, sign-out."""

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.config import get_settings
from app.db.session import get_db
from app.models.user import User
from app.schemas.auth import Session, SignInRequest, SignUpRequest, UserRead
from app.services import identity
from app.services.auth_events import AuthContext, get_auth_context

router = APIRouter()


@router.post("/signup", response_model=Session, status_code=201)
async def signup(
    payload: SignUpRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """Create a password account and sign it in."""
    return await identity.sign_up(db, auth.notifier, payload.email, payload.password, payload.full_name)


@router.post("/login", response_model=Session)
async def login(
    payload: SignInRequest,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    return await identity.sign_in_with_password(db, auth.notifier, payload.email, payload.password)


@router.get("/oauth/{provider}")
async def oauth_login(
    provider: str,
    request: Request,
    redirect_to: str | None = Query(None, max_length=2000),
):
    """Redirect the browser to the provider's consent screen."""
    client = identity.get_oauth_client(provider)
    request.session["oauth_redirect_to"] = identity.check_redirect_target(redirect_to)
    callback_url = str(request.url_for("oauth_callback", provider=provider))
    return await client.authorize_redirect(request, callback_url)


@router.get("/oauth/{provider}/callback", name="oauth_callback")
async def oauth_callback(
    provider: str,
    request: Request,
    db: AsyncSession = Depends(get_db),
    auth: AuthContext = Depends(get_auth_context),
):
    """Finish federated sign-in and send the browser back with the session in the URL fragment."""
    client = identity.get_oauth_client(provider)
    userinfo = await identity.fetch_oauth_userinfo(client, request)
    session = await identity.sign_in_with_oauth(db, auth.notifier, provider, userinfo)
    target = request.session.pop("oauth_redirect_to", None) or get_settings().oauth_redirect_url
    return RedirectResponse(identity.session_redirect_url(target, session), status_code=302)


@router.get("/session", response_model=UserRead)
async def session(viewer: User = Depends(get_current_user)):
    return viewer


@router.post("/logout", status_code=204)
async def logout(
    viewer: User = Depends(get_current_user),
    auth: AuthContext = Depends(get_auth_context),
):
    await identity.sign_out(auth.notifier, viewer)
    return None
