from typing import Any

from fastapi import APIRouter, HTTPException, status

from atelier.api.deps import AuthContextDep, AuthGateDep, TokenDep
from atelier.errors import AuthenticationFailed
from atelier.models import AuthContext, Message, ProviderSignIn, Token

router = APIRouter(tags=["login"])


@router.post("/login/provider", response_model=Token)
async def login_with_provider(gate: AuthGateDep, body: ProviderSignIn) -> Any:
    """Exchange an identity provider access token for a session token."""
    try:
        result = await gate.sign_in(body.access_token)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return result.token


@router.get("/login/me", response_model=AuthContext)
async def read_auth_context(auth: AuthContextDep) -> Any:
    return auth


@router.post("/logout", response_model=Message)
async def logout(gate: AuthGateDep, credentials: TokenDep) -> Any:
    if credentials is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    try:
        await gate.sign_out(credentials.credentials)
    except AuthenticationFailed as exc:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)) from exc
    return Message(message="Signed out")
