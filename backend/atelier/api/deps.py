from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from atelier import crud
from atelier.agent.gateway import ContentGateway
from atelier.auth import AuthGate
from atelier.errors import AuthenticationFailed
from atelier.models import AuthContext, SeriesPublic, UserProfile
from atelier.store import DocumentStore

bearer = HTTPBearer(auto_error=False)


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_gateway(request: Request) -> ContentGateway:
    return request.app.state.gateway


def get_auth_gate(request: Request) -> AuthGate:
    return request.app.state.auth_gate


StoreDep = Annotated[DocumentStore, Depends(get_store)]
GatewayDep = Annotated[ContentGateway, Depends(get_gateway)]
AuthGateDep = Annotated[AuthGate, Depends(get_auth_gate)]
TokenDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer)]


async def get_auth_context(gate: AuthGateDep, credentials: TokenDep) -> AuthContext:
    try:
        return await gate.resolve(credentials.credentials if credentials else None)
    except AuthenticationFailed as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        ) from exc


AuthContextDep = Annotated[AuthContext, Depends(get_auth_context)]


def get_current_user(auth: AuthContextDep) -> UserProfile:
    if auth.current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return auth.current_user


CurrentUser = Annotated[UserProfile, Depends(get_current_user)]


def get_owned_series(series_id: str, store: StoreDep, current_user: CurrentUser) -> SeriesPublic:
    series = crud.get_series(store=store, series_id=series_id)
    if series.autor_id != current_user.id:
        raise HTTPException(status_code=403, detail="Not enough permissions")
    return series


OwnedSeries = Annotated[SeriesPublic, Depends(get_owned_series)]
