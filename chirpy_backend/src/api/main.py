import argparse
import logging
import os
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse, PlainTextResponse, Response
from fastapi.staticfiles import StaticFiles

from src.api.core.auth import (
    ACCESS_TOKEN_ISSUER,
    REFRESH_TOKEN_ISSUER,
    create_token,
    decode_token,
    get_bearer_token,
    get_current_user_id,
)
from src.api.core.errors import (
    ConfigurationError,
    EmailTakenError,
    InvalidUserIDError,
    NotFoundError,
    StoreError,
    TokenRevokedError,
    UnregisteredEmailError,
    WrongPasswordError,
)
from src.api.core.profanity import filter_profanity
from src.api.core.settings import Settings, get_settings
from src.api.core.storage import JsonChirpStore
from src.api.models import (
    Chirp,
    ChirpCreate,
    Credentials,
    LoginResponse,
    RefreshResponse,
    UserView,
)

MAX_CHIRP_LENGTH = 140

logger = logging.getLogger(__name__)

openapi_tags = [
    {"name": "Health", "description": "Service health endpoints."},
    {"name": "Auth", "description": "Login and token refresh/revocation."},
    {"name": "Users", "description": "User account endpoints."},
    {"name": "Chirps", "description": "Create, read and delete chirps."},
    {"name": "Admin", "description": "Administrative pages."},
]

_STATUS_BY_ERROR = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    InvalidUserIDError: status.HTTP_404_NOT_FOUND,
    EmailTakenError: status.HTTP_409_CONFLICT,
    UnregisteredEmailError: status.HTTP_401_UNAUTHORIZED,
    WrongPasswordError: status.HTTP_401_UNAUTHORIZED,
    TokenRevokedError: status.HTTP_401_UNAUTHORIZED,
}

api_router = APIRouter(prefix="/api")
admin_router = APIRouter(prefix="/admin")


def get_store(request: Request) -> JsonChirpStore:
    return request.app.state.store


def _settings(request: Request) -> Settings:
    return request.app.state.settings


async def _store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if code == status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(f"Store failure on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return JSONResponse(status_code=code, content={"detail": "Database error"})
    return JSONResponse(status_code=code, content={"detail": str(exc)})


@api_router.get("/healthz", tags=["Health"], summary="Readiness check", operation_id="healthz")
def healthz():
    """Readiness check endpoint.

    Returns:
        Plain text "OK".
    """
    return PlainTextResponse("OK")


@api_router.post(
    "/users",
    response_model=UserView,
    status_code=status.HTTP_201_CREATED,
    tags=["Users"],
    summary="Create user account",
    operation_id="create_user",
)
def create_user(payload: Credentials, store: JsonChirpStore = Depends(get_store)):
    """Register a new user."""
    return store.create_user(payload.email, payload.password)


@api_router.put(
    "/users",
    response_model=UserView,
    tags=["Users"],
    summary="Update current user",
    operation_id="update_user",
)
def update_user(
    payload: Credentials,
    user_id: int = Depends(get_current_user_id),
    store: JsonChirpStore = Depends(get_store),
):
    """Replace email and password of the authenticated user."""
    return store.update_user(user_id, payload.email, payload.password)


@api_router.get(
    "/users/me",
    response_model=UserView,
    tags=["Users"],
    summary="Get current user",
    operation_id="current_user",
)
def current_user(user_id: int = Depends(get_current_user_id), store: JsonChirpStore = Depends(get_store)):
    """Return the authenticated user's basic info."""
    return store.get_user(user_id)


@api_router.post(
    "/login",
    response_model=LoginResponse,
    tags=["Auth"],
    summary="Login",
    operation_id="login",
)
def login(request: Request, payload: Credentials, store: JsonChirpStore = Depends(get_store)):
    """Authenticate a user and return an access token and a refresh token."""
    try:
        user = store.validate_credentials(payload.email, payload.password)
    except (UnregisteredEmailError, WrongPasswordError) as e:
        logger.info(f"Login failed for {payload.email}: {e}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")

    settings = _settings(request)
    subject = str(user.id)
    return LoginResponse(
        id=user.id,
        email=user.email,
        token=create_token(subject, settings.jwt_secret, ACCESS_TOKEN_ISSUER, settings.access_token_exp_seconds),
        refresh_token=create_token(
            subject, settings.jwt_secret, REFRESH_TOKEN_ISSUER, settings.refresh_token_exp_seconds
        ),
    )


@api_router.post(
    "/refresh",
    response_model=RefreshResponse,
    tags=["Auth"],
    summary="Issue a new access token",
    operation_id="refresh",
)
def refresh(
    request: Request,
    token: str = Depends(get_bearer_token),
    store: JsonChirpStore = Depends(get_store),
):
    """Exchange a valid, non-revoked refresh token for a new access token."""
    settings = _settings(request)
    token_data = decode_token(token, settings.jwt_secret, REFRESH_TOKEN_ISSUER)
    try:
        store.check_token_revoked(token)
    except TokenRevokedError:
        logger.info(f"Revoked refresh token presented for user {token_data.sub}")
        raise
    return RefreshResponse(
        token=create_token(
            token_data.sub, settings.jwt_secret, ACCESS_TOKEN_ISSUER, settings.access_token_exp_seconds
        )
    )


@api_router.post("/revoke", tags=["Auth"], summary="Revoke a refresh token", operation_id="revoke")
def revoke(
    request: Request,
    token: str = Depends(get_bearer_token),
    store: JsonChirpStore = Depends(get_store),
):
    """Revoke the presented refresh token."""
    decode_token(token, _settings(request).jwt_secret, REFRESH_TOKEN_ISSUER)
    store.add_token_revocation(token)
    return {}


@api_router.get(
    "/chirps",
    response_model=list[Chirp],
    tags=["Chirps"],
    summary="List chirps",
    operation_id="list_chirps",
)
def list_chirps(store: JsonChirpStore = Depends(get_store)):
    """List all chirps in ascending id order."""
    return store.list_chirps()


@api_router.post(
    "/chirps",
    response_model=Chirp,
    status_code=status.HTTP_201_CREATED,
    tags=["Chirps"],
    summary="Create chirp",
    operation_id="create_chirp",
)
def create_chirp(
    payload: ChirpCreate,
    user_id: int = Depends(get_current_user_id),
    store: JsonChirpStore = Depends(get_store),
):
    """Post a chirp as the authenticated user."""
    if len(payload.body) > MAX_CHIRP_LENGTH:
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Chirp is too long"})
    return store.create_chirp(user_id, filter_profanity(payload.body))


@api_router.get(
    "/chirps/{chirp_id}",
    response_model=Chirp,
    tags=["Chirps"],
    summary="Get chirp",
    operation_id="get_chirp",
)
def get_chirp(chirp_id: int, store: JsonChirpStore = Depends(get_store)):
    """Get a single chirp by id."""
    return store.get_chirp(chirp_id)


@api_router.delete(
    "/chirps/{chirp_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Chirps"],
    summary="Delete chirp",
    operation_id="delete_chirp",
)
def delete_chirp(
    chirp_id: int,
    user_id: int = Depends(get_current_user_id),
    store: JsonChirpStore = Depends(get_store),
):
    """Delete a chirp (must be authored by the current user)."""
    chirp = store.get_chirp(chirp_id)
    if chirp.author_id != user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not the author of this chirp")
    store.delete_chirp(chirp_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@admin_router.get("/metrics", tags=["Admin"], summary="File server hits", operation_id="metrics")
def metrics(request: Request):
    """HTML page reporting how often the static app was requested."""
    hits = request.app.state.fileserver_hits
    return HTMLResponse(
        f"""<html>
<body>
	<h1>Welcome, Chirpy Admin</h1>
	<p>Chirpy has been visited {hits} times!</p>
</body>
</html>"""
    )


# PUBLIC_INTERFACE
def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application around a store opened at the configured path.

    Raises:
        ConfigurationError: if the store path cannot be used.
    """
    settings = settings or get_settings()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if settings.debug and os.path.isfile(settings.database_path):
        os.remove(settings.database_path)
        logger.info(f"Debug mode: removed {settings.database_path}")

    app = FastAPI(
        title="Chirpy API",
        description="Backend API for posting chirps, with user accounts and token based sessions.",
        version="0.1.0",
        openapi_tags=openapi_tags,
    )
    app.state.settings = settings
    app.state.store = JsonChirpStore(
        settings.database_path,
        atomic_writes=settings.store_atomic_writes,
        enforce_unique_email_on_update=settings.enforce_unique_email_on_update,
    )
    app.state.fileserver_hits = 0

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def count_fileserver_hits(request: Request, call_next):
        if request.url.path == "/app" or request.url.path.startswith("/app/"):
            request.app.state.fileserver_hits += 1
        return await call_next(request)

    app.add_exception_handler(StoreError, _store_error_handler)
    app.include_router(api_router)
    app.include_router(admin_router)
    if os.path.isdir(settings.static_dir):
        app.mount("/app", StaticFiles(directory=settings.static_dir, html=True), name="app")
    else:
        logger.warning(f"Static directory {settings.static_dir} not found, /app is disabled")

    logger.info(f"Chirpy API ready (store={settings.database_path})")
    return app


def run() -> None:
    """Console entry point: serve the API with uvicorn."""
    parser = argparse.ArgumentParser(description="Run the Chirpy API server.")
    parser.add_argument("address", nargs="?", default="localhost:8080", help="host:port to listen on")
    parser.add_argument("--debug", action="store_true", help="use a fresh debug database")
    args = parser.parse_args()
    if args.debug:
        os.environ["DEBUG"] = "true"

    host, _, port = args.address.rpartition(":")
    try:
        app = create_app()
    except ConfigurationError as e:
        logger.critical(f"Cannot start: {e}")
        raise SystemExit(1)
    uvicorn.run(app, host=host or "localhost", port=int(port))
