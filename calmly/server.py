"""Demo login/register API.

Users live in memory for the lifetime of the process and passwords are
stored as given. Good enough for trying the apps on a phone; not for
anything real.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional, Protocol

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from starlette.exceptions import HTTPException as StarletteHTTPException

log = logging.getLogger(__name__)

DEFAULT_PORT = 9000

_REGISTER_INCOMPLETE = "Username, password, and date of birth required"
_BAD_CREDENTIALS = "Invalid credentials"


class StoredUser(BaseModel):
    username: str
    password: str
    dob: str


class RegisterBody(BaseModel):
    # Optional so that missing fields reach the handler and get a 400
    username: Optional[str] = None
    password: Optional[str] = None
    dob: Optional[str] = None


class LoginBody(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class UserRepository(Protocol):
    def get(self, username: str) -> Optional[StoredUser]: ...

    def add(self, user: StoredUser) -> None: ...

    def clear(self) -> None: ...


class InMemoryUserRepository:
    """Users keyed by name. Gone when the process exits."""

    def __init__(self) -> None:
        self._users: dict[str, StoredUser] = {}

    def get(self, username: str) -> Optional[StoredUser]:
        return self._users.get(username)

    def add(self, user: StoredUser) -> None:
        self._users[user.username] = user

    def clear(self) -> None:
        self._users.clear()

    def __len__(self) -> int:
        return len(self._users)


def _message(status: int, message: str, **extra: object) -> JSONResponse:
    return JSONResponse(status_code=status, content={"message": message, **extra})


def get_users(request: Request) -> UserRepository:
    return request.app.state.users


def create_app(repository: Optional[UserRepository] = None) -> FastAPI:
    """Build the API. ``repository`` defaults to a fresh in-memory one."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.users = repository if repository is not None else InMemoryUserRepository()
        log.info("Auth API ready")
        yield
        app.state.users.clear()

    app = FastAPI(title="Calmly demo auth", lifespan=lifespan)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unknown paths and wrong methods both read as "no such route"
        if exc.status_code in (404, 405):
            return _message(404, "Not found")
        return _message(exc.status_code, str(exc.detail))

    @app.exception_handler(RequestValidationError)
    async def bad_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Missing, non-JSON or mistyped bodies get the route's own error."""
        log.debug("Rejected body for %s: %s", request.url.path, exc.errors())
        if request.url.path == "/api/login":
            return _message(401, _BAD_CREDENTIALS)
        return _message(400, _REGISTER_INCOMPLETE)

    @app.get("/", response_class=PlainTextResponse)
    async def root() -> str:
        return "API server is running!"

    @app.post("/api/register")
    async def register(
        body: RegisterBody, users: UserRepository = Depends(get_users)
    ) -> JSONResponse:
        if not body.username or not body.password or not body.dob:
            return _message(400, _REGISTER_INCOMPLETE)
        if users.get(body.username) is not None:
            return _message(409, "User already exists")
        users.add(StoredUser(username=body.username, password=body.password, dob=body.dob))
        log.info("Registered %s", body.username)
        return _message(
            200,
            "Registration successful",
            user={"username": body.username, "dob": body.dob},
        )

    @app.post("/api/login")
    async def login(body: LoginBody, users: UserRepository = Depends(get_users)) -> JSONResponse:
        user = users.get(body.username or "")
        if user is None or user.password != body.password:
            return _message(401, _BAD_CREDENTIALS)
        return _message(
            200,
            "Login successful",
            token="fake-jwt",
            user={"username": user.username, "dob": user.dob},
        )

    return app


def serve(host: str = "0.0.0.0", port: int = DEFAULT_PORT) -> None:
    """Run the API with uvicorn (blocks)."""
    import uvicorn

    uvicorn.run(create_app(), host=host, port=port)
