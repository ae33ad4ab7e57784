"""
FastAPI application serving the game's counter and leaderboard.

Architecture:
    Request Flow:
    1. Browser sends request (possibly a CORS preflight)
    2. CORS middleware answers OPTIONS and rejects unsupported verbs (405)
    3. Route handler calls the counter or leaderboard service
    4. Service reads/writes the key-value store
    5. Errors map to 400 (validation) or 500 (store)

Endpoints (under settings.api_prefix, "/api" by default):
    - POST /incrementGamesPlayed
    - GET  /gamesPlayed
    - GET  /leaderboard
    - POST /leaderboard
"""

import logging
from contextlib import asynccontextmanager
from typing import Callable

from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from dinostroids_api import __version__
from dinostroids_api.config import settings
from dinostroids_api.errors import MethodNotAllowed, StoreError, ValidationError
from dinostroids_api.services.counter_service import CounterService
from dinostroids_api.services.leaderboard_service import LeaderboardService
from dinostroids_api.storage.base import KeyValueStore
from dinostroids_api.storage.redis_client import redis_store

logger = logging.getLogger(__name__)


# Lifespan context manager for startup/shutdown
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Startup: Create the Redis client (reused by every request)
    Shutdown: Close Redis connection
    """
    logger.info("[API] Starting Dinostroids API")
    await redis_store.connect()
    logger.info("[API] Ready to handle requests")

    yield

    logger.info("[API] Shutting down")
    await redis_store.disconnect()


# ============================================================================
# Dependencies
# ============================================================================


def get_store() -> KeyValueStore:
    """Store used by every service. Tests override this with an InMemoryStore."""
    return redis_store


def get_counter_service(store: KeyValueStore = Depends(get_store)) -> CounterService:
    return CounterService(store)


def get_leaderboard_service(
    store: KeyValueStore = Depends(get_store),
) -> LeaderboardService:
    return LeaderboardService(store)


# ============================================================================
# CORS
# ============================================================================

# Allowed methods per route, as advertised in Access-Control-Allow-Methods
ROUTE_METHODS: dict[str, tuple[str, ...]] = {
    "/incrementGamesPlayed": ("POST",),
    "/gamesPlayed": ("GET",),
    "/leaderboard": ("GET", "POST", "OPTIONS"),
}


class RouteCORSMiddleware(BaseHTTPMiddleware):
    """
    Per-route CORS handling for the game endpoints.

    How it works:
        1. Look up the allowed methods for the request path
        2. OPTIONS (preflight) -> 200 with CORS headers, no body
        3. Any verb outside the route's methods -> 405
        4. Otherwise run the handler and add the CORS headers

    Paths outside the table (health, docs) pass straight through.
    """

    def __init__(self, app, prefix: str = "", allow_origin: str = "*"):
        super().__init__(app)
        self.allow_origin = allow_origin
        self.route_methods = {
            f"{prefix}{path}": methods for path, methods in ROUTE_METHODS.items()
        }

    def cors_headers(self, methods: tuple[str, ...]) -> dict[str, str]:
        return {
            "Access-Control-Allow-Origin": self.allow_origin,
            "Access-Control-Allow-Methods": ", ".join(methods),
            "Access-Control-Allow-Headers": "Content-Type",
        }

    async def dispatch(self, request: Request, call_next: Callable):
        path = request.url.path.rstrip("/") or "/"
        methods = self.route_methods.get(path)
        if methods is None:
            return await call_next(request)

        headers = self.cors_headers(methods)

        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)

        if request.method not in methods:
            exc = MethodNotAllowed(request.method, path)
            logger.error(f"[CORS] {exc}")
            return JSONResponse(
                status_code=405,
                headers=headers,
                content={"error": "Method not allowed"},
            )

        response = await call_next(request)
        for header, value in headers.items():
            response.headers[header] = value
        return response


# ============================================================================
# API Endpoints
# ============================================================================

router = APIRouter()


@router.post("/incrementGamesPlayed")
async def increment_games_played(
    counter: CounterService = Depends(get_counter_service),
):
    """Add one to the games played counter. Called when a game starts."""
    try:
        result = await counter.increment()
    except StoreError as e:
        logger.error(f"[API] Error incrementing games played count: {e}")
        return JSONResponse(
            status_code=500,
            content={"message": "Error incrementing counter", "error": str(e)},
        )

    return {
        "message": "Counter incremented successfully",
        **result.model_dump(by_alias=True, exclude_none=True),
    }


@router.get("/gamesPlayed")
async def games_played(counter: CounterService = Depends(get_counter_service)):
    """
    Current games played count.

    On store failure still answers with the fallback count so the start
    screen can render.
    """
    reading = await counter.read()
    if reading.degraded:
        return JSONResponse(
            status_code=500,
            content={
                "count": reading.count,
                "error": "Failed to retrieve count",
                "message": reading.error,
            },
        )
    return {"count": reading.count}


@router.get("/leaderboard")
async def get_leaderboard(
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
):
    """Top scores, highest first. Empty array if nobody has played yet."""
    try:
        entries = await leaderboard.list()
    except StoreError as e:
        logger.error(f"[API] Error fetching leaderboard: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to retrieve leaderboard", "message": str(e)},
        )

    logger.info(f"[API] Returning {len(entries)} leaderboard entries")
    return entries


@router.post("/leaderboard")
async def add_to_leaderboard(
    request: Request,
    leaderboard: LeaderboardService = Depends(get_leaderboard_service),
):
    """
    Submit a score.

    Example:
        POST /api/leaderboard
        {"initials": "bdf", "score": 10000, "time": 120000, "difficulty": "difficult"}

    Responds 200 even if the score did not make the top 10.
    """
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        logger.error("[API] Leaderboard submission body is not a JSON object")
        return JSONResponse(status_code=400, content={"error": "Request body must be a JSON object."})

    try:
        entry = await leaderboard.submit(
            initials=body.get("initials"),
            score=body.get("score"),
            time=body.get("time"),
            difficulty=body.get("difficulty"),
            level=body.get("level"),
        )
    except ValidationError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except StoreError as e:
        logger.error(f"[API] Error adding to leaderboard: {e}")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to add score to leaderboard", "message": str(e)},
        )

    return {"message": "Score added to leaderboard", "entry": entry.to_wire()}


# ============================================================================
# Application
# ============================================================================


def create_app() -> FastAPI:
    """Build the FastAPI app with routes mounted under the configured prefix."""
    application = FastAPI(
        title="Dinostroids API",
        description="Games played counter and leaderboard for Dinostroids",
        version=__version__,
        lifespan=lifespan,
    )
    application.add_middleware(
        RouteCORSMiddleware,
        prefix=settings.api_prefix,
        allow_origin=settings.cors_allow_origin,
    )
    application.include_router(router, prefix=settings.api_prefix)

    @application.get("/health")
    async def health_check(store: KeyValueStore = Depends(get_store)):
        """
        Health check endpoint.

        Always 200 so the function stays routable; reports whether the
        store answered a ping.
        """
        try:
            await store.ping()
        except StoreError as e:
            logger.warning(f"[API] Store ping failed: {e}")
            return {"status": "degraded", "service": "dinostroids-api", "store": "unavailable"}
        return {"status": "healthy", "service": "dinostroids-api", "store": "ok"}

    return application


app = create_app()
