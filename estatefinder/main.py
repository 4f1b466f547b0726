# Application entrypoint: configures logging, middleware, error translation and API routers.
import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from .db import Base, engine
from .errors import ApiError
from .routes.admin import router as admin_router
from .routes.auth import router as auth_router
from .routes.favorites import router as favorites_router
from .routes.frontend import router as frontend_router
from .routes.inquiries import router as inquiries_router
from .routes.properties import router as properties_router

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger("estatefinder")
access_logger = logging.getLogger("estatefinder.http")


# Parse CORS origins from a comma-separated env var; '*' (or unset) allows any origin without credentials.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    if not env_value:
        return ["*"]
    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    return origins or ["*"]


@asynccontextmanager
async def lifespan(app: FastAPI):
    # For local SQLite, auto-create tables; server databases rely on Alembic migrations.
    if config.DATABASE_URL.startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    logger.info("EstateFinder API starting (environment=%s)", config.ENVIRONMENT)
    yield
    engine.dispose()


app = FastAPI(title="EstateFinder API", version="1.0.0", lifespan=lifespan)
allow_list = _parse_cors_origins(config.CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_list,
    allow_credentials=allow_list != ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def access_log(request: Request, call_next):
    started = time.perf_counter()
    response = await call_next(request)
    access_logger.info(
        "%s %s %s %.1fms",
        request.method,
        request.url.path,
        response.status_code,
        (time.perf_counter() - started) * 1000,
    )
    return response


# ----------------
# Error translation: the only place typed failures become HTTP responses
# ----------------
@app.exception_handler(ApiError)
async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.message}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    message = "Invalid request"
    if errors:
        first = errors[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid value for {loc}: {first.get('msg')}" if loc else str(first.get("msg"))
    return JSONResponse(status_code=400, content={"error": message})


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(SQLAlchemyError)
async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.exception("Database error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(auth_router, prefix="/api", tags=["auth"])
app.include_router(properties_router, prefix="/api", tags=["properties"])
app.include_router(inquiries_router, prefix="/api", tags=["inquiries"])
app.include_router(favorites_router, prefix="/api", tags=["favorites"])
app.include_router(admin_router, prefix="/api", tags=["admin"])
# Catch-all SPA route must stay last
app.include_router(frontend_router)


def run() -> None:
    import uvicorn

    uvicorn.run(app, host=config.HOST, port=config.PORT)


if __name__ == "__main__":
    run()
