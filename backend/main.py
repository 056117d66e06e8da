from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from api.v1 import auth, users, posts, interactions, follows, wallet, notifications, admin
from core.config import settings
from core.exceptions import SocialError
from db.base import initialize_database
from db.session import engine, SessionLocal
from sqlalchemy import text
from utils.logging_config import configure_logging, RequestContextMiddleware

# Configure logging with date-based files and TTL retention
logger = configure_logging("pulse_social")


@asynccontextmanager
async def lifespan(app: FastAPI):
    await initialize_database()
    logger.info("Application startup complete")
    yield
    await engine.dispose()
    logger.info("Application shutdown complete")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

@app.exception_handler(SocialError)
async def social_error_handler(request: Request, exc: SocialError):
    # Business errors carry a machine readable kind next to the message
    if exc.status_code >= 500:
        logger.error(f"{exc.kind} at {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "kind": exc.kind},
        headers=exc.headers,
    )

# Global exception handler to ensure 500s for unexpected errors
@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error at {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})

# Add GZip compression for larger JSON payloads
app.add_middleware(GZipMiddleware, minimum_size=500)

# Add logging context middleware to capture user_id and API path
app.add_middleware(RequestContextMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(auth.router, prefix=settings.API_V1_STR, tags=["Authentication"])
app.include_router(users.router, prefix=settings.API_V1_STR, tags=["Users"])
app.include_router(posts.router, prefix=settings.API_V1_STR, tags=["Posts"])
app.include_router(interactions.router, prefix=settings.API_V1_STR, tags=["Interactions"])
app.include_router(follows.router, prefix=settings.API_V1_STR, tags=["Follows"])
app.include_router(wallet.router, prefix=settings.API_V1_STR, tags=["Wallet"])
app.include_router(notifications.router, prefix=settings.API_V1_STR, tags=["Notifications"])
app.include_router(admin.router, prefix=settings.API_V1_STR, tags=["Admin"])

@app.get("/")
async def root():
    return {"message": settings.APP_NAME, "version": settings.VERSION}

@app.get("/health")
async def health_check():
    try:
        async with SessionLocal() as db:
            await db.execute(text("SELECT 1"))
        db_status = "sql_connected"
    except Exception as e:
        logger.warning(f"Health SQL check failed: {e}")
        db_status = "sql_unavailable"
    return {"status": "healthy" if db_status == "sql_connected" else "degraded", "database": db_status}
