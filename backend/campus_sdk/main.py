# campus_sdk/main.py
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from campus_sdk.config import settings
from campus_sdk.core.bootstrap import ensure_default_admin, ensure_demo_users
from campus_sdk.core.errors import SDKError
from campus_sdk.core.sdk import build_sdk

from campus_sdk.api.v1.routers import auth, collections

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(SDKError)
async def sdk_error_handler(request: Request, exc: SDKError):
    """Map the SDK error taxonomy onto HTTP status codes and stable error codes."""
    if exc.status_code >= 500:
        logger.error("[api] %s %s -> %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.to_detail()})


@app.on_event("startup")
async def on_startup():
    # Tests install their own SDK before the app starts
    if getattr(app.state, "sdk", None) is None:
        app.state.sdk = build_sdk(settings)
    if settings.seed_demo_users:
        await ensure_demo_users(app.state.sdk.auth, settings.demo_password)
    # Ensure there's a default admin account on first run
    await ensure_default_admin(app.state.sdk.auth)


@app.on_event("shutdown")
async def on_shutdown():
    sdk = getattr(app.state, "sdk", None)
    if sdk is not None:
        await sdk.aclose()


# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(collections.router, prefix="/api/v1")


@app.get("/healthz")
def healthz():
    return {"ok": True}
