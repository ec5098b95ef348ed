"""Recipe Parser API - FastAPI Application."""

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from recipe_parser.config import get_settings

settings = get_settings()

# Parse failures are reported as warnings from the services; this catches the rest
if settings.sentry_dsn:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.2,
        send_default_pii=False,
    )
    print(f"📊 Sentry initialized for {settings.environment}")
else:
    print("📊 Sentry not configured (no SENTRY_DSN)")

from recipe_parser.routers import health_router, parse_router
from recipe_parser.services.cache import close_redis

app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description="Turn recipe websites, social posts, text and photos into structured recipes",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)

app.include_router(health_router)
app.include_router(parse_router)


@app.get("/")
async def root():
    """Service info and the endpoints a client starts from."""
    return {
        "name": settings.api_title,
        "version": settings.api_version,
        "docs": "/docs",
        "health": "/health",
        "parse": "/api/parse",
    }


@app.on_event("startup")
async def startup():
    print(f"🚀 {settings.api_title} v{settings.api_version} ({settings.environment})")
    print(f"🤖 Models: text={settings.text_model}, vision={settings.vision_model}")
    if not settings.ai_api_key:
        print("⚠️ No OPENAI_API_KEY or OPENROUTER_API_KEY set, AI parsing will fail")
    print(f"📤 S3 image re-hosting: {'enabled' if settings.s3_enabled else 'disabled'}")


@app.on_event("shutdown")
async def shutdown():
    await close_redis()
    print("👋 Shutting down Recipe Parser API")
