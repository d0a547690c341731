from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.app.api.errors import register_exception_handlers
from backend.app.api.v1.api import api_router
from backend.app.api.v1.endpoints import health
from backend.app.core.config import settings
from backend.app.core.logging_config import configure_logging
from backend.app.middleware.request_id import RequestIDMiddleware
from backend.app.middleware.security import SecurityHeadersMiddleware

configure_logging(settings.LOG_LEVEL)

app = FastAPI(title="ICAN Member Portal API")

# ─── CORS: restrict to configured origins ────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["Authorization", "Content-Type", "Accept", "X-Request-ID"],
    expose_headers=["X-Request-ID", "Retry-After"],
)

# ─── Custom middleware (outermost executes first) ─────────────────────────────
app.add_middleware(SecurityHeadersMiddleware)
app.add_middleware(RequestIDMiddleware)

register_exception_handlers(app)

app.include_router(health.router, tags=["health"])
app.include_router(api_router)
