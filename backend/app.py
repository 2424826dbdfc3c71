# backend/app.py
from __future__ import annotations

import os
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from . import config
from . import db
from .routers.ai_support import router as ai_support_router

logger = logging.getLogger("uvicorn")

app = FastAPI(title="Storefront AI Support")


# ============================================================
# Error envelope: every failure is {"error": "..."}
# ============================================================
@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected request body on {request.url.path}: {exc.errors()}")
    return JSONResponse(status_code=400, content={"error": "Invalid request body"})


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": "Internal server error"})


# ============================================================
# API routes
# ============================================================
@app.get("/api/health")
def health():
    provider = config.provider_name()
    return {
        "ok": True,
        "llm_provider": provider,
        "llm_model": {"google": config.GOOGLE_GEMINI_MODEL, "openai": config.LLM_MODEL}.get(provider or ""),
        "db_enabled": config.DB_ENABLED,
        "db_ready": db.TABLE_READY,
        "rate_limit_backend": config.RATE_LIMIT_BACKEND,
        "webhook_configured": bool(config.SUPPORT_WEBHOOK_URL),
        "developer_escalation": bool(config.DEVELOPER_SUPPORT_EMAIL),
    }


@app.on_event("startup")
def startup_event():
    logger.info(f"=== App startup: AI support (provider={config.provider_name() or 'none'}) ===")
    if config.DB_ENABLED:
        db.db_connect_and_prepare()


app.include_router(ai_support_router)


if __name__ == "__main__":
    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", "8000"))
    import uvicorn
    uvicorn.run("backend.app:app", host=host, port=port, reload=True)
