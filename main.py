# main.py
from dotenv import load_dotenv
load_dotenv()

import os
import logging
from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.domain.errors import VeritasError
from app.presentation.health import router as health_router
from app.presentation.routers import router as api_router, write_router

# --- logging config must come first ---
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

# application request logger, not 'uvicorn.access'
app_logger = logging.getLogger("veritas.request")

app = FastAPI(
    title="Veritas API",
    version=os.getenv("APP_VERSION", "0.1.0"),
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    app_logger.info(f"➡️ Incoming {request.method} {request.url.path}")
    try:
        response = await call_next(request)
        app_logger.info(f"⬅️ Completed {request.method} {request.url.path} -> {response.status_code}")
        return response
    except Exception:
        app_logger.exception(f"❌ Unhandled error on {request.method} {request.url.path}")
        raise


@app.exception_handler(VeritasError)
async def veritas_error_handler(request: Request, exc: VeritasError):
    level = logging.ERROR if exc.status_code >= 500 else logging.INFO
    app_logger.log(level, "%s %s -> %s %s: %s",
                   request.method, request.url.path, exc.status_code, exc.error, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


# ─────────────────────────────────────────────────────────────
# CORS (set via env: CORS_ALLOW_ORIGINS="https://foo.com,https://bar.com")
# ─────────────────────────────────────────────────────────────
raw_origins = os.getenv("CORS_ALLOW_ORIGINS", "*")
allow_origins = [o.strip().rstrip("/") for o in raw_origins.split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials="*" not in allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ─────────────────────────────────────────────────────────────
# Routes
# ─────────────────────────────────────────────────────────────
app.include_router(health_router, tags=["health"])
app.include_router(api_router, tags=["api"])
app.include_router(write_router, tags=["api"])


@app.get("/")
async def root():
    return {
        "name": "Veritas API",
        "version": os.getenv("APP_VERSION", "0.1.0"),
        "ok": True,
    }


@app.options("/{rest_of_path:path}")
async def any_options(rest_of_path: str):
    return Response(status_code=204)
