"""
Contact Intake API
FastAPI application for the public contact form.
"""

import logging
import os
from typing import List

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from app.routers import contact

# Configure logging to output to console
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)

logger = logging.getLogger(__name__)

API_VERSION = "0.1.0"

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "X-XSS-Protection": "1; mode=block",
    "Referrer-Policy": "origin-when-cross-origin",
}

_ASSET_PREFIXES = ("/static/", "/favicon.ico")

app = FastAPI(
    title="Contact Intake API",
    description="Contact form intake with spam filtering and email notifications",
    version=API_VERSION,
)


def get_cors_origins() -> List[str]:
    """
    Build the list of allowed CORS origins.

    Always includes http://localhost:3000 (frontend dev server). Additional
    origins are read from the CORS_ORIGINS environment variable as a
    comma-separated list, e.g.:
        CORS_ORIGINS=https://example.com,https://www.example.com

    Duplicates are removed while preserving order.
    """
    always_included = ["http://localhost:3000"]

    extra_origins: List[str] = []
    cors_env = os.getenv("CORS_ORIGINS", "").strip()
    if cors_env:
        extra_origins = [o.strip() for o in cors_env.split(",") if o.strip()]

    seen: set = set()
    origins: List[str] = []
    for origin in always_included + extra_origins:
        if origin not in seen:
            seen.add(origin)
            origins.append(origin)

    return origins


def wants_security_headers(path: str) -> bool:
    """Security headers go on page routes only: not API paths, not static assets."""
    if path.startswith(_ASSET_PREFIXES):
        return False
    return "api" not in path.strip("/").split("/")


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_cors_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def add_security_headers(request: Request, call_next):
    response = await call_next(request)
    if wants_security_headers(request.url.path):
        for name, value in SECURITY_HEADERS.items():
            response.headers[name] = value
    return response


app.include_router(contact.router, prefix="/contact", tags=["contact"])


@app.on_event("startup")
async def log_startup_url() -> None:
    """
    Log the URL the API is reachable at. The port comes from HOST_PORT so
    Docker-mapped ports are reported correctly; defaults to 8000.
    """
    host_port = os.getenv("HOST_PORT", "8000")
    logger.info("Contact Intake API running at http://localhost:%s", host_port)


@app.get("/")
async def root():
    return {"message": "Contact Intake API", "version": API_VERSION}


@app.get("/health")
async def health():
    return {"status": "ok"}
