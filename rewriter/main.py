"""FastAPI application exposing the local entitlement core to the desktop shell."""
from __future__ import annotations

import logging
import os
from typing import Optional

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from rewriter.app.routes.entitlements import router as entitlements_router
from rewriter.app.services.entitlements import build_entitlement_service
from rewriter.config import EntitlementConfig, load_entitlement_config

load_dotenv()

logger = logging.getLogger("rewriter")


def create_app(config: Optional[EntitlementConfig] = None) -> FastAPI:
    """Build the application with one entitlement service for its lifetime."""

    resolved = config or load_entitlement_config()
    app = FastAPI(title="Clipboard Rewriter Entitlements API")

    # Vite dev server / Tauri webview origins
    allowed_origins = [
        origin.strip()
        for origin in os.getenv("CORS_ALLOW_ORIGINS", "http://localhost:1420,tauri://localhost").split(",")
        if origin.strip()
    ]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.entitlement_config = resolved
    app.state.entitlement_service = build_entitlement_service(resolved)
    app.include_router(entitlements_router)
    logger.info("Application created edition=%s", resolved.edition)
    return app
