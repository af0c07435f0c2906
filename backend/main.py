"""
Hive Explorer — FastAPI Backend
Serves module-tree layouts and dependency views from graph snapshots.
"""
import logging
import os
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from routers import graphs, layout, modules, search, sessions

logging.basicConfig(
    level=os.environ.get("HIVE_LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(name)s %(levelname)s %(message)s",
)

CORS_ORIGINS = [o.strip() for o in os.environ.get("HIVE_CORS_ORIGINS", "*").split(",") if o.strip()]

app = FastAPI(title="Hive Explorer API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(graphs.router, tags=["graphs"])
app.include_router(layout.router, tags=["layout"])
app.include_router(search.router, tags=["search"])
app.include_router(modules.router, tags=["modules"])
app.include_router(sessions.router, tags=["sessions"])


# ── Serve React frontend (must be last) ────────────────────────────────────

FRONTEND_DIST = Path(__file__).parent.parent / "frontend" / "dist"

if FRONTEND_DIST.exists():
    app.mount("/assets", StaticFiles(directory=FRONTEND_DIST / "assets"), name="assets")

    @app.get("/{full_path:path}")
    async def serve_spa(full_path: str):
        """Serve React SPA — return index.html for all non-API routes."""
        return FileResponse(FRONTEND_DIST / "index.html")


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host=os.environ.get("HIVE_HOST", "127.0.0.1"), port=int(os.environ.get("HIVE_PORT", "8000")))
