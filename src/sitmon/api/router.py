"""Top-level API router: mounts all domain routers under /api/v1."""

from fastapi import APIRouter

from sitmon.api.routes import accounts, imports, signals, system, watchlist

api_router = APIRouter()
api_router.include_router(accounts.router, prefix="/accounts", tags=["accounts"])
api_router.include_router(signals.router, prefix="/signals", tags=["signals"])
api_router.include_router(watchlist.router, prefix="/watchlist", tags=["watchlist"])
api_router.include_router(imports.router, prefix="/import", tags=["import"])
api_router.include_router(system.router, prefix="/system", tags=["system"])
