"""Runtime lifecycle: storage, clients, stores and scheduled refresh.

Usage:
    uv run -m sitmon.agent

Or in code:
    from sitmon.agent import app_lifespan
    async with app_lifespan(settings) as state:
        await state.refresh.refresh_all()
"""

from sitmon.agent.__main__ import AppState, app_lifespan, run_agent

__all__ = ["AppState", "app_lifespan", "run_agent"]
