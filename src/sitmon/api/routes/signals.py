"""Signal feed endpoints."""

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel

from sitmon.core.dependencies import AnalyzerDep, RefreshDep, SignalStoreDep
from sitmon.core.exceptions import AnalysisError, SignalNotFoundError
from sitmon.processing.analysis import DeepAnalysis
from sitmon.processing.models import Category, Signal

router = APIRouter()


class RefreshResponse(BaseModel):
    skipped: bool
    accounts_processed: int
    new_signals: list[Signal]
    errors: dict[str, str]


class ClearResponse(BaseModel):
    removed: int


@router.get("/", response_model=list[Signal])
async def list_signals(
    store: SignalStoreDep,
    category: Category | None = Query(default=None, description="Filter by account category"),
    limit: int | None = Query(default=None, ge=1, le=1000),
) -> list[Signal]:
    return store.list(category=category, limit=limit)


@router.post("/refresh", response_model=RefreshResponse)
async def refresh_signals(refresh: RefreshDep) -> RefreshResponse:
    """Run a refresh pass now; a no-op while another pass is running."""
    result = await refresh.refresh_all()
    return RefreshResponse(
        skipped=result.skipped,
        accounts_processed=result.accounts_processed,
        new_signals=result.new_signals,
        errors=result.errors,
    )


@router.delete("/", response_model=ClearResponse)
async def clear_signals(store: SignalStoreDep) -> ClearResponse:
    return ClearResponse(removed=store.clear())


@router.get("/{signal_id}", response_model=Signal)
async def get_signal(signal_id: str, store: SignalStoreDep) -> Signal:
    try:
        return store.require(signal_id)
    except SignalNotFoundError as e:
        raise HTTPException(404, detail=e.message)


@router.post("/{signal_id}/analysis", response_model=DeepAnalysis)
async def analyze_signal(
    signal_id: str, store: SignalStoreDep, analyzer: AnalyzerDep
) -> DeepAnalysis:
    try:
        signal = store.require(signal_id)
    except SignalNotFoundError as e:
        raise HTTPException(404, detail=e.message)
    try:
        return await analyzer.analyze(signal.content, signal.tickers, signal.account_handle)
    except AnalysisError as e:
        raise HTTPException(502, detail=e.message)
