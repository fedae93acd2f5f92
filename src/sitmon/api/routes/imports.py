"""Post import endpoints: preview a post, then add selected tickers."""

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field, model_validator

from sitmon.core.dependencies import ImporterDep
from sitmon.core.exceptions import InvalidInputError, TweetImportError
from sitmon.processing.importer import ImportPreview
from sitmon.processing.models import PositionSentiment, WatchlistPosition

router = APIRouter()


class PreviewRequest(BaseModel):
    text: str | None = Field(default=None, description="Pasted post text")
    url: str | None = Field(default=None, description="Twitter/X status URL")

    @model_validator(mode="after")
    def _one_source(self) -> "PreviewRequest":
        if not (self.text or self.url):
            raise ValueError("Provide either text or url")
        return self


class ImportRequest(BaseModel):
    preview: ImportPreview
    tickers: list[str] | None = Field(default=None, description="Defaults to all previewed")
    sentiment: PositionSentiment | None = None


@router.post("/preview", response_model=ImportPreview)
async def preview_post(body: PreviewRequest, importer: ImporterDep) -> ImportPreview:
    try:
        if body.url:
            return await importer.preview_url(body.url)
        assert body.text is not None
        return importer.preview_text(body.text)
    except (InvalidInputError, TweetImportError) as e:
        raise HTTPException(400, detail=e.message)


@router.post("/", response_model=list[WatchlistPosition], status_code=201)
async def import_positions(body: ImportRequest, importer: ImporterDep) -> list[WatchlistPosition]:
    try:
        return await importer.import_positions(body.preview, body.tickers, body.sentiment)
    except InvalidInputError as e:
        raise HTTPException(400, detail=e.message)
