"""Monitored account endpoints."""

from fastapi import APIRouter, HTTPException, Response
from pydantic import BaseModel, Field

from sitmon.core.dependencies import AccountRegistryDep
from sitmon.core.exceptions import AccountNotFoundError, InvalidInputError
from sitmon.processing.models import Account

router = APIRouter()


class AddAccountRequest(BaseModel):
    handle: str = Field(..., description="Username, with or without @")


@router.get("/", response_model=list[Account])
async def list_accounts(registry: AccountRegistryDep) -> list[Account]:
    return registry.list()


@router.post("/", response_model=Account, status_code=201)
async def add_account(body: AddAccountRequest, registry: AccountRegistryDep) -> Account:
    try:
        return await registry.add_account(body.handle)
    except InvalidInputError as e:
        raise HTTPException(400, detail=e.message)
    except AccountNotFoundError as e:
        raise HTTPException(404, detail=e.message)


@router.delete("/{account_id}", status_code=204)
async def remove_account(account_id: str, registry: AccountRegistryDep) -> Response:
    removed = await registry.remove_account(account_id)
    if not removed:
        raise HTTPException(404, detail=f"Account '{account_id}' not found")
    return Response(status_code=204)
