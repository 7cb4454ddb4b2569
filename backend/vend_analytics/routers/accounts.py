from fastapi import APIRouter, Depends, HTTPException
from uuid import UUID

from vend_analytics.schemas.account import AccountCreate, AccountSchema
from vend_analytics.services.store import SalesStore, get_store

router = APIRouter()

@router.post("/accounts", response_model=AccountSchema, status_code=201)
async def create_account(payload: AccountCreate, store: SalesStore = Depends(get_store)):
    name = payload.name.strip()
    if not name:
        raise HTTPException(status_code=400, detail="Account name must not be empty")
    return await store.create_account(name)

@router.get("/accounts/{account_id}", response_model=AccountSchema)
async def get_account(account_id: UUID, store: SalesStore = Depends(get_store)):
    account = await store.get_account(account_id)
    if account is None:
        raise HTTPException(status_code=404, detail=f"Account {account_id} not found")
    return account
