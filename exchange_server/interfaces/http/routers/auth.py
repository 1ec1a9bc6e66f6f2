"""Operator authentication."""
from fastapi import APIRouter, Depends, HTTPException, status

from exchange_server.core.security import create_access_token
from exchange_server.interfaces.http.deps import get_account_service
from exchange_server.modules.accounts import AccountService
from exchange_server.schemas import AccountLoginResponse, AdminLoginRequest

router = APIRouter()


@router.post("/login", response_model=AccountLoginResponse, summary="Operator login")
async def admin_login(
    payload: AdminLoginRequest,
    account_service: AccountService = Depends(get_account_service),
) -> AccountLoginResponse:
    account = await account_service.authenticate(payload.username, payload.password)
    if account is None or not account.is_admin():
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid username or password")

    access_token = create_access_token(account.id, account.username, account.role.value)
    return AccountLoginResponse(
        access_token=access_token,
        account_id=account.id,
        username=account.username,
        role=account.role.value,
    )
