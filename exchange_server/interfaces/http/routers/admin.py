"""Administrative endpoints for operating the exchange."""
from typing import Optional

from fastapi import APIRouter, Depends, Query

from exchange_server.core.security import get_current_admin
from exchange_server.interfaces.http.deps import get_exchange_engine
from exchange_server.modules.accounts import Account as AccountDomain
from exchange_server.modules.common.exceptions import NotFoundError
from exchange_server.modules.ledger import LedgerEntry
from exchange_server.schemas import (
    AccountResponse,
    BalanceAdjustRequest,
    BalanceChangeResponse,
    BalanceResponse,
    BalanceSetRequest,
    CurrencyLimitResponse,
    CurrencyLimitUpdate,
    ExchangeRateHistoryResponse,
    ExchangeRateResponse,
    ExchangeRateUpdate,
    OrderListResponse,
    OrderResponse,
    OrderStatusUpdate,
    PaymentWalletResponse,
    PaymentWalletUpdate,
    ReconciliationResponse,
    RestrictionResponse,
    SystemStatusResponse,
    SystemStatusUpdate,
    TransactionListResponse,
    TransactionResponse,
)
from exchange_server.services import ExchangeEngine

router = APIRouter()


async def _balance_change(engine: ExchangeEngine, currency: str, entry: Optional[LedgerEntry]) -> BalanceChangeResponse:
    if entry is None:
        return BalanceChangeResponse(currency=currency.strip().upper(), balance=await engine.get_balance(currency))
    return BalanceChangeResponse(
        currency=entry.currency,
        balance=entry.balance_after,
        transaction=TransactionResponse.model_validate(entry),
    )


@router.get("/me", response_model=AccountResponse)
async def current_admin(admin: AccountDomain = Depends(get_current_admin)):
    return AccountResponse.model_validate(admin)


# Orders


@router.get("/orders", response_model=OrderListResponse)
async def list_orders(
    status: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    orders = await engine.list_orders(status, limit, offset)
    return OrderListResponse(total=len(orders), orders=[OrderResponse.model_validate(order) for order in orders])


@router.get("/orders/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return OrderResponse.model_validate(await engine.get_order(order_id))


@router.patch("/orders/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    payload: OrderStatusUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    order = await engine.advance_order(order_id, payload.status, admin.actor)
    return OrderResponse.model_validate(order)


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse)
async def cancel_order(
    order_id: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return OrderResponse.model_validate(await engine.cancel_order(order_id, admin.actor))


@router.get("/orders/{order_id}/transactions", response_model=TransactionListResponse)
async def order_transactions(
    order_id: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    entries = await engine.list_order_transactions(order_id)
    return TransactionListResponse(
        total=len(entries),
        transactions=[TransactionResponse.model_validate(entry) for entry in entries],
    )


# Balances and ledger


@router.get("/balances", response_model=list[BalanceResponse])
async def list_balances(
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return [BalanceResponse.model_validate(balance) for balance in await engine.list_balances()]


@router.put("/balances/{currency}", response_model=BalanceChangeResponse)
async def set_balance(
    currency: str,
    payload: BalanceSetRequest,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    entry = await engine.set_balance(currency, payload.amount, admin.actor, payload.reason)
    return await _balance_change(engine, currency, entry)


@router.post("/balances/{currency}/credit", response_model=BalanceChangeResponse)
async def credit_balance(
    currency: str,
    payload: BalanceAdjustRequest,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    entry = await engine.credit(currency, payload.amount, admin.actor, payload.reason)
    return await _balance_change(engine, currency, entry)


@router.post("/balances/{currency}/debit", response_model=BalanceChangeResponse)
async def debit_balance(
    currency: str,
    payload: BalanceAdjustRequest,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    entry = await engine.debit(currency, payload.amount, admin.actor, payload.reason)
    return await _balance_change(engine, currency, entry)


@router.get("/balances/{currency}/reconcile", response_model=ReconciliationResponse)
async def reconcile_balance(
    currency: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return ReconciliationResponse.model_validate(await engine.reconcile(currency))


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    currency: Optional[str] = None,
    order_id: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    entries = await engine.list_transactions(currency, order_id, limit, offset)
    return TransactionListResponse(
        total=len(entries),
        transactions=[TransactionResponse.model_validate(entry) for entry in entries],
    )


# Rates and limits


@router.get("/exchange-rates", response_model=list[ExchangeRateResponse])
async def list_exchange_rates(
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return [ExchangeRateResponse.model_validate(rate) for rate in await engine.list_rates()]


@router.post("/exchange-rates", response_model=ExchangeRateResponse)
async def set_exchange_rate(
    payload: ExchangeRateUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    record = await engine.set_exchange_rate(
        payload.from_currency, payload.to_currency, payload.rate, admin.actor, payload.reason
    )
    return ExchangeRateResponse.model_validate(record)


@router.get("/exchange-rates/history", response_model=list[ExchangeRateHistoryResponse])
async def exchange_rate_history(
    from_currency: Optional[str] = None,
    to_currency: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    changes = await engine.rate_history(from_currency, to_currency, limit)
    return [ExchangeRateHistoryResponse.model_validate(change) for change in changes]


@router.get("/currency-limits", response_model=list[CurrencyLimitResponse])
async def list_currency_limits(
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return [CurrencyLimitResponse.model_validate(limit) for limit in await engine.list_limits()]


@router.post("/currency-limits", response_model=CurrencyLimitResponse)
async def set_currency_limit(
    payload: CurrencyLimitUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    record = await engine.set_currency_limit(
        payload.from_currency, payload.to_currency, payload.min_amount, payload.max_amount, admin.actor
    )
    return CurrencyLimitResponse.model_validate(record)


# Wallets, restrictions, system


@router.get("/payment-wallets", response_model=list[PaymentWalletResponse])
async def list_payment_wallets(
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return [PaymentWalletResponse.model_validate(wallet) for wallet in await engine.list_payment_wallets()]


@router.put("/payment-wallets/{method}", response_model=PaymentWalletResponse)
async def set_payment_wallet(
    method: str,
    payload: PaymentWalletUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    record = await engine.set_payment_wallet(method, payload.address, admin.actor)
    return PaymentWalletResponse.model_validate(record)


@router.get("/restrictions/{identifier}", response_model=RestrictionResponse)
async def get_restriction(
    identifier: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    restriction = await engine.get_restriction(identifier)
    if restriction is None:
        raise NotFoundError(f"No cancellation record for {identifier}")
    response = RestrictionResponse.model_validate(restriction)
    response.is_restricted = restriction.is_active(engine.clock())
    return response


@router.delete("/restrictions/{identifier}", response_model=RestrictionResponse)
async def clear_restriction(
    identifier: str,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    restriction = await engine.clear_restriction(identifier, admin.actor)
    if restriction is None:
        raise NotFoundError(f"No cancellation record for {identifier}")
    return RestrictionResponse.model_validate(restriction)


@router.get("/system-status", response_model=SystemStatusResponse)
async def get_system_status(
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return SystemStatusResponse(status=await engine.get_system_status())


@router.put("/system-status", response_model=SystemStatusResponse)
async def set_system_status(
    payload: SystemStatusUpdate,
    admin: AccountDomain = Depends(get_current_admin),
    engine: ExchangeEngine = Depends(get_exchange_engine),
):
    return SystemStatusResponse(status=await engine.set_system_status(payload.status, admin.actor))
