"""Public endpoints used by customers placing and tracking orders."""
from fastapi import APIRouter, Depends, status

from exchange_server.interfaces.http.deps import get_exchange_engine
from exchange_server.modules.orders import OrderCreateInput, OrderStatus
from exchange_server.modules.restrictions import normalize_identifier
from exchange_server.schemas import (
    ErrorResponse,
    ExchangeRateQuoteResponse,
    OrderCancelRequest,
    OrderCreate,
    OrderResponse,
)
from exchange_server.services import ExchangeEngine

router = APIRouter()

CUSTOMER_ACTOR = "customer"
NOT_FOUND = {404: {"model": ErrorResponse}}


@router.get(
    "/exchange-rate/{from_currency}/{to_currency}",
    response_model=ExchangeRateQuoteResponse,
    summary="Current rate and effective send limits for a pair",
)
async def get_exchange_rate(
    from_currency: str,
    to_currency: str,
    engine: ExchangeEngine = Depends(get_exchange_engine),
) -> ExchangeRateQuoteResponse:
    quote, limits = await engine.quote(from_currency, to_currency)
    return ExchangeRateQuoteResponse(
        from_currency=quote.from_currency,
        to_currency=quote.to_currency,
        rate=quote.rate,
        min_amount=limits.min_amount,
        max_amount=limits.max_amount,
        reserve_balance=limits.reserve_balance,
    )


@router.post("/orders", response_model=OrderResponse, status_code=status.HTTP_201_CREATED, summary="Place an order")
async def create_order(payload: OrderCreate, engine: ExchangeEngine = Depends(get_exchange_engine)) -> OrderResponse:
    order = await engine.create_order(
        OrderCreateInput(
            full_name=payload.full_name,
            phone_number=payload.phone_number,
            wallet_address=payload.wallet_address,
            send_method=payload.send_method,
            receive_method=payload.receive_method,
            send_amount=payload.send_amount,
            email=payload.email,
            sender_account=payload.sender_account,
        )
    )
    return OrderResponse.model_validate(order)


@router.get("/orders/{order_id}", response_model=OrderResponse, responses=NOT_FOUND, summary="Track an order")
async def get_order(order_id: str, engine: ExchangeEngine = Depends(get_exchange_engine)) -> OrderResponse:
    return OrderResponse.model_validate(await engine.get_order(order_id))


@router.post("/orders/{order_id}/cancel", response_model=OrderResponse, responses=NOT_FOUND, summary="Cancel a pending order")
async def cancel_order(
    order_id: str,
    payload: OrderCancelRequest,
    engine: ExchangeEngine = Depends(get_exchange_engine),
) -> OrderResponse:
    """The caller proves ownership with the phone number or e-mail the order was placed with."""
    owner = normalize_identifier(payload.phone_number, payload.email)
    order = await engine.cancel_order(order_id, CUSTOMER_ACTOR, only_from=OrderStatus.PENDING, owner=owner)
    return OrderResponse.model_validate(order)
