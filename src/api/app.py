"""FastAPI app exposing the catalog, checkout and order listing."""

from dataclasses import asdict

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from db import crud
from db.errors import (
    InsufficientStock,
    InvalidInput,
    ProductNotFound,
    StorageFailure,
    StoreError,
)
from db.models import Customer, OrderRequestItem
from utils.logger import get_logger
from utils.pure import format_money

from .schemas import (
    ErrorResponse,
    OrderCreateRequest,
    OrderCreateResponse,
    OrderSchema,
    ProductSchema,
)

_logger = get_logger(__name__)

app = FastAPI(
    title="Storefront API",
    description="Catalog, checkout and order listing for the storefront",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)


# --- Error handlers ---


ERROR_STATUS_CODES: dict[type, int] = {
    InvalidInput: 400,
    ProductNotFound: 400,
    InsufficientStock: 400,
    StorageFailure: 500,
}


@app.exception_handler(StoreError)
async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
    """Map StoreError subclasses to an {error} body with the right status."""
    status_code = ERROR_STATUS_CODES.get(type(exc), 500)
    if status_code >= 500:
        _logger.error(f"{request.method} {request.url.path} failed: {exc!r}")
    return JSONResponse(status_code=status_code, content={"error": str(exc)})


@app.exception_handler(RequestValidationError)
async def validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    problems = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        problems.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return JSONResponse(
        status_code=400, content={"error": "Invalid request: " + "; ".join(problems)}
    )


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})


# --- Endpoints ---


@app.get("/health")
def health_check():
    return {"status": "ok"}


@app.get("/products", response_model=list[ProductSchema])
async def list_products():
    """Every product, newest first."""
    return [asdict(p) for p in await crud.list_products()]


@app.get(
    "/products/{product_id}",
    response_model=ProductSchema,
    responses={404: {"model": ErrorResponse}},
)
async def get_product(product_id: int):
    product = await crud.get_product(product_id)
    if product is None:
        raise HTTPException(status_code=404, detail="Product not found")
    return asdict(product)


@app.post(
    "/orders",
    response_model=OrderCreateResponse,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
async def create_order(body: OrderCreateRequest):
    """
    Place an order for the submitted cart.

    Prices are taken from the catalog at checkout time, whatever the client
    had cached. Either the whole order is stored and stock decremented, or
    nothing changes and an {error} body explains why.
    """
    items = [
        OrderRequestItem(product_id=item.product_id, quantity=item.quantity)
        for item in body.items
    ]
    customer = None
    if body.customer is not None:
        customer = Customer(
            name=body.customer.name or "",
            email=body.customer.email or "",
            address=body.customer.address or "",
        )
    result = await crud.checkout(items, customer)
    return OrderCreateResponse(
        order_id=result.order_id,
        total_amount=result.total_amount,
        total_readable=format_money(result.total_amount),
    )


@app.get("/orders", response_model=list[OrderSchema])
async def list_orders():
    """All orders with their line items, for the admin view."""
    return [asdict(o) for o in await crud.list_orders()]
