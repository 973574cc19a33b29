"""sf_catalog REST endpoints.

GET    /products                          — catalog (public)
GET    /products/{product_id}             — detail (public)
GET    /products/{product_id}/quote       — price for a quantity (public)
POST   /products                          — create (admin)
PATCH  /products/{product_id}             — partial edit (admin)
DELETE /products/{product_id}             — delete (admin)
POST   /products/{product_id}/toggle-sale         — open/close sale (admin)
POST   /products/{product_id}/toggle-coming-soon  — flip coming-soon gate (admin)
"""

from typing import Annotated, Literal

from fastapi import APIRouter, Depends, Query, Request, status

from src.sf_catalog.application.schemas import (
    CreateProductRequest,
    PriceQuoteResponse,
    ProductListResponse,
    ProductResponse,
    UpdateProductRequest,
)
from src.sf_catalog.application.service import ProductService
from src.sf_catalog.domain.pricing import price, unit_price
from src.sf_common.response import ApiResponse, respond
from src.sf_gateway.auth.dependencies import require_admin
from src.sf_store.application.service import get_store
from src.sf_store.domain.repository import KeyValueStoreProtocol

router = APIRouter(prefix="/products", tags=["products"])


async def get_product_service(
    store: Annotated[KeyValueStoreProtocol, Depends(get_store)],
) -> ProductService:
    return ProductService(store)


@router.get("")
async def list_products(
    request: Request,
    service: Annotated[ProductService, Depends(get_product_service)],
    category: Literal["physical", "digital"] | None = Query(None),
) -> ApiResponse:
    products = await service.list_products()
    if category is not None:
        products = [p for p in products if p.category == category]
    result = ProductListResponse(items=[ProductResponse.from_domain(p) for p in products])
    return respond(request, result.model_dump())


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    request: Request,
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    product = await service.get_product(product_id)
    return respond(request, ProductResponse.from_domain(product).model_dump())


@router.get("/{product_id}/quote")
async def quote_price(
    product_id: str,
    request: Request,
    service: Annotated[ProductService, Depends(get_product_service)],
    quantity: int = Query(1, ge=1),
) -> ApiResponse:
    product = await service.get_product(product_id)
    unit = unit_price(product, quantity)
    result = PriceQuoteResponse(
        product_id=product.id,
        quantity=quantity,
        unit_price=unit,
        total_price=price(product, quantity),
        wholesale_applied=unit != product.discounted_price,
    )
    return respond(request, result.model_dump())


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: CreateProductRequest,
    request: Request,
    _admin: Annotated[str, Depends(require_admin)],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    product = await service.add_product(body)
    return respond(request, ProductResponse.from_domain(product).model_dump(), "Product created")


@router.patch("/{product_id}")
async def update_product(
    product_id: str,
    body: UpdateProductRequest,
    request: Request,
    _admin: Annotated[str, Depends(require_admin)],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    product = await service.update_product(product_id, body)
    return respond(request, ProductResponse.from_domain(product).model_dump(), "Product updated")


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    request: Request,
    _admin: Annotated[str, Depends(require_admin)],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    await service.delete_product(product_id)
    return respond(request, {"product_id": product_id}, "Product deleted")


@router.post("/{product_id}/toggle-sale")
async def toggle_sale(
    product_id: str,
    request: Request,
    _admin: Annotated[str, Depends(require_admin)],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    product = await service.toggle_sale_closed(product_id)
    return respond(request, ProductResponse.from_domain(product).model_dump())


@router.post("/{product_id}/toggle-coming-soon")
async def toggle_coming_soon(
    product_id: str,
    request: Request,
    _admin: Annotated[str, Depends(require_admin)],
    service: Annotated[ProductService, Depends(get_product_service)],
) -> ApiResponse:
    product = await service.toggle_coming_soon(product_id)
    return respond(request, ProductResponse.from_domain(product).model_dump())
