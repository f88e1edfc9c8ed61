"""FastAPI routes for the ledger: owner auth, stock, products and fabrics."""

import json
from uuid import uuid4

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status
from fastapi.security import HTTPAuthorizationCredentials
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from ledger.api.schemas import (
    EmbeddingResponse,
    FabricIdResponse,
    FabricStockResponse,
    ImageSearchResponse,
    OwnerLoginRequest,
    ProductIdResponse,
    RebuildUsageResponse,
    RegisterFabricRequest,
    RegisterProductRequest,
    RestockFabricRequest,
    SetBillOfMaterialsRequest,
    StatusResponse,
    StockUpdateResponse,
    TokenResponse,
    UpdateProductRequest,
    UpdateStockRequest,
    VerifyTokenResponse,
)
from ledger.auth import check_owner_password, create_access_token, decode_token, require_owner, security
from ledger.fabric.registration import RegisterFabric
from ledger.fabric.restock import restock_fabric
from ledger.fabric.usage_log import rebuild_fabric_usage
from ledger.locks import PRODUCT, entity_locks
from ledger.media import get_asset_store, get_embedder
from ledger.product.bill_of_materials import SetBillOfMaterials
from ledger.product.details import UpdateProduct
from ledger.product.embeddings import AttachImageEmbedding
from ledger.product.lifecycle import DeactivateProduct, DeleteProduct, DiscontinueProduct, ReinstateProduct
from ledger.product.registration import RegisterProduct
from ledger.product.search import find_similar_products
from ledger.product.stock import update_stock
from ledger.reports import (
    fabric_detail,
    inventory_products,
    list_products,
    low_stock_alerts,
    product_detail,
    product_exists,
    stock_overview,
    transaction_view,
)
from ledger.transactions.history import fabric_transactions, product_transactions


def _process_locked(product_id, command):
    with entity_locks.hold((PRODUCT, product_id)):
        return current_domain.process(command, asynchronous=False)


# ---------------------------------------------------------------------------
# Auth Router
# ---------------------------------------------------------------------------
auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/owner-login", response_model=TokenResponse)
async def owner_login(body: OwnerLoginRequest) -> TokenResponse:
    if not check_owner_password(body.password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")
    return TokenResponse(token=create_access_token())


@auth_router.post("/verify-token", response_model=VerifyTokenResponse)
async def verify_token(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> VerifyTokenResponse:
    payload = decode_token(credentials.credentials) if credentials else None
    if payload is None:
        return VerifyTokenResponse(valid=False)
    return VerifyTokenResponse(valid=True, user={"role": payload.get("role")})


# ---------------------------------------------------------------------------
# Inventory Router
# ---------------------------------------------------------------------------
inventory_router = APIRouter(prefix="/inventory", tags=["inventory"], dependencies=[Depends(require_owner)])


@inventory_router.get("/overview")
async def get_overview() -> dict:
    return stock_overview()


@inventory_router.get("/alerts/low-stock")
async def get_low_stock_alerts() -> dict:
    return low_stock_alerts()


@inventory_router.get("/products")
async def list_inventory_products(status: str | None = None, category: str | None = None) -> list[dict]:
    return inventory_products(status=status, category=category)


@inventory_router.get("/{product_id}/transactions")
async def get_product_transactions(product_id: str, limit: int | None = None) -> list[dict]:
    if not product_exists(product_id):
        raise ObjectNotFoundError(f"Product {product_id} not found")
    return [transaction_view(t) for t in product_transactions(product_id, limit=limit)]


@inventory_router.patch("/{product_id}/stock", response_model=StockUpdateResponse)
async def patch_stock(
    product_id: str,
    body: UpdateStockRequest,
    actor: str = Depends(require_owner),
) -> StockUpdateResponse:
    result = update_stock(
        product_id=product_id,
        operation=body.operation,
        quantity=body.quantity,
        reason=body.reason,
        size=body.size,
        notes=body.notes,
        reference=body.reference,
        cost_per_unit=body.cost_per_unit,
        performed_by=actor,
    )
    return StockUpdateResponse(**result)


# ---------------------------------------------------------------------------
# Product Router
# ---------------------------------------------------------------------------
product_router = APIRouter(prefix="/products", tags=["products"], dependencies=[Depends(require_owner)])


@product_router.post("", status_code=201, response_model=ProductIdResponse)
async def register_product(body: RegisterProductRequest, actor: str = Depends(require_owner)) -> ProductIdResponse:
    command = RegisterProduct(
        product_id=body.product_id,
        name=body.name,
        category=body.category,
        description=body.description,
        cost_price=body.cost_price,
        selling_price=body.selling_price,
        sizes=json.dumps(body.sizes) if body.sizes else None,
        images=json.dumps(body.images) if body.images else None,
        initial_stock=body.initial_stock,
        size_stock=json.dumps(body.size_stock) if body.size_stock else None,
        low_stock_alert=body.low_stock_alert,
        reorder_point=body.reorder_point,
        fabric_used=json.dumps([line.model_dump() for line in body.fabric_used]) if body.fabric_used else None,
        performed_by=actor,
    )
    result = current_domain.process(command, asynchronous=False)
    return ProductIdResponse(product_id=result)


@product_router.get("")
async def get_products(include_inactive: bool = False, category: str | None = None) -> list[dict]:
    return list_products(include_inactive=include_inactive, category=category)


@product_router.post("/search-by-image", response_model=ImageSearchResponse)
async def search_by_image(image: UploadFile = File(...)) -> ImageSearchResponse:
    vector = await get_embedder().embed_image(await image.read(), filename=image.filename)
    return ImageSearchResponse(**find_similar_products(vector))


@product_router.get("/{product_id}")
async def get_product(product_id: str) -> dict:
    return product_detail(product_id)


@product_router.put("/{product_id}")
async def update_product(product_id: str, body: UpdateProductRequest) -> dict:
    command = UpdateProduct(
        product_id=product_id,
        name=body.name,
        category=body.category,
        description=body.description,
        cost_price=body.cost_price,
        selling_price=body.selling_price,
        sizes=json.dumps(body.sizes) if body.sizes is not None else None,
        low_stock_alert=body.low_stock_alert,
        reorder_point=body.reorder_point,
    )
    _process_locked(product_id, command)
    return product_detail(product_id)


@product_router.put("/{product_id}/fabric-usage", response_model=StatusResponse)
async def set_fabric_usage(product_id: str, body: SetBillOfMaterialsRequest) -> StatusResponse:
    command = SetBillOfMaterials(
        product_id=product_id,
        fabric_used=json.dumps([line.model_dump() for line in body.fabric_used]),
    )
    _process_locked(product_id, command)
    return StatusResponse()


@product_router.put("/{product_id}/discontinue", response_model=StatusResponse)
async def discontinue_product(product_id: str) -> StatusResponse:
    _process_locked(product_id, DiscontinueProduct(product_id=product_id))
    return StatusResponse()


@product_router.put("/{product_id}/reinstate", response_model=StatusResponse)
async def reinstate_product(product_id: str) -> StatusResponse:
    _process_locked(product_id, ReinstateProduct(product_id=product_id))
    return StatusResponse()


@product_router.delete("/{product_id}", response_model=StatusResponse)
async def deactivate_product(product_id: str) -> StatusResponse:
    _process_locked(product_id, DeactivateProduct(product_id=product_id))
    return StatusResponse()


@product_router.delete("/{product_id}/hard", response_model=StatusResponse)
async def delete_product(product_id: str) -> StatusResponse:
    _process_locked(product_id, DeleteProduct(product_id=product_id))
    return StatusResponse()


@product_router.post("/{product_id}/embeddings", status_code=201, response_model=EmbeddingResponse)
async def attach_embedding(product_id: str, image: UploadFile = File(...)) -> EmbeddingResponse:
    embedder = get_embedder()
    vector = await embedder.embed_image(await image.read(), filename=image.filename)

    image_path = f"/uploads/products/{uuid4().hex[:12]}-{image.filename or 'image'}"
    get_asset_store().save_image(image_path)

    command = AttachImageEmbedding(
        product_id=product_id,
        image_path=image_path,
        vector=json.dumps(vector),
        model=embedder.model,
    )
    dimensions = _process_locked(product_id, command)
    return EmbeddingResponse(product_id=product_id, image_path=image_path, model=embedder.model, dimensions=dimensions)


# ---------------------------------------------------------------------------
# Fabric Router
# ---------------------------------------------------------------------------
fabric_router = APIRouter(prefix="/fabrics", tags=["fabrics"], dependencies=[Depends(require_owner)])


@fabric_router.post("", status_code=201, response_model=FabricIdResponse)
async def register_fabric(body: RegisterFabricRequest, actor: str = Depends(require_owner)) -> FabricIdResponse:
    command = RegisterFabric(
        fabric_id=body.fabric_id,
        name=body.name,
        fabric_type=body.fabric_type,
        color=body.color,
        current_stock=body.current_stock,
        cost_per_meter=body.cost_per_meter,
        low_stock_alert=body.low_stock_alert,
        reorder_point=body.reorder_point,
        performed_by=actor,
    )
    result = current_domain.process(command, asynchronous=False)
    return FabricIdResponse(fabric_id=result)


@fabric_router.get("/{fabric_id}")
async def get_fabric(fabric_id: str) -> dict:
    return fabric_detail(fabric_id)


@fabric_router.put("/{fabric_id}/restock", response_model=FabricStockResponse)
async def restock(fabric_id: str, body: RestockFabricRequest, actor: str = Depends(require_owner)) -> FabricStockResponse:
    result = restock_fabric(
        fabric_id,
        body.meters,
        cost_per_meter=body.cost_per_meter,
        reference=body.reference,
        notes=body.notes,
        performed_by=actor,
    )
    return FabricStockResponse(**result)


@fabric_router.get("/{fabric_id}/transactions")
async def get_fabric_transactions(fabric_id: str, limit: int | None = None) -> list[dict]:
    fabric_detail(fabric_id)  # 404 for unknown fabrics
    return [transaction_view(t) for t in fabric_transactions(fabric_id, limit=limit)]


@fabric_router.put("/{fabric_id}/usage/rebuild", response_model=RebuildUsageResponse)
async def rebuild_usage(fabric_id: str) -> RebuildUsageResponse:
    records = rebuild_fabric_usage(fabric_id)
    return RebuildUsageResponse(fabric_id=fabric_id, records=records)
