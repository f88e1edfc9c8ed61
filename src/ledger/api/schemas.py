"""Pydantic request/response schemas for the ledger API.

These are external contracts (anti-corruption layer), separate from
internal Protean commands.
"""

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------
class OwnerLoginRequest(BaseModel):
    password: str


class TokenResponse(BaseModel):
    token: str
    message: str = "Owner login successful"


class VerifyTokenResponse(BaseModel):
    valid: bool
    user: dict | None = None


# ---------------------------------------------------------------------------
# Stock
# ---------------------------------------------------------------------------
class UpdateStockRequest(BaseModel):
    operation: str
    quantity: int = Field(ge=0)
    reason: str | None = None
    size: str | None = None
    notes: str | None = None
    reference: str | None = None
    cost_per_unit: float | None = Field(default=None, ge=0)


class FabricConsumedSchema(BaseModel):
    fabric_id: str
    fabric_name: str | None = None
    meters_used: float
    previous_stock: float
    new_stock: float


class StockUpdateResponse(BaseModel):
    product_id: str
    operation: str
    previous_stock: int
    new_stock: int
    reserved_stock: int
    available_stock: int
    status: str
    size: str | None = None
    fabric_consumed: list[FabricConsumedSchema] = []


# ---------------------------------------------------------------------------
# Products
# ---------------------------------------------------------------------------
class FabricLineSchema(BaseModel):
    fabric_id: str
    meters_used: float = Field(gt=0)
    fabric_name: str | None = None
    cost_per_meter: float | None = Field(default=None, ge=0)


class UpdateProductRequest(BaseModel):
    name: str | None = None
    category: str | None = None
    description: str | None = None
    cost_price: float | None = Field(default=None, ge=0)
    selling_price: float | None = Field(default=None, ge=0)
    sizes: list[str] | None = None
    low_stock_alert: int | None = Field(default=None, ge=0)
    reorder_point: int | None = Field(default=None, ge=0)


class RegisterProductRequest(BaseModel):
    product_id: str
    name: str
    category: str | None = None
    description: str | None = None
    cost_price: float = Field(ge=0, default=0.0)
    selling_price: float = Field(ge=0, default=0.0)
    sizes: list[str] = []
    images: list[str] = []
    initial_stock: int | None = Field(default=None, ge=0)
    size_stock: dict[str, int] = {}
    low_stock_alert: int = Field(ge=0, default=5)
    reorder_point: int = Field(ge=0, default=10)
    fabric_used: list[FabricLineSchema] = []


class SetBillOfMaterialsRequest(BaseModel):
    fabric_used: list[FabricLineSchema]


class ProductIdResponse(BaseModel):
    product_id: str


class EmbeddingResponse(BaseModel):
    product_id: str
    image_path: str
    model: str
    dimensions: int


class ImageMatchSchema(BaseModel):
    product_id: str
    name: str
    category: str | None = None
    thumbnail: str | None = None
    similarity: float


class ImageSearchResponse(BaseModel):
    found: bool
    matches: list[ImageMatchSchema]
    message: str | None = None


# ---------------------------------------------------------------------------
# Fabrics
# ---------------------------------------------------------------------------
class RegisterFabricRequest(BaseModel):
    fabric_id: str
    name: str
    fabric_type: str | None = None
    color: str | None = None
    current_stock: float = Field(ge=0, default=0.0)
    cost_per_meter: float = Field(ge=0, default=0.0)
    low_stock_alert: float = Field(ge=0, default=10.0)
    reorder_point: float = Field(ge=0, default=20.0)


class RestockFabricRequest(BaseModel):
    meters: float = Field(gt=0)
    cost_per_meter: float | None = Field(default=None, ge=0)
    reference: str | None = None
    notes: str | None = None


class FabricIdResponse(BaseModel):
    fabric_id: str


class FabricStockResponse(BaseModel):
    fabric_id: str
    previous_stock: float
    new_stock: float


class RebuildUsageResponse(BaseModel):
    fabric_id: str
    records: int


# ---------------------------------------------------------------------------
# Response Schemas
# ---------------------------------------------------------------------------
class StatusResponse(BaseModel):
    status: str = "ok"
