"""Product aggregate root: finished-good stock, per-size buckets and fabric recipe.

Stock Model:
    stock:           Aggregate units across all sizes
    reserved_stock:  Units held for pending orders
    available_stock: stock - reserved_stock, never below zero
    size_stock:      Per-size buckets, orthogonal to the aggregate count

The stock mutator lives here (``apply_stock_operation``): every successful
add/subtract/set recomputes ``status`` exactly once, from the aggregate count.
"""

import json
from datetime import datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    Boolean,
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    Text,
)

from ledger.domain import ledger
from ledger.exceptions import InsufficientSizeStock, InsufficientStock, InvalidStockOperation
from ledger.product.events import (
    BillOfMaterialsSet,
    ImageEmbeddingAttached,
    ProductDeactivated,
    ProductDeleted,
    ProductDetailsUpdated,
    ProductDiscontinued,
    ProductRegistered,
    ProductReinstated,
    StockAdjusted,
    StockReservationChanged,
)
from ledger.shared.status import StockStatus, derive_status


class StockOperation(Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"
    RESERVE = "reserve"
    RELEASE = "release"


_RESERVATION_OPERATIONS = (StockOperation.RESERVE, StockOperation.RELEASE)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@ledger.entity(part_of="Product", limit=None)
class SizeStock:
    """Units held for one size label."""

    size = String(required=True, max_length=20)
    stock = Integer(default=0, min_value=0)


@ledger.entity(part_of="Product", limit=None)
class FabricUsage:
    """One bill-of-materials line: meters of a fabric consumed per unit produced."""

    fabric_id = Identifier(required=True)
    fabric_name = String(max_length=200)
    meters_used = Float(required=True, min_value=0.0)
    cost_per_meter = Float(default=0.0, min_value=0.0)

    @property
    def total_cost(self):
        return (self.meters_used or 0.0) * (self.cost_per_meter or 0.0)


@ledger.entity(part_of="Product", limit=None)
class ImageEmbedding:
    image_path = String(required=True, max_length=500)
    vector = Text(required=True)  # JSON array of floats
    model = String(max_length=50, default="clip-vit-b32")

    @property
    def values(self):
        return json.loads(self.vector) if self.vector else []


# ---------------------------------------------------------------------------
# Aggregate Root
# ---------------------------------------------------------------------------
@ledger.aggregate(limit=None)
class Product:
    product_id = Identifier(identifier=True, required=True)
    name = String(required=True, max_length=200)
    category = String(max_length=100)
    description = Text()
    cost_price = Float(default=0.0, min_value=0.0)
    selling_price = Float(default=0.0, min_value=0.0)
    sizes = Text()  # JSON array of size labels offered
    images = Text()  # JSON array of image paths
    stock = Integer(default=0)
    reserved_stock = Integer(default=0)
    low_stock_alert = Integer(default=5, min_value=0)
    reorder_point = Integer(default=10, min_value=0)
    status = String(choices=StockStatus, default=StockStatus.OUT_OF_STOCK.value)
    is_discontinued = Boolean(default=False)
    is_active = Boolean(default=True)
    last_restocked = DateTime()
    restock_quantity = Integer()
    size_stock = HasMany(SizeStock)
    fabric_used = HasMany(FabricUsage)
    image_embeddings = HasMany(ImageEmbedding)
    created_at = DateTime(default=datetime.now)
    updated_at = DateTime(default=datetime.now)

    @invariant.post
    def stock_cannot_be_negative(self):
        if (self.stock or 0) < 0:
            raise ValidationError({"stock": ["Stock cannot be negative"]})
        if (self.reserved_stock or 0) < 0:
            raise ValidationError({"reserved_stock": ["Reserved stock cannot be negative"]})

    @invariant.post
    def size_buckets_must_be_unique(self):
        labels = [bucket.size for bucket in self.size_stock]
        if len(labels) != len(set(labels)):
            raise ValidationError({"size_stock": ["Each size can only have one stock entry"]})

    @property
    def available_stock(self):
        return max(0, (self.stock or 0) - (self.reserved_stock or 0))

    @property
    def image_paths(self):
        return json.loads(self.images) if self.images else []

    @property
    def size_labels(self):
        return json.loads(self.sizes) if self.sizes else []

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def register(
        cls,
        product_id,
        name,
        category=None,
        description=None,
        cost_price=0.0,
        selling_price=0.0,
        sizes=None,
        images=None,
        initial_stock=None,
        size_stock=None,
        low_stock_alert=5,
        reorder_point=10,
        fabric_used=None,
    ):
        """Create a product with its opening stock and fabric recipe.

        ``size_stock`` maps size labels to opening units. When
        ``initial_stock`` is omitted the aggregate starts at the sum of the
        size buckets; an explicit value may exceed that sum (unsized units) but
        never fall below it.
        """
        size_stock = size_stock or {}
        sized_units = sum(size_stock.values())
        if initial_stock is None:
            initial_stock = sized_units
        elif initial_stock < sized_units:
            raise ValidationError(
                {"initial_stock": [f"Initial stock {initial_stock} is less than the {sized_units} units held in sizes"]}
            )

        labels = list(sizes or [])
        for label in size_stock:
            if label not in labels:
                labels.append(label)

        now = datetime.now()
        product = cls(
            product_id=product_id,
            name=name,
            category=category,
            description=description,
            cost_price=cost_price or 0.0,
            selling_price=selling_price or 0.0,
            sizes=json.dumps(labels) if labels else None,
            images=json.dumps(images) if images else None,
            stock=initial_stock,
            reserved_stock=0,
            low_stock_alert=low_stock_alert,
            reorder_point=reorder_point,
            status=derive_status(initial_stock, low_stock_alert),
            created_at=now,
            updated_at=now,
        )

        for label, units in size_stock.items():
            product.add_size_stock(SizeStock(size=label, stock=units))

        for line in fabric_used or []:
            product.add_fabric_used(FabricUsage(**line))

        product.raise_(
            ProductRegistered(
                product_id=product.product_id,
                name=name,
                category=category,
                stock=initial_stock,
                reserved_stock=0,
                low_stock_alert=low_stock_alert,
                cost_price=product.cost_price,
                status=product.status,
                registered_at=now,
            )
        )
        return product

    # -------------------------------------------------------------------
    # Stock mutator
    # -------------------------------------------------------------------
    def size_bucket(self, size):
        return next((bucket for bucket in self.size_stock if bucket.size == size), None)

    def apply_stock_operation(self, operation, quantity, size=None):
        """Apply one stock operation and return a summary of the change.

        add/subtract/set touch the aggregate count and, when ``size`` is
        given, the matching size bucket (created on demand). reserve/release
        only move ``reserved_stock``. Removing more than a size bucket holds
        fails before anything is changed.
        """
        try:
            op = StockOperation(operation)
        except ValueError:
            raise InvalidStockOperation(operation) from None

        if quantity is None or quantity < 0:
            raise ValidationError({"quantity": ["Quantity must be zero or positive"]})

        if op in _RESERVATION_OPERATIONS:
            return self._change_reservation(op, quantity)

        previous_stock = self.stock or 0
        bucket = self.size_bucket(size) if size else None
        previous_size_stock = (bucket.stock or 0) if bucket else 0

        if size and op == StockOperation.SUBTRACT and previous_size_stock < quantity:
            raise InsufficientSizeStock(size, quantity, previous_size_stock)

        if op == StockOperation.ADD:
            new_stock = previous_stock + quantity
            new_size_stock = previous_size_stock + quantity
        elif op == StockOperation.SUBTRACT:
            new_stock = max(0, previous_stock - quantity)
            new_size_stock = previous_size_stock - quantity
        else:
            new_stock = quantity
            new_size_stock = quantity

        now = datetime.now()
        with atomic_change(self):
            if size:
                if bucket is None:
                    self.add_size_stock(SizeStock(size=size, stock=new_size_stock))
                else:
                    bucket.stock = new_size_stock
            self.stock = new_stock
            if op == StockOperation.ADD:
                self.last_restocked = now
                self.restock_quantity = quantity
            self.status = derive_status(new_stock, self.low_stock_alert, self.is_discontinued)
            self.updated_at = now

        self.raise_(
            StockAdjusted(
                product_id=self.product_id,
                operation=op.value,
                quantity=quantity,
                size=size,
                previous_stock=previous_stock,
                new_stock=new_stock,
                reserved_stock=self.reserved_stock or 0,
                status=self.status,
                adjusted_at=now,
            )
        )

        return {
            "operation": op.value,
            "quantity": quantity,
            "previous_stock": previous_stock,
            "new_stock": new_stock,
            "size": size,
            "previous_size_stock": previous_size_stock if size else None,
            "new_size_stock": new_size_stock if size else None,
        }

    def _change_reservation(self, op, quantity):
        previous_reserved = self.reserved_stock or 0

        if op == StockOperation.RESERVE:
            if quantity > self.available_stock:
                raise InsufficientStock(self.product_id, quantity, self.available_stock)
            new_reserved = previous_reserved + quantity
        else:
            new_reserved = max(0, previous_reserved - quantity)

        now = datetime.now()
        self.reserved_stock = new_reserved
        self.updated_at = now

        self.raise_(
            StockReservationChanged(
                product_id=self.product_id,
                operation=op.value,
                quantity=quantity,
                previous_reserved=previous_reserved,
                new_reserved=new_reserved,
                stock=self.stock or 0,
                changed_at=now,
            )
        )

        return {
            "operation": op.value,
            "quantity": quantity,
            "previous_stock": self.stock or 0,
            "new_stock": self.stock or 0,
            "previous_reserved": previous_reserved,
            "new_reserved": new_reserved,
            "size": None,
        }

    # -------------------------------------------------------------------
    # Fabric recipe
    # -------------------------------------------------------------------
    def set_bill_of_materials(self, lines):
        """Replace the fabric recipe. ``lines`` is a list of FabricUsage kwargs."""
        with atomic_change(self):
            for existing in list(self.fabric_used):
                self.remove_fabric_used(existing)
            for line in lines:
                self.add_fabric_used(FabricUsage(**line))

        now = datetime.now()
        self.updated_at = now

        self.raise_(
            BillOfMaterialsSet(
                product_id=self.product_id,
                fabric_ids=json.dumps([line["fabric_id"] for line in lines]),
                line_count=len(lines),
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Catalog details
    # -------------------------------------------------------------------
    def update_details(
        self,
        name=None,
        category=None,
        description=None,
        cost_price=None,
        selling_price=None,
        sizes=None,
        low_stock_alert=None,
        reorder_point=None,
    ):
        """Change catalog fields and thresholds. ``None`` leaves a field as it is.

        A new ``low_stock_alert`` moves the status boundary, so status is
        re-derived from current stock.
        """
        changes = {
            "name": name,
            "category": category,
            "description": description,
            "cost_price": cost_price,
            "selling_price": selling_price,
            "low_stock_alert": low_stock_alert,
            "reorder_point": reorder_point,
        }
        changes = {field: value for field, value in changes.items() if value is not None}
        if not changes and sizes is None:
            raise ValidationError({"product": ["No changes provided"]})

        now = datetime.now()
        with atomic_change(self):
            for field, value in changes.items():
                setattr(self, field, value)
            if sizes is not None:
                labels = list(sizes)
                for bucket in self.size_stock:
                    if bucket.size not in labels:
                        labels.append(bucket.size)
                self.sizes = json.dumps(labels) if labels else None
            self.status = derive_status(self.stock or 0, self.low_stock_alert, self.is_discontinued)
            self.updated_at = now

        self.raise_(
            ProductDetailsUpdated(
                product_id=self.product_id,
                name=self.name,
                category=self.category,
                cost_price=self.cost_price or 0.0,
                low_stock_alert=self.low_stock_alert,
                reorder_point=self.reorder_point,
                status=self.status,
                updated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------
    def mark_deleted(self):
        """Drop child rows and announce the removal. The caller deletes the root."""
        image_paths = self.image_paths
        for bucket in list(self.size_stock):
            self.remove_size_stock(bucket)
        for line in list(self.fabric_used):
            self.remove_fabric_used(line)
        for embedding in list(self.image_embeddings):
            self.remove_image_embeddings(embedding)

        self.raise_(
            ProductDeleted(
                product_id=self.product_id,
                image_paths=json.dumps(image_paths),
                deleted_at=datetime.now(),
            )
        )

    def discontinue(self):
        if self.is_discontinued:
            raise ValidationError({"status": ["Product is already discontinued"]})

        now = datetime.now()
        with atomic_change(self):
            self.is_discontinued = True
            self.status = derive_status(self.stock or 0, self.low_stock_alert, True)
            self.updated_at = now

        self.raise_(
            ProductDiscontinued(
                product_id=self.product_id,
                status=self.status,
                discontinued_at=now,
            )
        )

    def reinstate(self):
        if not self.is_discontinued:
            raise ValidationError({"status": ["Only discontinued products can be reinstated"]})

        now = datetime.now()
        with atomic_change(self):
            self.is_discontinued = False
            self.status = derive_status(self.stock or 0, self.low_stock_alert)
            self.updated_at = now

        self.raise_(
            ProductReinstated(
                product_id=self.product_id,
                status=self.status,
                reinstated_at=now,
            )
        )

    def deactivate(self):
        if not self.is_active:
            raise ValidationError({"is_active": ["Product is already inactive"]})

        now = datetime.now()
        self.is_active = False
        self.updated_at = now

        self.raise_(
            ProductDeactivated(
                product_id=self.product_id,
                deactivated_at=now,
            )
        )

    # -------------------------------------------------------------------
    # Visual search
    # -------------------------------------------------------------------
    def attach_image_embedding(self, image_path, vector, model):
        if not vector:
            raise ValidationError({"vector": ["Embedding vector cannot be empty"]})

        existing = next((e for e in self.image_embeddings if e.image_path == image_path), None)

        with atomic_change(self):
            if existing is not None:
                self.remove_image_embeddings(existing)
            self.add_image_embeddings(
                ImageEmbedding(
                    image_path=image_path,
                    vector=json.dumps(list(vector)),
                    model=model,
                )
            )
            paths = self.image_paths
            if image_path not in paths:
                paths.append(image_path)
                self.images = json.dumps(paths)

        now = datetime.now()
        self.updated_at = now

        self.raise_(
            ImageEmbeddingAttached(
                product_id=self.product_id,
                image_path=image_path,
                model=model,
                dimensions=len(vector),
                attached_at=now,
            )
        )
