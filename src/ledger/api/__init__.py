from ledger.api.errors import register_ledger_exception_handlers
from ledger.api.routes import auth_router, fabric_router, inventory_router, product_router

__all__ = [
    "auth_router",
    "inventory_router",
    "product_router",
    "fabric_router",
    "register_ledger_exception_handlers",
]
