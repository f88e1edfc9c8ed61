"""HTTP mapping for ledger errors not covered by Protean's handlers."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.integrations.fastapi import register_exception_handlers

from ledger.exceptions import EmbeddingUnavailable, FabricShortageError


async def fabric_shortage_handler(request: Request, exc: FabricShortageError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={
            "error": "Insufficient fabric for production",
            "product_id": exc.product_id,
            "quantity": exc.quantity,
            "shortages": exc.shortages,
            "messages": exc.messages,
        },
    )


async def embedding_unavailable_handler(request: Request, exc: EmbeddingUnavailable) -> JSONResponse:
    return JSONResponse(status_code=502, content={"error": str(exc) or "Embedding service unavailable"})


def register_ledger_exception_handlers(app: FastAPI):
    register_exception_handlers(app)
    app.add_exception_handler(FabricShortageError, fabric_shortage_handler)
    app.add_exception_handler(EmbeddingUnavailable, embedding_unavailable_handler)
