"""
HTTP Read API

ENDPOINTS:
- GET /api/health              -> {"status": "ok"}
- GET /api/orders/             -> listing stub
- GET /api/orders/{order_uid}  -> order JSON | 400 blank id | 404 not found
- GET /, /index.html           -> static lookup page

Handlers are plain `def` functions and run in FastAPI's thread pool; a cache
miss falls through to a blocking database read.
"""

import logging
import time
from pathlib import Path
from typing import Optional, Union

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse

from src.order_service.exceptions import OrderNotFoundError
from src.order_service.lookup import OrderLookupService

logger = logging.getLogger(__name__)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    lookup_service: OrderLookupService,
    static_dir: Optional[Union[str, Path]] = None,
) -> FastAPI:
    """
    Build the read API around a lookup service.

    Args:
        lookup_service: Cache-aside order lookup
        static_dir: Directory containing index.html; the page routes answer
            404 when it is not set or the file is missing
    """
    app = FastAPI(title="Order Service", docs_url=None, redoc_url=None)
    index_file = Path(static_dir) / "index.html" if static_dir else None

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start_time = time.time()
        response = await call_next(request)
        logger.info(
            "HTTP request",
            extra={
                "method": request.method,
                "path": request.url.path,
                "status": response.status_code,
                "duration_ms": round((time.time() - start_time) * 1000, 2),
            },
        )
        return response

    @app.get("/api/health")
    def health():
        return {"status": "ok"}

    @app.get("/api/orders/")
    def list_orders():
        return {"message": "Not implemented yet"}

    @app.get("/api/orders/{order_uid}")
    def get_order(order_uid: str):
        if not order_uid.strip():
            return _error(400, "Order UID is required")

        try:
            order = lookup_service.get_order(order_uid)
        except OrderNotFoundError:
            return _error(404, "Order not found")

        return order.model_dump(mode="json")

    @app.get("/")
    @app.get("/index.html")
    def index():
        if index_file is None or not index_file.is_file():
            return _error(404, "Not found")
        return FileResponse(index_file, media_type="text/html")

    return app
