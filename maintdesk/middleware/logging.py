# maintdesk/middleware/logging.py
import time
from uuid import uuid4

from fastapi import Request

from maintdesk.core.logger import get_logger

logger = get_logger(__name__)


async def add_request_id_middleware(request: Request, call_next):
    """Add request ID to all requests for tracing."""

    request_id = request.headers.get("X-Request-ID") or str(uuid4())
    request.state.request_id = request_id

    start_time = time.time()
    logger.info(
        f"{request.method} {request.url.path}",
        extra={"request_id": request_id}
    )

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"{request.method} {request.url.path} - {response.status_code} ({duration:.2f}s)",
        extra={"request_id": request_id, "duration": duration}
    )

    response.headers["X-Request-ID"] = request_id
    return response
