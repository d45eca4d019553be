import time
import logging
from fastapi import Request

logger = logging.getLogger("access")


async def request_logging_middleware(request: Request, call_next):
    start_time = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - start_time) * 1000
    # get_query_actor stores the resolved user here; body-actor routes leave it unset
    actor = getattr(request.state, "user", None)

    logger.info(
        "%s %s",
        request.method,
        request.url.path,
        extra={
            "client_addr": request.client.host if request.client else "unknown",
            "actor": actor.id if actor else "-",
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "process_time_ms": round(elapsed_ms, 2),
        },
    )

    return response
