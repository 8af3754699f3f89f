# pointpoll/core/logging_middleware.py
from fastapi import Request
from pointpoll.core.logger import logger
import time

# set by the VotingError handler so the access line can name the error
ERROR_HEADER = "X-Voting-Error"

async def log_requests(request: Request, call_next):
    """Log every request, its outcome and how long it took"""

    started = time.perf_counter()
    route = f"{request.method} {request.url.path}"

    logger.info(f"-> {route}")

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed = (time.perf_counter() - started) * 1000
        logger.opt(exception=e).error(f"!! {route} - {e.__class__.__name__}: {e} - {elapsed:.2f}ms")
        raise

    elapsed = (time.perf_counter() - started) * 1000
    voting_error = response.headers.get(ERROR_HEADER)

    if voting_error:
        logger.warning(f"<- {route} - {response.status_code} {voting_error} - {elapsed:.2f}ms")
    elif response.status_code >= 500:
        logger.error(f"<- {route} - {response.status_code} - {elapsed:.2f}ms")
    else:
        logger.info(f"<- {route} - {response.status_code} - {elapsed:.2f}ms")

    return response
