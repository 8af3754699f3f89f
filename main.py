# main.py
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pointpoll.config import settings
from pointpoll.api.routes import auth, polls, votes
from pointpoll.core.exceptions import VotingError
from pointpoll.core.logging_middleware import ERROR_HEADER, log_requests
from pointpoll.core.logger import logger

app = FastAPI(
    title=settings.app_name,
    debug=settings.debug
)

# ===== request logging (first) =====
@app.middleware("http")
async def logging_middleware(request: Request, call_next):
    return await log_requests(request, call_next)
# ===================================

# voting errors -> JSON
@app.exception_handler(VotingError)
async def voting_error_handler(request: Request, exc: VotingError):
    logger.debug(f"{exc.__class__.__name__}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.__class__.__name__},
        headers={ERROR_HEADER: exc.__class__.__name__}
    )

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# routers
app.include_router(auth.router)
app.include_router(polls.router)
app.include_router(votes.router)

# ===== lifecycle logs =====
@app.on_event("startup")
async def startup_event():
    logger.info("PointPoll API started")

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("PointPoll API stopped")
# ==========================

@app.get("/health")
def health_check():
    """Health check"""
    return {
        "status": "healthy",
        "service": settings.app_name
    }
