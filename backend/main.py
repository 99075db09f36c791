import logging
import sys
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from lmchat.config import get_settings
from lmchat.routers import chat, models

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)-7s %(name)s: %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="LM Studio Chat API",
    description="Streams chat replies from a local LM Studio server",
    version="1.0.0",
)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    started = time.perf_counter()
    route = f"{request.method} {request.url.path}"
    logger.info(f"[HTTP] -> {route}")

    try:
        response = await call_next(request)
    except Exception as e:
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.error(f"[HTTP] {route} failed after {elapsed_ms:.0f}ms: {e}", exc_info=True)
        return JSONResponse(status_code=500, content={"detail": f"Internal server error: {e}"})

    elapsed_ms = (time.perf_counter() - started) * 1000
    logger.info(f"[HTTP] <- {route} {response.status_code} ({elapsed_ms:.0f}ms)")
    return response


# The UI reads X-Request-ID to cancel a running stream
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

app.include_router(chat.router)
app.include_router(models.router)


@app.get("/")
async def read_root():
    return {"message": "LM Studio Chat API", "status": "running"}


@app.get("/health")
async def health_check():
    return {"status": "healthy", "server_url": settings.server_url}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=True)
