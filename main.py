import uvicorn
import time
import logging
from fastapi import FastAPI, Request
from starlette.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware

from autofix.api.health import router as health_router
from autofix.api.analyze import router as analyze_router
from autofix.api.validate import router as validate_router
from autofix.api.fix import router as fix_router
from autofix.api.analytics import router as analytics_router
from autofix.core.config import CORS_ORIGINS
from autofix.utils.logging_config import setup_logging

setup_logging(level=logging.INFO)
logger = logging.getLogger("main")

app = FastAPI(title="Autofix Error Recovery API")


# ---------------------------------------------------------------------------
# Logging Middleware
# ---------------------------------------------------------------------------
class LoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start_time = time.time()
        client_host = request.client.host if request.client else "unknown"
        logger.info("Incoming: %s %s from %s", request.method, request.url.path, client_host)

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error("Request failed: %s %s - Error: %s", request.method, request.url.path, e)
            raise

        process_time = (time.time() - start_time) * 1000
        logger.info(
            "Outgoing: %s %s - Status: %d - Time: %.2fms",
            request.method, request.url.path, response.status_code, process_time,
        )
        return response


app.add_middleware(LoggingMiddleware)

# ---------------------------------------------------------------------------
# CORS: the preview frontend calls the API from another port
# ---------------------------------------------------------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["Health"])
app.include_router(analyze_router, tags=["Errors"])
app.include_router(validate_router, tags=["Errors"])
app.include_router(fix_router, tags=["Errors"])
app.include_router(analytics_router, tags=["Analytics"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="127.0.0.1", port=8000, reload=True)
