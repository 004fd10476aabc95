"""
WebMetrics FastAPI application — main entry point.
Run with: uvicorn webmetrics.main:app
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_settings
from .middleware.cors import PermissiveCORSMiddleware
from .middleware.rate_limit import RateLimitMiddleware
from .routers.monitor_router import router as monitor_router

settings = get_settings()

logging.basicConfig(
    level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logging.getLogger("aiohttp").setLevel(logging.WARNING)

app = FastAPI(
    title="WebMetrics API",
    description=(
        "Website health probe: timed fetch, SSL / robots.txt / sitemap checks, "
        "PageSpeed Insights scores (or estimates) and on-page SEO analysis."
    ),
    version=__version__,
    docs_url="/docs" if settings.environment != "production" else None,
    redoc_url="/redoc" if settings.environment != "production" else None,
)

app.add_middleware(RateLimitMiddleware)
# Added last so it wraps everything, including 429s
app.add_middleware(PermissiveCORSMiddleware)


@app.exception_handler(RequestValidationError)
async def bad_request(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content={"error": "Request body must be JSON: {\"url\": string}"})


app.include_router(monitor_router)
