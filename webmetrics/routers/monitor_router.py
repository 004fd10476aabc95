"""
webmetrics/routers/monitor_router.py
POST /monitor-website — probe one URL and return a MonitoringResult.
"""
import logging
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from ..exceptions import InvalidURLError
from ..models import MonitoringResult, MonitorRequest
from ..services.monitor import run_probe
from .. import __version__

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Monitoring"])


@router.post("/monitor-website", response_model=MonitoringResult)
async def monitor_website(req: MonitorRequest):
    try:
        return await run_probe(req.url)
    except InvalidURLError as e:
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Monitor error for %r", req.url)
        return JSONResponse(status_code=500, content={"error": str(e) or "Internal server error"})


@router.get("/health")
async def health():
    return {"status": "ok", "version": __version__}
