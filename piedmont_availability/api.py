import logging
from typing import Optional

from fastapi import FastAPI, Query
from fastapi.responses import JSONResponse

from piedmont_availability import config, run

logger = logging.getLogger(__name__)

app = FastAPI(title="Piedmont Springs Availability")


# Plain def: FastAPI runs it in a worker thread, which the sync Playwright API needs.
@app.get("/api/availability")
def get_availability(days: Optional[str] = Query(default=None)):
    try:
        response = run.build_availability_response(days)
    except Exception as e:
        logger.error(f"Error fetching availability: {e}", exc_info=True)
        message = str(e) or "Failed to fetch availability"
        return JSONResponse(status_code=500, content={"error": message})

    return JSONResponse(
        content=response.model_dump(mode="json", by_alias=True),
        headers={"Cache-Control": config.CACHE_CONTROL},
    )


@app.get("/api/health")
def health():
    return {"status": "ok"}
