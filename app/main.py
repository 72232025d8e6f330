import logging
import os
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.middleware import SlowAPIMiddleware
from slowapi.errors import RateLimitExceeded
from app.api.routes import router as api_router
from app.database import engine, Base
from app.utils.scraping_utils import ScrapeError

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)
logger = logging.getLogger(__name__)

allowed_origins = [origin for origin in os.getenv("ALLOWED_ORIGINS", "").split(",") if origin]
rate_limits = [limit.strip() for limit in os.getenv("RATE_LIMITS", "100/hour;1000/day").split(";") if limit.strip()]
rate_limit_enabled = os.getenv("RATE_LIMIT_ENABLED", "true").lower() in ("1", "true", "yes")

Base.metadata.create_all(engine)

limiter = Limiter(key_func=get_remote_address, default_limits=rate_limits, enabled=rate_limit_enabled)

app = FastAPI(title="Recipe Box API")


app.state.limiter = limiter

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(SlowAPIMiddleware)

@app.exception_handler(RateLimitExceeded)
async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(
        status_code=429,
        content={"detail": "Rate limit exceeded. Please try again later."},
    )

@app.exception_handler(ScrapeError)
async def scrape_error_handler(request: Request, exc: ScrapeError):
    logger.warning("Scrape failed (%s): %s", exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

# Include our routes.
app.include_router(api_router)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
