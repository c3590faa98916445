import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from hod.core import get_settings, limiter
from hod.db.session import engine
from hod.routers import ROUTERS

settings = get_settings()
logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(_app: FastAPI):
    logger.info("HoD API starting (model %s)", settings.gemini_model)
    yield
    await engine.dispose()


app = FastAPI(
    title="HoD API",
    description="AI ingestion for a Head of Department: brain dumps in, reviewed records out.",
    version="0.1.0",
    lifespan=lifespan,
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for router in ROUTERS:
    app.include_router(router)


@app.get("/health")
async def health():
    return {"status": "ok", "aiConfigured": bool(settings.gemini_api_key)}
