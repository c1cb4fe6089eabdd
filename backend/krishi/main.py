import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from krishi import __version__
from krishi.config import settings
from krishi.errors import install_error_handlers
from krishi.http import init_http, close_http
from krishi.routers import chat, weather, market, pest, feedback

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("krishimitra")

# Single FastAPI instance
app = FastAPI(title="Krishi Mitra API", version=__version__)

@app.on_event("startup")
async def startup_event():
    """Initialize the shared HTTP client on startup."""
    await init_http()

@app.on_event("shutdown")
async def shutdown_event():
    """Close HTTP client on shutdown."""
    await close_http()

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in settings.CORS_ORIGINS.split(",") if o.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_error_handlers(app)

# API endpoints
for r in (chat.router, weather.router, market.router, pest.router, feedback.router):
    app.include_router(r, prefix="/api")

@app.get("/")
async def root():
    return {"ok": True, "service": "Krishi Mitra", "version": app.version}

@app.get("/health")
async def health():
    """Which integrations are live; the rest answer with mock/sample data."""
    return {
        "ok": True,
        "integrations": {
            "chat": bool(settings.OPENAI_API_KEY),
            "weather": bool(settings.OPENWEATHER_API_KEY),
            "market": settings.market_configured,
            "pest": settings.roboflow_configured,
        },
        "model": settings.OPENAI_MODEL,
    }
