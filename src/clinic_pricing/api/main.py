from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from clinic_pricing import __version__
from clinic_pricing.engine import PriceEngine
from clinic_pricing.errors import StoreUnavailable
from clinic_pricing.api.prices_api import router as prices_router
from clinic_pricing.api.state import get_engine

app = FastAPI(
    title="Clinic Pricing API",
    description="Price resolution and price management for clinic billing",
    version=__version__
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(prices_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Clinic Pricing API Active"}


@app.get("/system/status")
async def get_status(engine: PriceEngine = Depends(get_engine)):
    settings = engine.settings
    return {
        "engine_active": True,
        "organization_scope": settings.organization_scope,
        "batch_size": settings.batch_size,
        "cache": engine.cache_stats(),
    }


@app.post("/system/reload")
async def reload_engine(engine: PriceEngine = Depends(get_engine)):
    """Drop cached prices and re-read the store if it supports reloading."""
    reload_store = getattr(engine.store, "reload_data", None)
    if callable(reload_store):
        try:
            reload_store()
        except StoreUnavailable as e:
            raise HTTPException(status_code=503, detail=str(e))
    engine.reload_data()
    return {"success": True}
