from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from palette_service import __version__
from palette_service.api.palette import router as palette_router
from palette_service.config import config
from palette_service.schemas import HealthResponse
from palette_service.services.palette import PaletteError
from palette_service.utils.logging import get_logger
from palette_service.utils.metrics import get_metrics

logger = get_logger()

# Fail at startup rather than 422 every request that relies on the default backend
config.validate()

app = FastAPI(
    title="Palette Extraction Service",
    description="Ranked color palettes from uploaded images via remote scoring or local clustering",
    version=__version__
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"]
)

app.include_router(palette_router)


@app.exception_handler(PaletteError)
async def palette_error_handler(request: Request, exc: PaletteError):
    """Render pipeline failures as ``{"error", "details"}`` with the failure's status."""
    return JSONResponse(status_code=exc.status_code, content=exc.to_response())


@app.get("/")
def root():
    return {"message": "Palette Extraction Service", "version": __version__}


@app.get("/palette/healthz", response_model=HealthResponse)
def palette_health():
    """Health check with per-backend configuration status."""
    return HealthResponse(
        ok=True,
        version=__version__,
        backends={"remote": config.cloudinary_configured(), "cluster": True}
    )


@app.get("/palette/metrics")
def palette_metrics():
    """Get palette pipeline metrics."""
    try:
        return get_metrics().summary()
    except Exception as e:
        logger.exception("Failed to get metrics")
        raise HTTPException(status_code=500, detail=f"Failed to get metrics: {str(e)}")
