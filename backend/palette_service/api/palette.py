"""
Palette Extraction API Routes
Multipart upload endpoints for both backends plus a unified endpoint.
"""
from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from palette_service.config import config
from palette_service.schemas import ErrorResponse, PaletteResponse
from palette_service.services.palette import (
    BackendKind, PaletteOrchestrator, PaletteRequestConfig, PayloadTooLarge,
)
from palette_service.services.palette.backends import PaletteBackend, create_backend

router = APIRouter(prefix="/api", tags=["Palette"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    413: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}

BackendFactory = Callable[[BackendKind], PaletteBackend]


def get_backend_factory() -> BackendFactory:
    """Dependency hook so tests can swap in fake backends."""
    return create_backend


async def _read_image(image: Optional[UploadFile]) -> bytes:
    if image is None:
        return b""
    data = await image.read()
    if len(data) > config.max_upload_bytes:
        raise PayloadTooLarge(f"Image exceeds {config.MAX_FILE_MB}MB limit")
    return data


async def _extract(factory: BackendFactory, kind: BackendKind, image: Optional[UploadFile],
                   request_config: PaletteRequestConfig) -> PaletteResponse:
    image_bytes = await _read_image(image)
    orchestrator = PaletteOrchestrator(factory(kind))
    colors = await orchestrator.extract_palette(image_bytes, request_config)
    return PaletteResponse(colors=[swatch.to_dict() for swatch in colors])


@router.post("/extract-colors", response_model=PaletteResponse, responses=ERROR_RESPONSES,
             summary="Palette from the remote scoring backend")
async def extract_colors(
    image: Optional[UploadFile] = File(None, description="Image to analyse"),
    factory: BackendFactory = Depends(get_backend_factory)
):
    """
    Upload the image to Cloudinary and rank its scored colors.

    Dominance is ``score / image_bytes * 10000``, an approximation of the
    percentage of the image covered by each color.
    """
    return await _extract(factory, BackendKind.REMOTE, image, PaletteRequestConfig())


@router.post("/vibrant", response_model=PaletteResponse, responses=ERROR_RESPONSES,
             summary="Palette from the local cluster backend")
async def vibrant(
    image: Optional[UploadFile] = File(None, description="Image to analyse"),
    quality: Optional[str] = Form(None, description="Sampling step 1 (best) to 10, clamped"),
    maxColorCount: Optional[str] = Form(None, description="Max clusters 16 to 256, clamped"),
    factory: BackendFactory = Depends(get_backend_factory)
):
    """Quantize the image locally; dominance is the cluster's pixel population."""
    request_config = PaletteRequestConfig.from_form(quality, maxColorCount)
    return await _extract(factory, BackendKind.CLUSTER, image, request_config)


@router.post("/palette", response_model=PaletteResponse, responses=ERROR_RESPONSES,
             summary="Palette from a selected backend")
async def palette(
    backend: str = Query(config.DEFAULT_BACKEND, pattern="^(remote|cluster)$",
                         description="Backend to use: remote or cluster"),
    image: Optional[UploadFile] = File(None, description="Image to analyse"),
    quality: Optional[str] = Form(None),
    maxColorCount: Optional[str] = Form(None),
    factory: BackendFactory = Depends(get_backend_factory)
):
    request_config = PaletteRequestConfig.from_form(quality, maxColorCount)
    return await _extract(factory, BackendKind(backend), image, request_config)
