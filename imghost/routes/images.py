from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import FileResponse, HTMLResponse
from fastapi.templating import Jinja2Templates
from loguru import logger

from imghost.config import Settings
from imghost.models.upload import UploadedImage
from imghost.services.errors import ImageHostError
from imghost.services.multipart import extract_image_field
from imghost.services.storage import resolve_image_path, save_image

IMAGE_FIELD = "img"

router = APIRouter(prefix="/i", tags=["images"])
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def wants_html(request: Request) -> bool:
    return "text/html" in request.headers.get("accept", "")


@router.post("/upload", response_model=UploadedImage)
async def upload_image(request: Request, settings: Settings = Depends(get_settings)) -> UploadedImage | HTMLResponse:
    host = request.headers.get("host")
    if not host:
        # Nothing else is routed here, so this reads as a plain routing miss.
        raise HTTPException(status_code=404, detail="Not Found")

    try:
        field = await extract_image_field(request, IMAGE_FIELD, settings.max_upload_bytes)
    except ImageHostError as exc:
        logger.warning("Upload rejected error={}", exc.message)
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    try:
        stored = save_image(settings.storage_path, field)
    except ImageHostError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    image = UploadedImage(**stored.model_dump(), url=f"{settings.scheme}://{host}/i/{stored.filename}")
    logger.info(
        "Upload stored filename={} content_type={} size_bytes={} url={}",
        image.filename,
        image.content_type,
        image.size_bytes,
        image.url,
    )
    if wants_html(request):
        return templates.TemplateResponse(request, "uploaded.html", {"image": image, "app_name": settings.app_name})
    return image


@router.get("/{filename}")
async def get_image(filename: str, settings: Settings = Depends(get_settings)) -> FileResponse:
    try:
        path = resolve_image_path(settings.storage_path, filename)
    except ImageHostError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc
    return FileResponse(path)
