from pathlib import Path

from loguru import logger

from imghost.models.upload import StoredImage
from imghost.services.errors import ImageNotFound, InvalidFilename, StorageIOError
from imghost.services.identifiers import generate_id, resolve_extension
from imghost.services.multipart import ImageField


def save_image(storage_path: Path, field: ImageField) -> StoredImage:
    file_id = generate_id()
    storage_key = f"{file_id}.{resolve_extension(field.filename)}"
    destination = storage_path / storage_key

    try:
        destination.write_bytes(field.data)
    except OSError as exc:
        logger.error("File write failed storage_key={} destination={} error={}", storage_key, str(destination), exc)
        raise StorageIOError("Could not store image") from exc
    logger.debug(
        "File saved storage_key={} destination={} size_bytes={}",
        storage_key,
        str(destination),
        len(field.data),
    )

    return StoredImage(
        id=file_id,
        filename=storage_key,
        content_type=field.content_type,
        size_bytes=len(field.data),
    )


def resolve_image_path(storage_path: Path, filename: str) -> Path:
    if (
        not filename
        or filename in {".", ".."}
        or "/" in filename
        or "\\" in filename
        or "\x00" in filename
    ):
        logger.warning("Rejected image filename filename={!r}", filename)
        raise InvalidFilename("Invalid image filename")

    root = storage_path.resolve()
    path = (root / filename).resolve()
    if path.parent != root:
        logger.warning("Rejected image filename outside storage filename={!r}", filename)
        raise InvalidFilename("Invalid image filename")
    if not path.is_file():
        logger.warning("Image not found filename={} path={}", filename, str(path))
        raise ImageNotFound(f"Image not found: {filename}")
    return path
