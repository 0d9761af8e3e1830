from dataclasses import dataclass

from fastapi import Request
from loguru import logger
from starlette.datastructures import UploadFile

from imghost.services.errors import MalformedBody, MissingField, PayloadTooLarge, UnsupportedMediaType

# Room for boundaries and part headers on top of the payload itself.
MULTIPART_OVERHEAD = 64 * 1024


@dataclass(frozen=True)
class ImageField:
    filename: str | None
    content_type: str
    data: bytes


def is_image_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    media_type = content_type.split(";", 1)[0].strip().lower()
    major, _, minor = media_type.partition("/")
    return major == "image" and bool(minor)


def _too_large(max_size: int) -> PayloadTooLarge:
    return PayloadTooLarge(f"Data too large, limit is {max_size} bytes")


def limit_body(request: Request, max_size: int) -> Request:
    """Return a view of ``request`` whose body stops at the upload cap.

    A declared ``Content-Length`` over the cap is refused before anything is
    read. Otherwise the body is counted as it arrives and parsing is aborted
    as soon as it runs past the cap plus framing.
    """
    body_limit = max_size + MULTIPART_OVERHEAD
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > body_limit:
        logger.warning("Upload refused by content length content_length={} limit={}", content_length, body_limit)
        raise _too_large(max_size)

    received = 0

    async def receive():
        nonlocal received
        message = await request.receive()
        if message["type"] == "http.request":
            received += len(message.get("body", b""))
            if received > body_limit:
                logger.warning("Upload aborted mid-stream received_bytes={} limit={}", received, body_limit)
                raise _too_large(max_size)
        return message

    return Request(request.scope, receive)


async def extract_image_field(request: Request, field_name: str, max_size: int) -> ImageField:
    """Parse the request body and pull out a single image file field.

    Raises ``MissingField`` when the form has no such field,
    ``UnsupportedMediaType`` when the part is not an ``image/*`` file and
    ``PayloadTooLarge`` when it holds more than ``max_size`` bytes. Bodies the
    multipart parser chokes on become ``MalformedBody``.
    """
    limited = limit_body(request, max_size)
    try:
        form = await limited.form()
    except ValueError as exc:
        logger.warning("Multipart parse failed error={}", exc)
        raise MalformedBody("Malformed multipart body") from exc

    try:
        value = form.get(field_name)
        if value is None:
            raise MissingField(f"Missing field '{field_name}'")
        if not isinstance(value, UploadFile):
            raise UnsupportedMediaType(f"Field '{field_name}' is not a file")
        if not is_image_type(value.content_type):
            raise UnsupportedMediaType("Data not an image")

        data = await value.read(max_size + 1)
        if len(data) > max_size:
            raise _too_large(max_size)

        logger.debug(
            "Multipart field parsed field={} filename={} content_type={} size_bytes={}",
            field_name,
            value.filename,
            value.content_type,
            len(data),
        )
        return ImageField(filename=value.filename or None, content_type=value.content_type, data=data)
    finally:
        await form.close()
