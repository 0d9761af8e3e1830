from pydantic import BaseModel


class StoredImage(BaseModel):
    id: str
    filename: str
    content_type: str
    size_bytes: int


class UploadedImage(StoredImage):
    url: str
