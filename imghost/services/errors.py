class ImageHostError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class PayloadTooLarge(ImageHostError):
    status_code = 400


class UnsupportedMediaType(ImageHostError):
    status_code = 400


class MissingField(ImageHostError):
    status_code = 400


class InvalidFilename(ImageHostError):
    status_code = 400


class ImageNotFound(ImageHostError):
    status_code = 404


class StorageIOError(ImageHostError):
    status_code = 500


class MalformedBody(ImageHostError):
    status_code = 400
