import secrets
from pathlib import PurePosixPath

URL_SAFE_ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789_-"
ID_LENGTH = 10
FALLBACK_EXTENSION = "bin"


def generate_id(size: int = ID_LENGTH) -> str:
    return "".join(secrets.choice(URL_SAFE_ALPHABET) for _ in range(size))


def resolve_extension(filename: str | None) -> str:
    """Return the extension of a client-supplied filename, without the dot.

    ``photo.PNG`` gives ``PNG``, ``archive.tar.gz`` gives ``gz``. Names with
    no suffix, dotfiles like ``.bashrc`` and a missing name all fall back to
    ``bin``.
    """
    if not filename:
        return FALLBACK_EXTENSION
    # Browsers on Windows may send the full client path.
    name = PurePosixPath(filename.replace("\\", "/")).name
    suffix = PurePosixPath(name).suffix
    return suffix[1:] if len(suffix) > 1 else FALLBACK_EXTENSION
