import re

from fastapi.testclient import TestClient

from imghost.config import Settings
from imghost.main import create_app

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + bytes(range(256)) * 4

URL_PATTERN = re.compile(r"^http://testserver/i/([A-Za-z0-9_-]{10})\.(\w+)$")


def _upload(client, filename="cat.png", data=PNG_BYTES, content_type="image/png"):
    return client.post("/i/upload", files={"img": (filename, data, content_type)})


def test_upload_stores_image(client, storage_dir):
    response = _upload(client)

    assert response.status_code == 200
    body = response.json()
    match = URL_PATTERN.match(body["url"])
    assert match is not None
    assert match.group(1) == body["id"]
    assert match.group(2) == "png"
    assert body["filename"] == f"{body['id']}.png"
    assert body["content_type"] == "image/png"
    assert body["size_bytes"] == len(PNG_BYTES)
    assert (storage_dir / body["filename"]).read_bytes() == PNG_BYTES


def test_upload_without_extension_falls_back_to_bin(client, storage_dir):
    response = _upload(client, filename="snapshot")

    assert response.status_code == 200
    filename = response.json()["filename"]
    assert filename.endswith(".bin")
    assert (storage_dir / filename).exists()


def test_upload_round_trip(client):
    url = _upload(client, filename="pic.jpeg", content_type="image/jpeg").json()["url"]
    path = url.removeprefix("http://testserver")

    response = client.get(path)

    assert response.status_code == 200
    assert response.content == PNG_BYTES
    assert response.headers["content-type"] == "image/jpeg"


def test_upload_at_size_limit_is_accepted(client):
    assert _upload(client, data=b"x" * 4096).status_code == 200


def test_upload_too_large_is_rejected(client, storage_dir):
    response = _upload(client, data=b"x" * 4097)

    assert response.status_code == 400
    assert "too large" in response.json()["detail"]
    assert list(storage_dir.iterdir()) == []


def test_upload_non_image_is_rejected(client, storage_dir):
    response = _upload(client, filename="notes.txt", data=b"hello", content_type="text/plain")

    assert response.status_code == 400
    assert response.json()["detail"] == "Data not an image"
    assert list(storage_dir.iterdir()) == []


def test_upload_plain_form_field_is_rejected(client, storage_dir):
    response = client.post("/i/upload", data={"img": "not a file"})

    assert response.status_code == 400
    assert list(storage_dir.iterdir()) == []


def test_upload_missing_field(client):
    response = client.post("/i/upload", files={"picture": ("cat.png", PNG_BYTES, "image/png")})

    assert response.status_code == 400
    assert response.json()["detail"] == "Missing field 'img'"


def test_upload_non_form_body(client):
    response = client.post("/i/upload", json={"img": "cat.png"})

    assert response.status_code == 400


def test_upload_malformed_multipart_is_bad_request(client, storage_dir):
    response = client.post(
        "/i/upload",
        content=b"this is not a multipart body",
        headers={"Content-Type": "multipart/form-data; boundary=abc123"},
    )

    assert response.status_code == 400
    assert list(storage_dir.iterdir()) == []


def test_upload_uses_https_when_tls_enabled(settings):
    tls_settings = settings.model_copy(update={"tls": True})
    with TestClient(create_app(tls_settings)) as client:
        url = _upload(client).json()["url"]

    assert url.startswith("https://testserver/i/")


def test_upload_url_uses_host_header(client):
    response = client.post(
        "/i/upload",
        files={"img": ("cat.png", PNG_BYTES, "image/png")},
        headers={"Host": "img.example.com:8443"},
    )

    assert response.json()["url"].startswith("http://img.example.com:8443/i/")


def test_get_unknown_image_is_404(client):
    response = client.get("/i/AAAAAAAAAA.png")

    assert response.status_code == 404


def test_get_rejects_backslash_traversal(client):
    response = client.get("/i/..%5Csecret")

    assert response.status_code == 400


def test_request_id_is_echoed(client):
    response = client.get("/i/missing.png", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"] == "req-123"


def test_static_assets_are_served(tmp_path):
    static_dir = tmp_path / "static"
    static_dir.mkdir()
    (static_dir / "index.html").write_text("<h1>imghost</h1>")
    settings = Settings(storage_dir=str(tmp_path / "upload"), static_dir=str(static_dir))

    with TestClient(create_app(settings)) as client:
        index = client.get("/")
        upload = _upload(client)

    assert index.status_code == 200
    assert "imghost" in index.text
    assert upload.status_code == 200


def test_upload_renders_page_for_browsers(client):
    response = client.post(
        "/i/upload",
        files={"img": ("cat.png", PNG_BYTES, "image/png")},
        headers={"Accept": "text/html,application/xhtml+xml"},
    )

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    match = re.search(r'href="(http://testserver/i/[A-Za-z0-9_-]{10}\.png)"', response.text)
    assert match is not None
    assert client.get(match.group(1).removeprefix("http://testserver")).content == PNG_BYTES


def test_upload_storage_failure_is_server_error(client, storage_dir):
    storage_dir.rmdir()

    response = _upload(client)

    assert response.status_code == 500
    assert response.json()["detail"] == "Could not store image"


def test_images_allow_cross_origin_requests(client):
    response = client.get("/i/missing.png", headers={"Origin": "https://blog.example.org"})

    assert response.headers["access-control-allow-origin"] == "*"
