import io

import numpy as np
import pytest
from PIL import Image

from cloudfractal.config import Settings
from cloudfractal.web import create_app


@pytest.fixture
def client():
    app = create_app(Settings(workers=2, max_pixels=10_000, max_iterations=2_000))
    app.config["TESTING"] = True
    with app.test_client() as client:
        yield client


def test_root_redirects_to_viewer(client) -> None:
    response = client.get("/")
    assert response.status_code == 307
    assert response.headers["Location"].endswith("/mandelbrot")


def test_viewer_page(client) -> None:
    response = client.get("/mandelbrot")
    assert response.status_code == 200
    assert response.mimetype == "text/html"
    assert b"/mandelbrot/image" in response.data


def test_favicon(client) -> None:
    response = client.get("/favicon.ico")
    assert response.status_code == 200
    assert response.mimetype == "image/x-icon"
    assert response.data.startswith(b"\x00\x00\x01\x00")


def test_image_endpoint(client) -> None:
    response = client.get("/mandelbrot/image?width=16&height=12&centerX=-0.75"
                          "&centerY=0.1&zoom=2&palette=dark&maxIterations=100")
    assert response.status_code == 200
    assert response.mimetype == "image/png"
    with Image.open(io.BytesIO(response.data)) as image:
        assert image.size == (16, 12)


def test_image_endpoint_defaults_are_applied(client) -> None:
    # Defaults alone would be 1000x1000, over this app's pixel limit
    response = client.get("/mandelbrot/image")
    assert response.status_code == 413
    assert response.get_json()["error"] == "ResourceExhausted"


def test_palette_is_case_insensitive_and_defaults_to_sol(client) -> None:
    query = "/mandelbrot/image?width=10&height=10&maxIterations=50&palette="
    sol = client.get(query + "sol").data
    assert client.get(query + "SOL").data == sol
    assert client.get(query + "bogus").data == sol
    assert client.get(query + "dark").data != sol


def test_interior_pixel_is_black(client) -> None:
    response = client.get("/mandelbrot/image?width=10&height=10&maxIterations=50")
    with Image.open(io.BytesIO(response.data)) as image:
        pixels = np.asarray(image)
    # Pixel (5, 5) maps to c = -0.5, inside the main cardioid
    assert tuple(pixels[5, 5]) == (0, 0, 0)


@pytest.mark.parametrize("query", [
    "width=abc",
    "width=10&height=-1",
    "width=10&height=10&zoom=0",
    "width=10&height=10&maxIterations=0",
    "width=0&height=10",
])
def test_invalid_parameters_are_rejected(client, query) -> None:
    response = client.get("/mandelbrot/image?" + query)
    assert response.status_code == 400
    body = response.get_json()
    assert body["error"] == "InvalidParameter"
    assert body["message"]


def test_too_many_iterations(client) -> None:
    response = client.get("/mandelbrot/image?width=10&height=10&maxIterations=5000")
    assert response.status_code == 413


def test_row_failure_is_500(client, monkeypatch) -> None:
    from cloudfractal.acceleration import multiprocessing as scheduling

    def broken(row, request):
        raise ArithmeticError("bad row")

    monkeypatch.setattr(scheduling, "compute_scanline", broken)
    response = client.get("/mandelbrot/image?width=10&height=10&maxIterations=50")
    assert response.status_code == 500
    assert response.get_json()["error"] == "RowComputationFailed"
