"""
Shared pytest fixtures: a small asset tree built in a temporary directory.

    fixtures/
        alpha/kateryna.jpg      200x57 JPEG
        alpha/duplicate.png     10x10 PNG
        beta/duplicate.png      20x20 PNG
        images/picture.png      100x40 PNG
        images/vector.svg       160x120 SVG
        images/viewbox.svg      viewBox 0 0 48 24
        images/corrupted.jpg    not an image
        images/my picture.png   4x4 PNG
        fonts/glyphs.xyzfont    unknown media type
        styles/main.css         source stylesheet
        styles/local.png        8x6 PNG next to the stylesheet
"""

import sys
from pathlib import Path

import pytest
from PIL import Image

# Add the src directory to the path
src_path = Path(__file__).parent / "src"
sys.path.insert(0, str(src_path))


def _image(path: Path, size, fmt: str):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new('RGB', size, (200, 80, 40)).save(path, fmt)


@pytest.fixture
def fixtures(tmp_path) -> Path:
    root = tmp_path / "fixtures"
    _image(root / "alpha" / "kateryna.jpg", (200, 57), 'JPEG')
    _image(root / "alpha" / "duplicate.png", (10, 10), 'PNG')
    _image(root / "beta" / "duplicate.png", (20, 20), 'PNG')
    _image(root / "images" / "picture.png", (100, 40), 'PNG')
    _image(root / "images" / "my picture.png", (4, 4), 'PNG')
    _image(root / "styles" / "local.png", (8, 6), 'PNG')

    (root / "images" / "vector.svg").write_text(
        '<?xml version="1.0"?>\n'
        '<svg xmlns="http://www.w3.org/2000/svg" width="160px" height="120">'
        '<rect width="10" height="10"/></svg>', encoding='utf-8')
    (root / "images" / "viewbox.svg").write_text(
        '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 48 24"></svg>', encoding='utf-8')
    (root / "images" / "corrupted.jpg").write_bytes(b"this is not a jpeg at all")

    (root / "fonts").mkdir()
    (root / "fonts" / "glyphs.xyzfont").write_bytes(b"\x00\x01glyphs")

    (root / "styles" / "main.css").write_text(
        "body { background: resolve('local.png'); }\n", encoding='utf-8')
    return root
