"""
Word document (.docx) -> HTML for blog post bodies.

Embedded images are written under UPLOAD_DIR/blog-images and referenced
by their public /uploads URL instead of inline data URIs.
"""
import io
import uuid
import logging
import zipfile
import mimetypes
import pathlib

import mammoth

import config
from errors import ValidationFailed

logger = logging.getLogger(__name__)

STYLE_MAP = """
p[style-name='Heading 1'] => h1:fresh
p[style-name='Heading 2'] => h2:fresh
p[style-name='Heading 3'] => h3:fresh
"""

IMAGE_SUBDIR = "blog-images"


def _image_saver(target_dir: pathlib.Path):
    def save(image):
        ext = mimetypes.guess_extension(image.content_type or "") or ".png"
        if ext == ".jpe":
            ext = ".jpg"
        name = f"{uuid.uuid4().hex}{ext}"
        with image.open() as src:
            (target_dir / name).write_bytes(src.read())
        return {"src": f"/uploads/{IMAGE_SUBDIR}/{name}"}
    return save


def convert_document(data: bytes, upload_dir: pathlib.Path = None) -> str:
    target_dir = (upload_dir or config.UPLOAD_DIR) / IMAGE_SUBDIR
    target_dir.mkdir(parents=True, exist_ok=True)
    try:
        result = mammoth.convert_to_html(
            io.BytesIO(data),
            style_map=STYLE_MAP,
            convert_image=mammoth.images.img_element(_image_saver(target_dir)),
        )
    except (zipfile.BadZipFile, KeyError) as exc:
        logger.warning("Unreadable document: %s", exc)
        raise ValidationFailed.for_field("file", "Not a readable .docx document")
    for message in result.messages:
        logger.warning("Document conversion: %s", message)
    return result.value
