import io
import os
import zipfile
import tempfile
from datetime import datetime, timedelta

# Settings are read at import time, so they go in before any app module loads
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ADMIN_PASSWORD"] = "letmein"
os.environ["ADMIN_TOKEN"] = "test-token"
os.environ["UPLOAD_DIR"] = tempfile.mkdtemp(prefix="portfolio-uploads-")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from models import Project, BlogPost
from store import SqlStore, init_db, get_project_store, get_post_store

BASE_TIME = datetime(2024, 1, 1, 12, 0, 0)


@pytest.fixture
def session_factory():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    init_db(engine)
    yield sessionmaker(engine, expire_on_commit=False)
    engine.dispose()


@pytest.fixture
def project_store(session_factory):
    return SqlStore(Project, session_factory)


@pytest.fixture
def post_store(session_factory):
    return SqlStore(BlogPost, session_factory)


@pytest.fixture
def add_project(project_store):
    def add(n, **fields):
        data = {
            "title": f"Project {n}", "description": "A project", "category": "Website",
            "technologies": '["Python"]', "features": '["Fast"]',
            "created_at": BASE_TIME + timedelta(days=n),
        }
        data.update(fields)
        return project_store.create(data)
    return add


@pytest.fixture
def add_post(post_store):
    def add(n, **fields):
        data = {
            "title": f"Post {n}", "slug": f"post-{n}", "content": "Hello world",
            "tags": '["news"]', "published": True,
            "created_at": BASE_TIME + timedelta(days=n),
        }
        data.update(fields)
        return post_store.create(data)
    return add


@pytest.fixture
def client(project_store, post_store):
    from app import app
    app.dependency_overrides[get_project_store] = lambda: project_store
    app.dependency_overrides[get_post_store] = lambda: post_store
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def admin_headers():
    return {"Authorization": "Bearer test-token"}


PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16

_W = "http://schemas.openxmlformats.org/wordprocessingml/2006/main"
_R = "http://schemas.openxmlformats.org/officeDocument/2006/relationships"
_REL = "http://schemas.openxmlformats.org/package/2006/relationships"

DOCX_PARTS = {
    "[Content_Types].xml": (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
        '<Default Extension="rels" ContentType="application/vnd.openxmlformats-package.relationships+xml"/>'
        '<Default Extension="xml" ContentType="application/xml"/>'
        '<Default Extension="png" ContentType="image/png"/>'
        '</Types>'
    ),
    "_rels/.rels": (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?><Relationships xmlns="{_REL}">'
        f'<Relationship Id="rId1" Type="{_R}/officeDocument" Target="word/document.xml"/>'
        '</Relationships>'
    ),
    "word/_rels/document.xml.rels": (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?><Relationships xmlns="{_REL}">'
        f'<Relationship Id="rId1" Type="{_R}/styles" Target="styles.xml"/>'
        f'<Relationship Id="rId5" Type="{_R}/image" Target="media/image1.png"/>'
        '</Relationships>'
    ),
    "word/styles.xml": (
        f'<?xml version="1.0" encoding="UTF-8" standalone="yes"?><w:styles xmlns:w="{_W}">'
        '<w:style w:type="paragraph" w:styleId="Heading1"><w:name w:val="Heading 1"/></w:style>'
        '</w:styles>'
    ),
    "word/document.xml": (
        '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>'
        f'<w:document xmlns:w="{_W}" xmlns:r="{_R}"'
        ' xmlns:wp="http://schemas.openxmlformats.org/drawingml/2006/wordprocessingDrawing"'
        ' xmlns:a="http://schemas.openxmlformats.org/drawingml/2006/main"'
        ' xmlns:pic="http://schemas.openxmlformats.org/drawingml/2006/picture">'
        '<w:body>'
        '<w:p><w:pPr><w:pStyle w:val="Heading1"/></w:pPr><w:r><w:t>Intro</w:t></w:r></w:p>'
        '<w:p><w:r><w:t>Body text.</w:t></w:r></w:p>'
        '<w:p><w:r><w:drawing><wp:inline>'
        '<wp:docPr id="1" name="Picture 1" descr="Diagram"/>'
        '<a:graphic><a:graphicData uri="http://schemas.openxmlformats.org/drawingml/2006/picture">'
        '<pic:pic><pic:blipFill><a:blip r:embed="rId5"/></pic:blipFill></pic:pic>'
        '</a:graphicData></a:graphic>'
        '</wp:inline></w:drawing></w:r></w:p>'
        '</w:body></w:document>'
    ),
}


@pytest.fixture
def docx_bytes():
    """Smallest .docx with a Heading 1 paragraph and one embedded PNG."""
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, text in DOCX_PARTS.items():
            zf.writestr(name, text)
        zf.writestr("word/media/image1.png", PNG_BYTES)
    return buf.getvalue()
