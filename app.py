import uuid, pathlib, logging
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import uvicorn
from fastapi import FastAPI, Depends, Body, Query, Request, UploadFile, File
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
import documents
import queries
import service
from auth import create_token, verify_password, verify_token
from errors import PortfolioError, MalformedRequestBody, ValidationFailed
from schemas import (LoginIn, TokenOut, ProjectOut, BlogPostOut,
                     PriorityPostsOut, TrendingPostsOut)
from store import SqlStore, get_project_store, get_post_store, init_db

config.setup_logging()
logger = logging.getLogger(__name__)

POLICY = config.ARRAY_DECODE_POLICY


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("Database ready at %s", config.DATABASE_URL)
    if config.ADMIN_TOKEN_GENERATED:
        logger.warning("ADMIN_TOKEN is not set; using a token generated for this process only. "
                       "Set ADMIN_TOKEN when running more than one worker.")
    yield

app = FastAPI(title="Portfolio API", lifespan=lifespan)

# Uploaded images and images extracted from documents, served under /uploads/...
UPLOAD_DIR = config.UPLOAD_DIR
UPLOAD_DIR.mkdir(parents=True, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=str(UPLOAD_DIR)), name="uploads")

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS, allow_credentials=True,
    allow_methods=["*"], allow_headers=["*"]
)

# ---------- Errors ----------
@app.exception_handler(PortfolioError)
async def portfolio_error_handler(request: Request, exc: PortfolioError):
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    if any(e.get("type") == "json_invalid" for e in errors):
        err = MalformedRequestBody("Request body is not valid JSON")
    else:
        err = ValidationFailed.from_errors(errors)
    return JSONResponse(status_code=err.status_code, content=err.to_dict())

@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": exc.detail},
                        headers=getattr(exc, "headers", None))

@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})

# ---------- Auth ----------
@app.post("/api/auth/login", response_model=TokenOut)
def login(data: LoginIn):
    if not verify_password(data.password):
        raise StarletteHTTPException(status_code=401, detail="Wrong password")
    return {"token": create_token()}

# ---------- Projects ----------
@app.get("/api/projects", response_model=List[ProjectOut])
def list_projects(published: Optional[str] = None, featured: Optional[str] = None,
                  store: SqlStore = Depends(get_project_store)):
    return queries.list_projects(store, {"published": published, "featured": featured}, POLICY)

@app.post("/api/projects", response_model=ProjectOut, status_code=201)
def create_project(payload: Dict[str, Any] = Body(...), store: SqlStore = Depends(get_project_store),
                   _user=Depends(verify_token)):
    return service.create_project(store, payload, POLICY)

@app.get("/api/projects/{project_id}", response_model=ProjectOut)
def get_project(project_id: str, store: SqlStore = Depends(get_project_store)):
    return service.get_project(store, project_id, POLICY)

@app.patch("/api/projects/{project_id}", response_model=ProjectOut)
def update_project(project_id: str, payload: Dict[str, Any] = Body(...),
                   store: SqlStore = Depends(get_project_store), _user=Depends(verify_token)):
    return service.update_project(store, project_id, payload, POLICY)

@app.delete("/api/projects/{project_id}")
def delete_project(project_id: str, store: SqlStore = Depends(get_project_store),
                   _user=Depends(verify_token)):
    service.delete_project(store, project_id)
    return {"success": True}

# ---------- Blog ----------
@app.get("/api/blog", response_model=List[BlogPostOut])
def list_posts(admin: Optional[str] = None, unpublished: Optional[str] = None,
               published: Optional[str] = None, store: SqlStore = Depends(get_post_store)):
    params = {"admin": admin, "unpublished": unpublished, "published": published}
    return queries.list_posts(store, params, POLICY)

@app.post("/api/blog", response_model=BlogPostOut, status_code=201)
def create_post(payload: Dict[str, Any] = Body(...), store: SqlStore = Depends(get_post_store),
                _user=Depends(verify_token)):
    return service.create_post(store, payload, POLICY)

@app.get("/api/blog/trending", response_model=TrendingPostsOut)
def trending_posts(min_likes: Optional[str] = Query(None, alias="minLikes"),
                   store: SqlStore = Depends(get_post_store)):
    return queries.list_trending_posts(store, {"minLikes": min_likes}, POLICY)

@app.get("/api/blog/priority/{priority}", response_model=PriorityPostsOut)
def posts_by_priority(priority: str, store: SqlStore = Depends(get_post_store)):
    return queries.list_posts_by_priority(store, priority, POLICY)

@app.get("/api/blog/slug/{slug}", response_model=BlogPostOut)
def get_post_by_slug(slug: str, store: SqlStore = Depends(get_post_store)):
    return service.get_post_by_slug(store, slug, POLICY)

@app.get("/api/blog/{post_id}", response_model=BlogPostOut)
def get_post(post_id: str, store: SqlStore = Depends(get_post_store)):
    return service.get_post(store, post_id, POLICY)

@app.patch("/api/blog/{post_id}", response_model=BlogPostOut)
def update_post(post_id: str, payload: Dict[str, Any] = Body(...),
                store: SqlStore = Depends(get_post_store), _user=Depends(verify_token)):
    return service.update_post(store, post_id, payload, POLICY)

@app.put("/api/blog/{post_id}", response_model=BlogPostOut)
def replace_post(post_id: str, payload: Dict[str, Any] = Body(...),
                 store: SqlStore = Depends(get_post_store), _user=Depends(verify_token)):
    return service.replace_post(store, post_id, payload, POLICY)

@app.delete("/api/blog/{post_id}")
def delete_post(post_id: str, store: SqlStore = Depends(get_post_store),
                _user=Depends(verify_token)):
    service.delete_post(store, post_id)
    return {"message": "Blog post deleted successfully"}

# ---------- Uploads ----------
ALLOWED_EXT = {".jpg", ".jpeg", ".png", ".webp", ".gif"}
MAX_SIZE = 5 * 1024 * 1024  # 5 MB
MAX_DOCUMENT_SIZE = 20 * 1024 * 1024

@app.post("/api/upload")
async def upload_image(request: Request, file: UploadFile = File(...), _user=Depends(verify_token)):
    ext = pathlib.Path(file.filename or "").suffix.lower()
    if ext not in ALLOWED_EXT:
        raise ValidationFailed.for_field("file", f"Allowed: {', '.join(sorted(ALLOWED_EXT))}")

    contents = await file.read()
    if len(contents) > MAX_SIZE:
        raise ValidationFailed.for_field("file", "File too large (max 5 MB)")

    name = f"{uuid.uuid4().hex}{ext}"
    (UPLOAD_DIR / name).write_bytes(contents)
    logger.info("Stored upload %s (%d bytes)", name, len(contents))

    url = str(request.url_for("uploads", path=name))
    return {"url": url, "filename": name}

@app.post("/api/process-document")
async def process_document(file: UploadFile = File(...), _user=Depends(verify_token)):
    if pathlib.Path(file.filename or "").suffix.lower() != ".docx":
        raise ValidationFailed.for_field("file", "Only .docx documents are supported")

    contents = await file.read()
    if len(contents) > MAX_DOCUMENT_SIZE:
        raise ValidationFailed.for_field("file", "File too large (max 20 MB)")

    content = await run_in_threadpool(documents.convert_document, contents, UPLOAD_DIR)
    return {"success": True, "content": content}


if __name__ == "__main__":
    uvicorn.run("app:app", host="0.0.0.0", port=config.PORT)
