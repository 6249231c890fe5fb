"""
Turn a caller-supplied payload into the column values to persist.

UI scratch fields are dropped, the payload is validated, array fields are
encoded and, for blog posts, slug and read time are derived.
"""
import re
import math
import logging
from typing import Any, Dict, Mapping, Type

from pydantic import BaseModel, ValidationError

import codec
from errors import MalformedRequestBody, ValidationFailed
from models import Project, BlogPost
from schemas import ProjectIn, ProjectPatch, BlogPostIn, BlogPostPatch

logger = logging.getLogger(__name__)

# "next item to add" inputs of the admin forms
UI_ONLY_FIELDS = ("techInput", "featureInput", "tagInput")

WORDS_PER_MINUTE = 200


def slugify(text: str) -> str:
    s = re.sub(r"[^a-z0-9]+", "-", (text or "").lower()).strip("-")
    return s or "post"


def read_time(content: str) -> int:
    return math.ceil(len(content.split()) / WORDS_PER_MINUTE)


def strip_ui_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedRequestBody("Request body must be a JSON object")
    return {k: v for k, v in payload.items() if k not in UI_ONLY_FIELDS}


def validate(schema: Type[BaseModel], payload: Mapping[str, Any]) -> BaseModel:
    try:
        return schema.model_validate(strip_ui_fields(payload))
    except ValidationError as exc:
        raise ValidationFailed.from_errors(exc.errors()) from None


def encode_arrays(data: Dict[str, Any], fields) -> Dict[str, Any]:
    """Encode the array fields present in `data`; an explicit None clears the column."""
    for field in fields:
        if field in data and data[field] is not None:
            data[field] = codec.encode(data[field])
    return data


# ---------- Projects ----------
def project_create_data(payload: Mapping[str, Any]) -> Dict[str, Any]:
    data = validate(ProjectIn, payload).model_dump()
    logger.debug("Project create payload: %r", data)
    return encode_arrays(data, Project.array_fields)


def project_update_data(payload: Mapping[str, Any]) -> Dict[str, Any]:
    data = validate(ProjectPatch, payload).model_dump(exclude_unset=True)
    logger.debug("Project update payload: %r", data)
    return encode_arrays(data, Project.array_fields)


# ---------- Blog ----------
def post_create_data(payload: Mapping[str, Any]) -> Dict[str, Any]:
    data = validate(BlogPostIn, payload).model_dump()
    data["slug"] = slugify(data["title"])
    if data["read_time"] is None:
        data["read_time"] = read_time(data["content"])
    return encode_arrays(data, BlogPost.array_fields)


def post_update_data(payload: Mapping[str, Any]) -> Dict[str, Any]:
    data = validate(BlogPostPatch, payload).model_dump(exclude_unset=True)
    if "title" in data:
        data["slug"] = slugify(data["title"])
    if "content" in data and data.get("read_time") is None:
        data["read_time"] = read_time(data["content"])
    return encode_arrays(data, BlogPost.array_fields)
