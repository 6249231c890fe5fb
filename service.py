"""
Single-record operations on projects and blog posts.

Payloads are validated before the store is touched; create, update and
delete each issue one write.
"""
import logging
from typing import Any, Dict, Mapping, Optional

import codec
from codec import DecodePolicy
from errors import NotFound, ValidationFailed, storage_errors
from models import Project, BlogPost
from reconcile import project_create_data, project_update_data, post_create_data, post_update_data

logger = logging.getLogger(__name__)


def _project(record: Dict[str, Any], policy) -> Dict[str, Any]:
    return codec.decode_fields(record, Project.array_fields, policy)


def _post(record: Dict[str, Any], policy) -> Dict[str, Any]:
    return codec.decode_fields(record, BlogPost.array_fields, policy)


# ---------- Projects ----------
def get_project(store, project_id: str, policy=DecodePolicy.LENIENT):
    with storage_errors("Failed to fetch project"):
        record = store.find_unique(project_id)
        if not record: raise NotFound("Project not found")
        return _project(record, policy)


def create_project(store, payload: Mapping[str, Any], policy=DecodePolicy.LENIENT):
    data = project_create_data(payload)
    with storage_errors("Failed to create project"):
        record = store.create(data)
        logger.info("Created project %s (%s)", record["id"], record["title"])
        return _project(record, policy)


def update_project(store, project_id: str, payload: Mapping[str, Any], policy=DecodePolicy.LENIENT):
    data = project_update_data(payload)
    with storage_errors("Failed to update project"):
        record = store.update(project_id, data)
        if not record: raise NotFound("Project not found")
        logger.info("Updated project %s: %s", project_id, sorted(data))
        return _project(record, policy)


def delete_project(store, project_id: str) -> None:
    with storage_errors("Failed to delete project"):
        if not store.delete(project_id): raise NotFound("Project not found")
    logger.info("Deleted project %s", project_id)


# ---------- Blog ----------
def get_post(store, post_id: str, policy=DecodePolicy.LENIENT):
    with storage_errors("Failed to fetch blog post"):
        record = store.find_unique(post_id)
        if not record: raise NotFound("Blog post not found")
        return _post(record, policy)


def get_post_by_slug(store, slug: str, policy=DecodePolicy.LENIENT):
    """Published post with this slug."""
    with storage_errors("Failed to fetch blog post"):
        found = store.find_many(where={"slug": slug, "published": True}, take=1)
        if not found: raise NotFound("Blog post not found")
        return _post(found[0], policy)


def _check_slug_free(store, slug: str, post_id: Optional[str] = None) -> None:
    taken = store.find_many(where={"slug": slug}, take=1)
    if taken and taken[0]["id"] != post_id:
        raise ValidationFailed.for_field("title", f'A post with slug "{slug}" already exists')


def create_post(store, payload: Mapping[str, Any], policy=DecodePolicy.LENIENT):
    data = post_create_data(payload)
    with storage_errors("Failed to create blog post"):
        _check_slug_free(store, data["slug"])
        record = store.create(data)
        logger.info("Created blog post %s (%s)", record["id"], record["slug"])
        return _post(record, policy)


def _update_post(store, post_id: str, data: Dict[str, Any], policy):
    with storage_errors("Failed to update blog post"):
        if "slug" in data:
            _check_slug_free(store, data["slug"], post_id)
        record = store.update(post_id, data)
        if not record: raise NotFound("Blog post not found")
        logger.info("Updated blog post %s: %s", post_id, sorted(data))
        return _post(record, policy)


def update_post(store, post_id: str, payload: Mapping[str, Any], policy=DecodePolicy.LENIENT):
    return _update_post(store, post_id, post_update_data(payload), policy)


def replace_post(store, post_id: str, payload: Mapping[str, Any], policy=DecodePolicy.LENIENT):
    """Full update: the payload must satisfy the create schema."""
    return _update_post(store, post_id, post_create_data(payload), policy)


def delete_post(store, post_id: str) -> None:
    with storage_errors("Failed to delete blog post"):
        if not store.delete(post_id): raise NotFound("Blog post not found")
    logger.info("Deleted blog post %s", post_id)
