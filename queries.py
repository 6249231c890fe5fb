"""
Listing queries for projects and blog posts.

Request parameters resolve to a QuerySpec (filter, sort, limit). Running a
spec always decodes the array fields of every returned record.
"""
import logging
import re
from typing import Any, Dict, List, Mapping, NamedTuple, Optional, Tuple

import codec
from codec import DecodePolicy
from errors import ValidationFailed, storage_errors
from models import Project, BlogPost
from schemas import PRIORITIES
from store import AtLeast

logger = logging.getLogger(__name__)

TRENDING_MIN_LIKES = 10
TRENDING_LIMIT = 10


class QuerySpec(NamedTuple):
    where: Dict[str, Any]
    order_by: List[Tuple[str, str]]
    take: Optional[int] = None


def _flag(params: Mapping[str, Any], name: str) -> Optional[bool]:
    value = params.get(name)
    if value is None:
        return None
    return value == "true"


def project_listing(params: Mapping[str, Any]) -> QuerySpec:
    where = {}
    for name in ("published", "featured"):
        flag = _flag(params, name)
        if flag is not None:
            where[name] = flag
    return QuerySpec(where, [("order", "asc"), ("created_at", "desc")])


def blog_listing(params: Mapping[str, Any]) -> QuerySpec:
    if params.get("admin") == "true":
        where = {}
    elif params.get("unpublished") == "true":
        where = {"published": False}
    elif params.get("published") == "false":
        where = {"published": False}
    else:
        where = {"published": True}
    return QuerySpec(where, [("created_at", "desc")])


def priority_listing(priority: str) -> QuerySpec:
    if priority not in PRIORITIES:
        raise ValidationFailed.for_field(
            "priority", f'Invalid priority: "{priority}". Must be High, Medium, or Low')
    return QuerySpec({"published": True, "priority": priority},
                     [("view_count", "desc"), ("created_at", "desc")])


_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def min_likes(params: Mapping[str, Any]) -> int:
    """Leading integer of minLikes ("15abc" -> 15, "10.5" -> 10), else the default."""
    raw = params.get("minLikes")
    match = _LEADING_INT.match("" if raw is None else str(raw))
    if match is None:
        return TRENDING_MIN_LIKES
    return int(match.group(1))


def trending_listing(params: Mapping[str, Any]) -> QuerySpec:
    where = {"published": True, "is_trending": True, "likes": AtLeast(min_likes(params))}
    return QuerySpec(where, [("likes", "desc"), ("view_count", "desc"), ("created_at", "desc")],
                     take=TRENDING_LIMIT)


def run(store, spec: QuerySpec, array_fields, policy: DecodePolicy = DecodePolicy.LENIENT) -> List[Dict[str, Any]]:
    records = store.find_many(where=spec.where, order_by=spec.order_by, take=spec.take)
    return [codec.decode_fields(r, array_fields, policy) for r in records]


def list_projects(store, params, policy=DecodePolicy.LENIENT):
    spec = project_listing(params)
    with storage_errors("Failed to fetch projects"):
        return run(store, spec, Project.array_fields, policy)


def list_posts(store, params, policy=DecodePolicy.LENIENT):
    spec = blog_listing(params)
    with storage_errors("Failed to fetch blog posts"):
        return run(store, spec, BlogPost.array_fields, policy)


def list_posts_by_priority(store, priority, policy=DecodePolicy.LENIENT):
    spec = priority_listing(priority)
    with storage_errors("Failed to fetch blog posts"):
        posts = run(store, spec, BlogPost.array_fields, policy)
    return {"priority": priority, "count": len(posts), "posts": posts}


def list_trending_posts(store, params, policy=DecodePolicy.LENIENT):
    spec = trending_listing(params)
    with storage_errors("Failed to fetch trending posts"):
        posts = run(store, spec, BlogPost.array_fields, policy)
    return {"count": len(posts), "posts": posts}
