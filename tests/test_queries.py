from unittest import mock

import pytest
from sqlalchemy.exc import SQLAlchemyError

import queries
from codec import DecodePolicy
from errors import StorageFailure, ValidationFailed
from store import AtLeast


# ---------- specs ----------
def test_project_listing_without_params_has_no_filter():
    spec = queries.project_listing({})
    assert spec.where == {}
    assert spec.order_by == [("order", "asc"), ("created_at", "desc")]
    assert spec.take is None


def test_project_listing_tri_state_flags():
    spec = queries.project_listing({"published": "true", "featured": "false"})
    assert spec.where == {"published": True, "featured": False}
    assert queries.project_listing({"published": None}).where == {}


@pytest.mark.parametrize("params, where", [
    ({}, {"published": True}),
    ({"admin": "true"}, {}),
    ({"admin": "true", "unpublished": "true"}, {}),
    ({"unpublished": "true", "published": "true"}, {"published": False}),
    ({"published": "false"}, {"published": False}),
    ({"published": "true"}, {"published": True}),
    ({"admin": "false"}, {"published": True}),
])
def test_blog_listing_precedence(params, where):
    spec = queries.blog_listing(params)
    assert spec.where == where
    assert spec.order_by == [("created_at", "desc")]


def test_priority_listing():
    spec = queries.priority_listing("High")
    assert spec.where == {"published": True, "priority": "High"}
    assert spec.order_by == [("view_count", "desc"), ("created_at", "desc")]


@pytest.mark.parametrize("priority", ["Urgent", "high", ""])
def test_priority_listing_rejects_unknown_values(priority):
    with pytest.raises(ValidationFailed) as exc_info:
        queries.priority_listing(priority)
    assert exc_info.value.details[0]["field"] == "priority"


@pytest.mark.parametrize("raw, expected", [
    (None, 10), ("abc", 10), ("", 10), ("25", 25), ("0", 0),
    ("10.5", 10), ("15abc", 15), (" 7", 7), ("-3", -3),
])
def test_min_likes(raw, expected):
    assert queries.min_likes({"minLikes": raw}) == expected


def test_trending_listing():
    spec = queries.trending_listing({})
    assert spec.where == {"published": True, "is_trending": True, "likes": AtLeast(10)}
    assert spec.order_by == [("likes", "desc"), ("view_count", "desc"), ("created_at", "desc")]
    assert spec.take == 10


# ---------- listings against the store ----------
def test_default_blog_listing_returns_published_newest_first(post_store, add_post):
    add_post(1)
    add_post(2, published=False)
    add_post(3)
    posts = queries.list_posts(post_store, {})
    assert [p["slug"] for p in posts] == ["post-3", "post-1"]
    assert posts[0]["tags"] == ["news"]


def test_admin_blog_listing_returns_everything(post_store, add_post):
    add_post(1)
    add_post(2, published=False)
    posts = queries.list_posts(post_store, {"admin": "true"})
    assert [p["slug"] for p in posts] == ["post-2", "post-1"]


def test_unpublished_blog_listing(post_store, add_post):
    add_post(1)
    add_post(2, published=False)
    assert [p["slug"] for p in queries.list_posts(post_store, {"unpublished": "true"})] == ["post-2"]


def test_project_listing_sorts_by_order_then_newest(project_store, add_project):
    add_project(1, order=2)
    add_project(2, order=1)
    add_project(3, order=1, published=True, technologies=None)
    projects = queries.list_projects(project_store, {})
    assert [p["title"] for p in projects] == ["Project 3", "Project 2", "Project 1"]
    assert projects[0]["technologies"] == []
    assert projects[1]["technologies"] == ["Python"]
    published = queries.list_projects(project_store, {"published": "true"})
    assert [p["title"] for p in published] == ["Project 3"]


def test_trending_uses_default_threshold(post_store, add_post):
    add_post(1, likes=5)
    add_post(2, likes=15, is_trending=True)
    add_post(3, likes=25, is_trending=True)
    result = queries.list_trending_posts(post_store, {})
    assert result["count"] == 2
    assert [p["likes"] for p in result["posts"]] == [25, 15]


def test_trending_excludes_untrending_and_drafts(post_store, add_post):
    add_post(1, likes=50)
    add_post(2, likes=50, is_trending=True, published=False)
    add_post(3, likes=12, is_trending=True)
    result = queries.list_trending_posts(post_store, {"minLikes": "11"})
    assert [p["slug"] for p in result["posts"]] == ["post-3"]


def test_trending_breaks_ties_and_caps_results(post_store, add_post):
    for n in range(12):
        add_post(n, likes=20, view_count=n % 3, is_trending=True)
    posts = queries.list_trending_posts(post_store, {})["posts"]
    assert len(posts) == 10
    keys = [(p["view_count"], p["created_at"]) for p in posts]
    assert keys == sorted(keys, reverse=True)


def test_priority_listing_orders_by_views(post_store, add_post):
    add_post(1, priority="High", view_count=5)
    add_post(2, priority="High", view_count=50)
    add_post(3, priority="Low", view_count=500)
    add_post(4, priority="High", view_count=500, published=False)
    result = queries.list_posts_by_priority(post_store, "High")
    assert result["priority"] == "High"
    assert result["count"] == 2
    assert [p["slug"] for p in result["posts"]] == ["post-2", "post-1"]


def test_invalid_priority_never_touches_storage():
    store = mock.Mock()
    with pytest.raises(ValidationFailed):
        queries.list_posts_by_priority(store, "Urgent")
    assert store.method_calls == []


def test_storage_errors_become_generic_failures():
    store = mock.Mock()
    store.find_many.side_effect = SQLAlchemyError("connection refused")
    with pytest.raises(StorageFailure) as exc_info:
        queries.list_projects(store, {})
    assert exc_info.value.message == "Failed to fetch projects"
    assert "connection refused" not in str(exc_info.value.to_dict())


def test_corrupt_tags_depend_on_policy(post_store, add_post):
    add_post(1, tags="[broken")
    assert queries.list_posts(post_store, {})[0]["tags"] == []
    with pytest.raises(StorageFailure):
        queries.list_posts(post_store, {}, DecodePolicy.STRICT)
