from datetime import datetime
from typing import List, Literal, Optional, Union

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator
from pydantic.alias_generators import to_camel

import codec

PRIORITIES = ("High", "Medium", "Low")

Category = Literal["Web Application", "Mobile App", "Website", "Dashboard"]
Difficulty = Literal["Beginner", "Intermediate", "Advanced"]
Priority = Literal["High", "Medium", "Low"]

# Either a list of strings or its already-encoded JSON text
StrArray = Union[List[str], str]

_url = TypeAdapter(AnyUrl)


class CamelModel(BaseModel):
    """Wire names are camelCase; snake_case is accepted too."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def not_blank(v):
    if v is not None and not v.strip():
        raise ValueError("must not be empty")
    return v


def not_null(v):
    if v is None:
        raise ValueError("may not be null")
    return v


def encoded_array(v):
    if isinstance(v, str):
        try:
            codec.decode(v, codec.DecodePolicy.STRICT)
        except codec.CorruptArrayField:
            raise ValueError("must be a list of strings or a JSON array of strings")
    return v


def url_or_empty(v):
    if not v:
        return v
    try:
        _url.validate_python(v)
    except ValidationError:
        raise ValueError("Must be a valid URL or empty")
    return v


# ---------- Projects ----------
class ProjectIn(CamelModel):
    title: str
    description: str
    long_description: Optional[str] = None
    category: Category
    technologies: Optional[StrArray] = []
    features: Optional[StrArray] = []
    image_url: Optional[str] = None
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    published: bool = False
    featured: bool = False
    order: int = 0
    difficulty: Difficulty = "Intermediate"

    check_not_blank = field_validator("title", "description")(not_blank)
    check_arrays = field_validator("technologies", "features")(encoded_array)


class ProjectPatch(CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    long_description: Optional[str] = None
    category: Optional[Category] = None
    technologies: Optional[StrArray] = None
    features: Optional[StrArray] = None
    image_url: Optional[str] = None
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    published: Optional[bool] = None
    featured: Optional[bool] = None
    order: Optional[int] = None
    difficulty: Optional[Difficulty] = None

    check_not_null = field_validator("title", "description", "category",
                                      "published", "featured", "order")(not_null)
    check_not_blank = field_validator("title", "description")(not_blank)
    check_arrays = field_validator("technologies", "features")(encoded_array)


class ProjectOut(CamelModel):
    id: str
    title: str
    description: str
    long_description: Optional[str] = None
    category: str
    technologies: List[str]
    features: List[str]
    image_url: Optional[str] = None
    live_url: Optional[str] = None
    github_url: Optional[str] = None
    published: bool
    featured: bool
    order: int
    difficulty: Optional[str] = None
    created_at: datetime
    updated_at: datetime


# ---------- Blog ----------
class BlogPostIn(CamelModel):
    title: str
    content: str
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    published: bool = False
    author: str = "Admin"
    tags: Optional[StrArray] = []
    read_time: Optional[int] = Field(None, ge=1)
    priority: Priority = "Medium"
    is_trending: bool = False
    view_count: int = Field(0, ge=0)
    likes: int = Field(0, ge=0)

    check_not_blank = field_validator("title", "content")(not_blank)
    check_image_url = field_validator("image_url")(url_or_empty)
    check_tags = field_validator("tags")(encoded_array)


class BlogPostPatch(CamelModel):
    title: Optional[str] = None
    content: Optional[str] = None
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    published: Optional[bool] = None
    author: Optional[str] = None
    tags: Optional[StrArray] = None
    read_time: Optional[int] = Field(None, ge=1)
    priority: Optional[Priority] = None
    is_trending: Optional[bool] = None
    view_count: Optional[int] = Field(None, ge=0)
    likes: Optional[int] = Field(None, ge=0)

    check_not_null = field_validator("title", "content", "published", "author", "priority",
                                      "is_trending", "view_count", "likes")(not_null)
    check_not_blank = field_validator("title", "content")(not_blank)
    check_image_url = field_validator("image_url")(url_or_empty)
    check_tags = field_validator("tags")(encoded_array)


class BlogPostOut(CamelModel):
    id: str
    title: str
    slug: str
    content: str
    excerpt: Optional[str] = None
    image_url: Optional[str] = None
    published: bool
    author: str
    tags: List[str]
    read_time: Optional[int] = None
    priority: str
    view_count: int
    likes: int
    is_trending: bool
    created_at: datetime
    updated_at: datetime


class PriorityPostsOut(BaseModel):
    priority: str
    count: int
    posts: List[BlogPostOut]


class TrendingPostsOut(BaseModel):
    count: int
    posts: List[BlogPostOut]


# ---------- Auth ----------
class LoginIn(BaseModel):
    password: str


class TokenOut(BaseModel):
    token: str
