import uuid
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy import String, Text, Integer, Boolean, DateTime

class Base(DeclarativeBase): pass

def new_id() -> str:
    return uuid.uuid4().hex

class Project(Base):
    __tablename__ = "projects"
    array_fields = ("technologies", "features")

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200))
    description: Mapped[str] = mapped_column(Text)
    long_description: Mapped[Optional[str]] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(50))
    technologies: Mapped[Optional[str]] = mapped_column(Text)   # JSON array
    features: Mapped[Optional[str]] = mapped_column(Text)       # JSON array
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    live_url: Mapped[Optional[str]] = mapped_column(String(500))
    github_url: Mapped[Optional[str]] = mapped_column(String(500))
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    featured: Mapped[bool] = mapped_column(Boolean, default=False)
    order: Mapped[int] = mapped_column(Integer, default=0)
    difficulty: Mapped[Optional[str]] = mapped_column(String(20), default="Intermediate")
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

class BlogPost(Base):
    __tablename__ = "blog_posts"
    array_fields = ("tags",)

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(200))
    slug: Mapped[str] = mapped_column(String(200), unique=True, index=True)
    content: Mapped[str] = mapped_column(Text)
    excerpt: Mapped[Optional[str]] = mapped_column(Text)
    image_url: Mapped[Optional[str]] = mapped_column(String(500))
    published: Mapped[bool] = mapped_column(Boolean, default=False, index=True)
    author: Mapped[str] = mapped_column(String(100), default="Admin")
    tags: Mapped[Optional[str]] = mapped_column(Text)           # JSON array
    read_time: Mapped[Optional[int]] = mapped_column(Integer)
    priority: Mapped[str] = mapped_column(String(10), default="Medium")  # High/Medium/Low
    view_count: Mapped[int] = mapped_column(Integer, default=0)
    likes: Mapped[int] = mapped_column(Integer, default=0)
    is_trending: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
