"""Shared test fixtures for sqla-abilities tests."""

from __future__ import annotations

import pytest
from sqlalchemy import Boolean, Column, ForeignKey, Integer, String, Table, create_engine
from sqlalchemy.orm import (
    DeclarativeBase,
    Mapped,
    Session,
    mapped_column,
    relationship,
    sessionmaker,
)

from sqla_abilities import AccessibleMixin
from sqla_abilities.proxy import ProxyRegistry

# ---------------------------------------------------------------------------
# Test models
# ---------------------------------------------------------------------------


class Base(DeclarativeBase):
    pass


class Organization(AccessibleMixin, Base):
    __tablename__ = "organizations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))

    users: Mapped[list[User]] = relationship("User", back_populates="organization")


class User(AccessibleMixin, Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    manager_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    self_managed: Mapped[bool] = mapped_column(Boolean, default=False)
    banned: Mapped[bool] = mapped_column(Boolean, default=False)
    org_id: Mapped[int | None] = mapped_column(ForeignKey("organizations.id"), nullable=True)

    organization: Mapped[Organization | None] = relationship(
        "Organization", back_populates="users"
    )
    posts: Mapped[list[Post]] = relationship("Post", back_populates="author")


post_tags = Table(
    "post_tags",
    Base.metadata,
    Column("post_id", Integer, ForeignKey("posts.id"), primary_key=True),
    Column("tag_id", Integer, ForeignKey("tags.id"), primary_key=True),
)


class Post(AccessibleMixin, Base):
    __tablename__ = "posts"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200))
    is_published: Mapped[bool] = mapped_column(Boolean, default=False)
    author_id: Mapped[int] = mapped_column(ForeignKey("users.id"))

    author: Mapped[User] = relationship("User", back_populates="posts")
    comments: Mapped[list[Comment]] = relationship("Comment", back_populates="post")
    tags: Mapped[list[Tag]] = relationship("Tag", secondary=post_tags, back_populates="posts")


class Comment(AccessibleMixin, Base):
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    body: Mapped[str] = mapped_column(String(200))
    approved: Mapped[bool] = mapped_column(Boolean, default=False)
    post_id: Mapped[int] = mapped_column(ForeignKey("posts.id"))

    post: Mapped[Post] = relationship("Post", back_populates="comments")


class Tag(AccessibleMixin, Base):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50))
    visibility: Mapped[str] = mapped_column(String(20), default="public")

    posts: Mapped[list[Post]] = relationship("Post", secondary=post_tags, back_populates="tags")


class Activity(AccessibleMixin, Base):
    """Polymorphic proxy: each row tracks a Post, a Comment or a User."""

    __tablename__ = "activities"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    key: Mapped[str] = mapped_column(String(50))
    trackable_type: Mapped[str] = mapped_column(String(50))
    trackable_id: Mapped[int] = mapped_column(Integer)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def engine():
    """Create an in-memory SQLite engine with all tables."""
    eng = create_engine("sqlite:///:memory:", echo=False)
    Base.metadata.create_all(eng)
    return eng


@pytest.fixture()
def session(engine):
    """Provide a transactional session that rolls back after each test."""
    factory = sessionmaker(bind=engine)
    sess = factory()
    try:
        yield sess
    finally:
        sess.rollback()
        sess.close()


@pytest.fixture()
def proxies() -> ProxyRegistry:
    """A proxy registry with Activity configured on ``trackable``."""
    registry = ProxyRegistry()
    registry.configure(Activity, "trackable")
    return registry


@pytest.fixture()
def sample_data(session: Session) -> dict[str, list]:
    """Seed the database with sample data for testing.

    Users: 1 alice (org 1), 2 bob (managed by 1, banned),
    3 carol (managed by 1, self managed), 4 dave (managed by 2).
    Posts: 1 published by alice, 2 draft by alice, 3 published by bob.
    Comments: 1 approved on post 1, 2 pending on post 2, 3 approved on post 3.
    Activities: 1-2 on posts 1-2, 3-4 on comments 1-2, 5 on user 1.
    """
    org = Organization(id=1, name="Acme Corp")
    session.add(org)

    alice = User(id=1, name="Alice", org_id=1)
    bob = User(id=2, name="Bob", manager_id=1, banned=True, org_id=1)
    carol = User(id=3, name="Carol", manager_id=1, self_managed=True)
    dave = User(id=4, name="Dave", manager_id=2)
    session.add_all([alice, bob, carol, dave])

    tag_public = Tag(id=1, name="python", visibility="public")
    tag_private = Tag(id=2, name="internal", visibility="private")
    session.add_all([tag_public, tag_private])

    post1 = Post(id=1, title="Public Post", is_published=True, author_id=1)
    post2 = Post(id=2, title="Draft Post", is_published=False, author_id=1)
    post3 = Post(id=3, title="Bob's Post", is_published=True, author_id=2)
    post1.tags.append(tag_public)
    post2.tags.append(tag_private)
    session.add_all([post1, post2, post3])

    comment1 = Comment(id=1, body="Nice", approved=True, post_id=1)
    comment2 = Comment(id=2, body="Spam", approved=False, post_id=2)
    comment3 = Comment(id=3, body="Agreed", approved=True, post_id=3)
    session.add_all([comment1, comment2, comment3])

    activities = [
        Activity(id=1, key="post.create", trackable_type="Post", trackable_id=1),
        Activity(id=2, key="post.create", trackable_type="Post", trackable_id=2),
        Activity(id=3, key="comment.create", trackable_type="Comment", trackable_id=1),
        Activity(id=4, key="comment.create", trackable_type="Comment", trackable_id=2),
        Activity(id=5, key="user.login", trackable_type="User", trackable_id=1),
    ]
    session.add_all(activities)

    session.flush()
    return {
        "users": [alice, bob, carol, dave],
        "posts": [post1, post2, post3],
        "comments": [comment1, comment2, comment3],
        "tags": [tag_public, tag_private],
        "activities": activities,
        "organizations": [org],
    }


def ids(session: Session, stmt) -> set[int]:
    """Execute *stmt* and return the primary keys of the returned rows."""
    return {row.id for row in session.execute(stmt).scalars().all()}
