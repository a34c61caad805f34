# modelshelf/models/catalog.py
"""Catalog rows: models, their files, and user collections."""

from datetime import UTC, datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from modelshelf.database import Base


class ModelEntry(Base):
    """One catalogued model pack, keyed by its folder relative to the library root."""

    __tablename__ = "models"

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(500), nullable=False)
    slug = Column(String(500), nullable=False, unique=True, index=True)
    license = Column(String(255), nullable=True)
    author = Column(String(255), nullable=True)
    origin = Column(Text, nullable=True)
    folder_path = Column(Text, nullable=False, unique=True, index=True)
    images = Column(JSON, nullable=False, default=list)
    description = Column(Text, nullable=False, default="")
    favourite = Column(Boolean, nullable=False, default=False)
    date_added = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    files = relationship(
        "FileEntry",
        back_populates="model",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    memberships = relationship(
        "ModelCollection",
        back_populates="model",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class FileEntry(Base):
    """A file under a pack's ``files/`` tree. Never updated in place."""

    __tablename__ = "files"
    __table_args__ = (UniqueConstraint("model_id", "file_path", name="uq_files_model_path"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    model_id = Column(Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=False, index=True)
    file_path = Column(Text, nullable=False)
    preview_image = Column(String(255), nullable=True, index=True)
    content_hash = Column(String(64), nullable=True)
    file_size_bytes = Column(Integer, nullable=False, default=0)
    date_added = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    model = relationship("ModelEntry", back_populates="files")


class Collection(Base):
    __tablename__ = "collections"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    date_added = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    memberships = relationship(
        "ModelCollection",
        back_populates="collection",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class ModelCollection(Base):
    __tablename__ = "model_collections"
    __table_args__ = (UniqueConstraint("model_id", "collection_id", name="uq_model_collection"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    model_id = Column(Integer, ForeignKey("models.id", ondelete="CASCADE"), nullable=False, index=True)
    collection_id = Column(
        Integer, ForeignKey("collections.id", ondelete="CASCADE"), nullable=False, index=True
    )
    date_added = Column(DateTime(timezone=True), default=lambda: datetime.now(UTC))

    model = relationship("ModelEntry", back_populates="memberships")
    collection = relationship("Collection", back_populates="memberships")
