# modelshelf/catalog/store.py
"""SQLAlchemy-backed catalog store.

Typed CRUD and filtered/paginated queries over models, files and collections.
Every method opens its own short-lived session, so the async pipeline can call
them from worker threads via :meth:`CatalogStore.run`.
"""

import logging
import math
import re
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, List, Optional, Tuple, TypeVar

import anyio
from sqlalchemy import func, or_, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from modelshelf.database import Base, create_catalog_engine, create_session_factory
from modelshelf.errors import CatalogError
from modelshelf.models.catalog import Collection, FileEntry, ModelCollection, ModelEntry
from modelshelf.models.pack import PackMetadata

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Page:
    """Result of a paginated model query. ``page`` is 0-based."""

    items: List[ModelEntry] = field(default_factory=list)
    total_items: int = 0
    page: int = 0
    page_size: int = 50
    num_pages: int = 0


class CatalogStore:
    """Persistent catalog of models and their files."""

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = create_session_factory(engine)
        self._limiter: Optional[anyio.CapacityLimiter] = None

    @classmethod
    def from_url(cls, database_url: str) -> "CatalogStore":
        return cls(create_catalog_engine(database_url))

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Session that commits on success and maps driver errors to CatalogError."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as e:
            session.rollback()
            raise CatalogError(f"Catalog operation failed: {e}") from e
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @property
    def limiter(self) -> anyio.CapacityLimiter:
        """Single-token limiter so SQLite sees one writer thread at a time."""
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(1)
        return self._limiter

    async def run(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking store method in a worker thread."""
        return await anyio.to_thread.run_sync(fn, *args, limiter=self.limiter)

    def create_all(self) -> None:
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            raise CatalogError(f"Could not create catalog schema: {e}") from e

    def dispose(self) -> None:
        self.engine.dispose()

    # -------------------------------------------------------------------------
    # Models
    # -------------------------------------------------------------------------

    def list_models(self) -> List[ModelEntry]:
        with self.session_scope() as session:
            return list(session.scalars(select(ModelEntry).order_by(ModelEntry.folder_path)))

    def get_model(self, model_id: int) -> Optional[ModelEntry]:
        with self.session_scope() as session:
            return session.get(ModelEntry, model_id)

    def get_model_by_folder(self, folder_path: str) -> Optional[ModelEntry]:
        with self.session_scope() as session:
            return session.scalar(select(ModelEntry).where(ModelEntry.folder_path == folder_path))

    def get_model_by_slug(self, slug: str) -> Optional[ModelEntry]:
        with self.session_scope() as session:
            return session.scalar(select(ModelEntry).where(ModelEntry.slug == slug))

    def upsert_model(self, metadata: PackMetadata) -> Tuple[ModelEntry, bool]:
        """
        Insert or update the row for ``metadata.folder_path``.

        Updates every column except id, date_added and favourite.

        Returns:
            Tuple of (row, created)
        """
        with self.session_scope() as session:
            existing = session.scalar(
                select(ModelEntry).where(ModelEntry.folder_path == metadata.folder_path)
            )
            values = metadata.row_values()

            if existing is not None and _slug_matches_base(existing.slug, metadata.slug):
                values["slug"] = existing.slug
            else:
                values["slug"] = _unique_slug(
                    session, metadata.slug, exclude_id=existing.id if existing else None
                )

            if existing is None:
                row = ModelEntry(**values, favourite=False)
                session.add(row)
                session.flush()
                return row, True

            for key, value in values.items():
                setattr(existing, key, value)
            return existing, False

    def delete_model(self, model_id: int) -> bool:
        """Delete a model; its files and memberships cascade."""
        with self.session_scope() as session:
            row = session.get(ModelEntry, model_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def delete_model_by_folder(self, folder_path: str) -> bool:
        with self.session_scope() as session:
            row = session.scalar(select(ModelEntry).where(ModelEntry.folder_path == folder_path))
            if row is None:
                return False
            session.delete(row)
            return True

    def delete_models_not_in(self, folder_paths: Iterable[str]) -> List[str]:
        """
        Delete every model whose folder is not in ``folder_paths``.

        Returns:
            Folder paths of the deleted models
        """
        keep = set(folder_paths)
        removed = []
        with self.session_scope() as session:
            for row in session.scalars(select(ModelEntry)).all():
                if row.folder_path not in keep:
                    removed.append(row.folder_path)
                    session.delete(row)
        return removed

    def set_favourite(self, model_id: int, favourite: bool) -> Optional[ModelEntry]:
        with self.session_scope() as session:
            row = session.get(ModelEntry, model_id)
            if row is None:
                return None
            row.favourite = favourite
            return row

    def query_models(
        self,
        q: Optional[str] = None,
        favourite: Optional[bool] = None,
        page: int = 0,
        page_size: int = 50,
    ) -> Page:
        """
        Filter models by a case-insensitive search term and favourite flag.

        The term matches title, author or description substrings.
        """
        page = max(page, 0)
        page_size = max(page_size, 1)

        conditions = []
        if q and q.strip():
            pattern = f"%{_escape_like(q.strip().lower())}%"
            conditions.append(
                or_(
                    func.lower(ModelEntry.title).like(pattern, escape="\\"),
                    func.lower(ModelEntry.author).like(pattern, escape="\\"),
                    func.lower(ModelEntry.description).like(pattern, escape="\\"),
                )
            )
        if favourite is not None:
            conditions.append(ModelEntry.favourite == favourite)

        with self.session_scope() as session:
            total = session.scalar(select(func.count(ModelEntry.id)).where(*conditions)) or 0
            items = list(
                session.scalars(
                    select(ModelEntry)
                    .where(*conditions)
                    .order_by(ModelEntry.title, ModelEntry.id)
                    .offset(page * page_size)
                    .limit(page_size)
                )
            )

        return Page(
            items=items,
            total_items=total,
            page=page,
            page_size=page_size,
            num_pages=math.ceil(total / page_size) if total else 0,
        )

    # -------------------------------------------------------------------------
    # Files
    # -------------------------------------------------------------------------

    def list_files(self, model_id: int) -> List[FileEntry]:
        with self.session_scope() as session:
            return list(
                session.scalars(
                    select(FileEntry)
                    .where(FileEntry.model_id == model_id)
                    .order_by(FileEntry.file_path)
                )
            )

    def insert_file(
        self,
        model_id: int,
        file_path: str,
        content_hash: Optional[str],
        file_size_bytes: int,
        preview_image: Optional[str] = None,
    ) -> FileEntry:
        """Insert a file row. An existing row for the same path is returned as-is."""
        try:
            with self.session_scope() as session:
                row = FileEntry(
                    model_id=model_id,
                    file_path=file_path,
                    content_hash=content_hash,
                    file_size_bytes=file_size_bytes,
                    preview_image=preview_image,
                )
                session.add(row)
                session.flush()
                return row
        except CatalogError as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise

        with self.session_scope() as session:
            existing = session.scalar(
                select(FileEntry).where(
                    FileEntry.model_id == model_id, FileEntry.file_path == file_path
                )
            )
        if existing is None:
            # Model row vanished underneath us
            raise CatalogError(f"Cannot add {file_path}: model {model_id} no longer exists")
        return existing

    def delete_file(self, file_id: int) -> bool:
        with self.session_scope() as session:
            row = session.get(FileEntry, file_id)
            if row is None:
                return False
            session.delete(row)
            return True

    def referenced_previews(self) -> set[str]:
        """Cache filenames referenced by at least one live file row."""
        with self.session_scope() as session:
            return set(
                session.scalars(
                    select(FileEntry.preview_image)
                    .where(FileEntry.preview_image.is_not(None))
                    .distinct()
                )
            )

    def count_files(self) -> int:
        with self.session_scope() as session:
            return session.scalar(select(func.count(FileEntry.id))) or 0

    # -------------------------------------------------------------------------
    # Collections
    # -------------------------------------------------------------------------

    def create_collection(self, name: str) -> Collection:
        with self.session_scope() as session:
            row = Collection(name=name)
            session.add(row)
            session.flush()
            return row

    def list_collections(self) -> List[Collection]:
        with self.session_scope() as session:
            return list(session.scalars(select(Collection).order_by(Collection.name)))

    def get_collection(self, collection_id: int) -> Optional[Collection]:
        with self.session_scope() as session:
            return session.get(Collection, collection_id)

    def rename_collection(self, collection_id: int, name: str) -> Optional[Collection]:
        with self.session_scope() as session:
            row = session.get(Collection, collection_id)
            if row is None:
                return None
            row.name = name
            return row

    def collection_sizes(self) -> Dict[int, int]:
        """Number of member models per collection id. Empty collections are absent."""
        with self.session_scope() as session:
            rows = session.execute(
                select(ModelCollection.collection_id, func.count(ModelCollection.id)).group_by(
                    ModelCollection.collection_id
                )
            )
            return {collection_id: count for collection_id, count in rows}

    def add_to_collection(self, collection_id: int, model_id: int) -> bool:
        """Add a model to a collection. Returns False if it was already a member."""
        with self.session_scope() as session:
            exists = session.scalar(
                select(ModelCollection).where(
                    ModelCollection.collection_id == collection_id,
                    ModelCollection.model_id == model_id,
                )
            )
            if exists is not None:
                return False
            session.add(ModelCollection(collection_id=collection_id, model_id=model_id))
            return True

    def remove_from_collection(self, collection_id: int, model_id: int) -> bool:
        """Remove a model from a collection. Returns False if it was not a member."""
        with self.session_scope() as session:
            row = session.scalar(
                select(ModelCollection).where(
                    ModelCollection.collection_id == collection_id,
                    ModelCollection.model_id == model_id,
                )
            )
            if row is None:
                return False
            session.delete(row)
            return True

    def collection_models(self, collection_id: int) -> List[ModelEntry]:
        with self.session_scope() as session:
            return list(
                session.scalars(
                    select(ModelEntry)
                    .join(ModelCollection, ModelCollection.model_id == ModelEntry.id)
                    .where(ModelCollection.collection_id == collection_id)
                    .order_by(ModelEntry.title)
                )
            )

    def model_collections(self, model_id: int) -> List[Collection]:
        """Collections the model belongs to, by name."""
        with self.session_scope() as session:
            return list(
                session.scalars(
                    select(Collection)
                    .join(ModelCollection, ModelCollection.collection_id == Collection.id)
                    .where(ModelCollection.model_id == model_id)
                    .order_by(Collection.name)
                )
            )

    def delete_collection(self, collection_id: int) -> bool:
        with self.session_scope() as session:
            row = session.get(Collection, collection_id)
            if row is None:
                return False
            session.delete(row)
            return True


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _slug_matches_base(slug: str, base: str) -> bool:
    """True if ``slug`` is ``base`` or ``base`` with a numeric collision suffix."""
    return slug == base or re.fullmatch(re.escape(base) + r"-\d+", slug) is not None


def _unique_slug(session: Session, base: str, exclude_id: Optional[int] = None) -> str:
    """``base``, or ``base-2``, ``base-3``... whichever is free."""
    query = select(ModelEntry.slug).where(
        or_(ModelEntry.slug == base, ModelEntry.slug.like(f"{_escape_like(base)}-%", escape="\\"))
    )
    if exclude_id is not None:
        query = query.where(ModelEntry.id != exclude_id)
    taken = set(session.scalars(query))

    if base not in taken:
        return base
    suffix = 2
    while f"{base}-{suffix}" in taken:
        suffix += 1
    return f"{base}-{suffix}"
