"""Initial catalog schema.

Revision ID: 001
Revises:
Create Date: 2026-10-17
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "models",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=500), nullable=False),
        sa.Column("slug", sa.String(length=500), nullable=False),
        sa.Column("license", sa.String(length=255), nullable=True),
        sa.Column("author", sa.String(length=255), nullable=True),
        sa.Column("origin", sa.Text(), nullable=True),
        sa.Column("folder_path", sa.Text(), nullable=False),
        sa.Column("images", sa.JSON(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("favourite", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_models_slug"), "models", ["slug"], unique=True)
    op.create_index(op.f("ix_models_folder_path"), "models", ["folder_path"], unique=True)

    op.create_table(
        "files",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("model_id", sa.Integer(), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("preview_image", sa.String(length=255), nullable=True),
        sa.Column("content_hash", sa.String(length=64), nullable=True),
        sa.Column("file_size_bytes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["model_id"], ["models.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("model_id", "file_path", name="uq_files_model_path"),
    )
    op.create_index(op.f("ix_files_model_id"), "files", ["model_id"], unique=False)
    op.create_index(op.f("ix_files_preview_image"), "files", ["preview_image"], unique=False)

    op.create_table(
        "collections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )

    op.create_table(
        "model_collections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("model_id", sa.Integer(), nullable=False),
        sa.Column("collection_id", sa.Integer(), nullable=False),
        sa.Column("date_added", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["model_id"], ["models.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["collection_id"], ["collections.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("model_id", "collection_id", name="uq_model_collection"),
    )
    op.create_index(op.f("ix_model_collections_model_id"), "model_collections", ["model_id"], unique=False)
    op.create_index(
        op.f("ix_model_collections_collection_id"), "model_collections", ["collection_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index(op.f("ix_model_collections_collection_id"), table_name="model_collections")
    op.drop_index(op.f("ix_model_collections_model_id"), table_name="model_collections")
    op.drop_table("model_collections")
    op.drop_table("collections")
    op.drop_index(op.f("ix_files_preview_image"), table_name="files")
    op.drop_index(op.f("ix_files_model_id"), table_name="files")
    op.drop_table("files")
    op.drop_index(op.f("ix_models_folder_path"), table_name="models")
    op.drop_index(op.f("ix_models_slug"), table_name="models")
    op.drop_table("models")
