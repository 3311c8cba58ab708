# mypy: ignore-errors
"""
Migration Alembic pour créer les tables bylines et byline_relationships.

`bylines` porte les identités d'auteur (slug unique, lien utilisateur unique et optionnel);
`byline_relationships` porte la relation ordonnée contenu -> bylines.
"""

from __future__ import annotations

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    """Crée les tables bylines et byline_relationships."""
    op.create_table(
        "bylines",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("slug", sa.String(length=200), nullable=False),
        sa.Column("display_name", sa.String(length=250), nullable=True),
        sa.Column("first_name", sa.String(length=250), nullable=True),
        sa.Column("last_name", sa.String(length=250), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("url", sa.String(length=2048), nullable=True),
        sa.Column("linked_user_id", sa.Integer(), nullable=True),
        sa.UniqueConstraint("slug"),
        sa.UniqueConstraint("linked_user_id"),
    )
    op.create_table(
        "byline_relationships",
        sa.Column("content_item_id", sa.Integer(), primary_key=True),
        sa.Column("position", sa.Integer(), primary_key=True),
        sa.Column(
            "byline_id",
            sa.Integer(),
            sa.ForeignKey("bylines.id", ondelete="CASCADE"),
            nullable=False,
        ),
    )
    op.create_index(
        "ix_byline_relationships_byline_id", "byline_relationships", ["byline_id"]
    )


def downgrade() -> None:
    """Supprime les tables créées par upgrade."""
    op.drop_index("ix_byline_relationships_byline_id", table_name="byline_relationships")
    op.drop_table("byline_relationships")
    op.drop_table("bylines")
