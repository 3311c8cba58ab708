"""SQLAlchemy models for persistence layer (bylines and their content relationships)."""

from __future__ import annotations

from sqlalchemy import (
    Column,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Classe de base pour tous les modèles SQLAlchemy."""

    metadata = MetaData()


class BylineORM(Base):
    """Modèle ORM pour les bylines (un enregistrement par identité d'auteur)."""

    __tablename__ = "bylines"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(200), nullable=False, unique=True)
    display_name = Column(String(250), nullable=True)
    first_name = Column(String(250), nullable=True)
    last_name = Column(String(250), nullable=True)
    bio = Column(Text, nullable=True)
    email = Column(String(320), nullable=True)
    url = Column(String(2048), nullable=True)
    # lien faible vers un compte: unique mais sans clé étrangère
    linked_user_id = Column(Integer, nullable=True, unique=True)


class BylineRelationshipORM(Base):
    """Relation ordonnée contenu -> byline; `position` conserve l'ordre et les doublons."""

    __tablename__ = "byline_relationships"

    content_item_id = Column(Integer, primary_key=True)
    position = Column(Integer, primary_key=True)
    byline_id = Column(Integer, ForeignKey("bylines.id", ondelete="CASCADE"), nullable=False)

    __table_args__ = (Index("ix_byline_relationships_byline_id", "byline_id"),)
