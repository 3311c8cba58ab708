"""Identifiants globaux opaques des noeuds GraphQL.

Format: base64 (URL-safe) de `"{type_name}:{id}"`. L'encodage est déterministe et réversible;
le décodage rejette les chaînes mal formées et, si demandé, un préfixe de type inattendu.
"""

from __future__ import annotations

import base64
import binascii
from typing import NamedTuple

from bylines.domain.errors import InvalidGlobalId


class ResolvedGlobalId(NamedTuple):
    type: str
    id: str


def to_global_id(type_name: str, node_id: int | str) -> str:
    """Encode `(type_name, node_id)` en identifiant opaque."""
    raw = f"{type_name}:{node_id}".encode()
    return base64.urlsafe_b64encode(raw).decode("ascii")


def from_global_id(global_id: str, expected_type: str | None = None) -> ResolvedGlobalId:
    """Décode un identifiant opaque.

    Lève InvalidGlobalId si la chaîne n'est pas décodable, ne contient pas de séparateur, ou si
    son type ne correspond pas à `expected_type`.
    """
    try:
        decoded = base64.urlsafe_b64decode(global_id.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError, ValueError, AttributeError) as err:
        raise InvalidGlobalId(f"malformed global id: {global_id!r}") from err
    type_name, sep, node_id = decoded.partition(":")
    if not sep or not type_name or not node_id:
        raise InvalidGlobalId(f"malformed global id: {global_id!r}")
    if expected_type is not None and type_name != expected_type:
        raise InvalidGlobalId(
            f"global id type {type_name!r} does not match {expected_type!r}",
            expected=expected_type,
            actual=type_name,
        )
    return ResolvedGlobalId(type_name, node_id)
