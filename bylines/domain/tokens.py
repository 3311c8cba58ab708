"""Jetons d'auteur reçus lors de la sauvegarde d'un contenu.

Un jeton est soit l'id numérique d'une byline existante (`42` ou `"42"`), soit un marqueur
utilisateur `u<user_id>` demandant de réutiliser ou créer la byline liée à ce compte.
Les jetons sont consommés une seule fois par requête et ne sont jamais persistés.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_USER_PREFIX = "u"
_DIGITS_RE = re.compile(r"^[0-9]+$")

TokenKind = Literal["byline", "user"]


@dataclass(frozen=True)
class AuthorshipToken:
    """Instruction de résolution d'une entrée d'auteur."""

    kind: TokenKind
    value: int
    raw: Any = None

    @property
    def is_user_marker(self) -> bool:
        return self.kind == "user"


def parse_token(raw: Any, user_prefix: str = DEFAULT_USER_PREFIX) -> AuthorshipToken | None:
    """Interprète une entrée brute du payload.

    Retourne None si l'entrée n'est ni un id positif ni un marqueur utilisateur valide.
    """
    if isinstance(raw, bool):
        return None
    if isinstance(raw, int):
        return AuthorshipToken("byline", raw, raw) if raw > 0 else None
    if not isinstance(raw, str):
        return None
    value = raw.strip()
    if _DIGITS_RE.match(value):
        return AuthorshipToken("byline", int(value), raw) if int(value) > 0 else None
    if user_prefix and value.startswith(user_prefix):
        suffix = value[len(user_prefix) :]
        if _DIGITS_RE.match(suffix) and int(suffix) > 0:
            return AuthorshipToken("user", int(suffix), raw)
    return None


def user_token(user_id: int, user_prefix: str = DEFAULT_USER_PREFIX) -> str:
    """Compose le marqueur utilisateur pour `user_id` (format `u<id>`)."""
    return f"{user_prefix}{int(user_id)}"
