from __future__ import annotations

from collections.abc import Callable
from datetime import date
import itertools

import pytest

from models import Member, RawRelation, RelationKind


@pytest.fixture()
def fixed_today() -> date:
    # Keep age-based suggestions deterministic.
    return date(2026, 1, 20)


@pytest.fixture()
def member() -> Callable[..., Member]:
    def _member(member_id: str, born: str | None = None, **kwargs) -> Member:
        return Member(
            id=member_id,
            first_name=kwargs.pop("first_name", member_id),
            last_name=kwargs.pop("last_name", "Test"),
            birth_date=born,
            **kwargs,
        )

    return _member


@pytest.fixture()
def edges() -> Callable[..., list[RawRelation]]:
    """Build stored edges from (source, kind, target) triples, optionally with inverses."""

    def _edges(*triples: tuple[str, str, str], inverse: bool = True) -> list[RawRelation]:
        ids = itertools.count(1)
        out = []
        for source, kind, target in triples:
            k = RelationKind(kind)
            out.append(RawRelation(f"r{next(ids)}", source, target, k))
            if inverse:
                out.append(RawRelation(f"r{next(ids)}", target, source, k.inverse()))
        return out

    return _edges
