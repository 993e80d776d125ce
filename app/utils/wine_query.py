"""Construction de la liste paginée des vins (recherche, filtres, tri)."""

from __future__ import annotations

from dataclasses import dataclass, field
from math import ceil
from typing import Any, Mapping

from sqlalchemy import or_, select

from app.models import Review, TastingNote, Wine, db


SORTABLE_FIELDS = ("name", "category", "producer", "region", "vintage", "quantity", "created_at")
DESCENDING_BY_DEFAULT = {"created_at", "quantity", "vintage"}
DEFAULT_SORT = "name"
NON_VINTAGE = "NV"

# Filtres d'égalité stricte exposés aux abonnés pro
EQUALITY_FILTERS = ("category", "country", "region", "producer")


def _escape_like(value: str) -> str:
    return value.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


@dataclass
class WineListParams:
    """Paramètres de la liste, normalisés depuis la query string."""

    search: str = ""
    category: str = ""
    country: str = ""
    region: str = ""
    producer: str = ""
    vintage: str = ""
    sort: str = DEFAULT_SORT
    direction: str = "asc"
    page: int = 1

    @classmethod
    def from_args(cls, args: Mapping[str, Any]) -> "WineListParams":
        def text(name: str) -> str:
            return (args.get(name) or "").strip()

        sort = text("sort")
        if sort not in SORTABLE_FIELDS:
            sort = DEFAULT_SORT

        direction = text("direction").lower()
        if direction not in ("asc", "desc"):
            direction = "desc" if sort in DESCENDING_BY_DEFAULT else "asc"

        try:
            page = int(text("page") or 1)
        except ValueError:
            page = 1

        return cls(
            search=text("q"),
            category=text("category"),
            country=text("country"),
            region=text("region"),
            producer=text("producer"),
            vintage=text("vintage"),
            sort=sort,
            direction=direction,
            page=max(page, 1),
        )

    @property
    def has_filters(self) -> bool:
        return any(getattr(self, name) for name in EQUALITY_FILTERS) or bool(self.vintage)


@dataclass
class WinePage:
    wines: list[Wine]
    page: int
    total: int
    per_page: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = ceil(self.total / self.per_page) if self.per_page else 0

    @property
    def has_prev(self) -> bool:
        return self.page > 1

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def prev_page(self) -> int:
        return self.page - 1

    @property
    def next_page(self) -> int:
        return self.page + 1

    @property
    def pages(self) -> list[int]:
        return list(range(1, self.total_pages + 1))


def build_wine_query(user_id: int, params: WineListParams, *, is_pro: bool):
    """Retourne la requête filtrée (non triée) des vins de l'utilisateur.

    La recherche et les filtres ne s'appliquent qu'aux abonnés pro.
    """
    query = Wine.query.filter(Wine.user_id == user_id)
    if not is_pro:
        return query

    if params.search:
        pattern = f"%{_escape_like(params.search)}%"
        matching_ids = (
            select(Wine.id)
            .outerjoin(Review, Review.wine_id == Wine.id)
            .outerjoin(TastingNote, TastingNote.wine_id == Wine.id)
            .where(
                Wine.user_id == user_id,
                or_(
                    Wine.name.ilike(pattern, escape='\\'),
                    Wine.producer.ilike(pattern, escape='\\'),
                    Wine.region.ilike(pattern, escape='\\'),
                    Wine.category.ilike(pattern, escape='\\'),
                    Review.content.ilike(pattern, escape='\\'),
                    Review.reviewer.ilike(pattern, escape='\\'),
                    TastingNote.note.ilike(pattern, escape='\\'),
                ),
            )
            .distinct()
        )
        query = query.filter(Wine.id.in_(matching_ids))

    for name in EQUALITY_FILTERS:
        value = getattr(params, name)
        if value:
            query = query.filter(getattr(Wine, name) == value)

    if params.vintage == NON_VINTAGE:
        query = query.filter(Wine.is_non_vintage.is_(True))
    elif params.vintage:
        try:
            query = query.filter(Wine.vintage == int(params.vintage))
        except ValueError:
            pass

    return query


def fetch_wine_page(user, params: WineListParams, per_page: int) -> WinePage:
    """Exécute la requête de liste et renvoie la page demandée.

    Une page au-delà de la dernière est ramenée sur la dernière page
    (la première quand la cave est vide).
    """
    query = build_wine_query(user.id, params, is_pro=user.is_pro)
    total = query.count()

    page = WinePage(wines=[], page=params.page, total=total, per_page=per_page)
    page.page = min(page.page, page.total_pages or 1)

    column = getattr(Wine, params.sort)
    ordering = column.desc() if params.direction == "desc" else column.asc()
    page.wines = (
        query.order_by(ordering, Wine.id.asc())
        .limit(per_page)
        .offset((page.page - 1) * per_page)
        .all()
    )
    return page


def _distinct_values(user_id: int, column) -> list[str]:
    rows = (
        db.session.query(column)
        .filter(Wine.user_id == user_id, column.isnot(None), column != "")
        .distinct()
        .order_by(column.asc())
        .all()
    )
    return [row[0] for row in rows]


def filter_options(user_id: int) -> dict[str, Any]:
    """Valeurs proposées dans les listes déroulantes de filtres."""
    vintages = (
        db.session.query(Wine.vintage)
        .filter(Wine.user_id == user_id, Wine.vintage > 0)
        .distinct()
        .order_by(Wine.vintage.desc())
        .all()
    )
    has_nv = (
        Wine.query.filter(Wine.user_id == user_id, Wine.is_non_vintage.is_(True)).count() > 0
    )
    return {
        "categories": _distinct_values(user_id, Wine.category),
        "countries": _distinct_values(user_id, Wine.country),
        "regions": _distinct_values(user_id, Wine.region),
        "producers": _distinct_values(user_id, Wine.producer),
        "vintages": [row[0] for row in vintages],
        "has_nv": has_nv,
    }
