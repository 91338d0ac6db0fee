"""
Listing queries for every content collection.

Each collection is described once by an ``EntityQuery``: which text fields the
free-text ``search`` parameter looks at, which request parameters are exact
matches, which fields may be sorted on, and the constraint that the public
view always adds. ``build_filter`` and ``resolve_sort`` turn a flat map of
request parameters into a MongoDB filter document and a sort specification.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from pymongo import ASCENDING, DESCENDING

import database
from errors import Unauthorized

ALL = "all"

SortSpec = List[Tuple[str, int]]


class View(str, Enum):
    PUBLIC = "public"
    ADMIN = "admin"


@dataclass(frozen=True)
class EntityQuery:
    collection: str
    search_fields: Tuple[str, ...]
    # request parameter -> stored field, compared for equality
    equality: Mapping[str, str] = field(default_factory=dict)
    # sortBy value -> stored field
    sortable: Mapping[str, str] = field(default_factory=dict)
    default_sort: Tuple[Tuple[str, int], ...] = (("created_at", DESCENDING),)
    public_default_sort: Optional[Tuple[Tuple[str, int], ...]] = None
    # always ANDed in for the public view, never taken from the request
    public_constraint: Mapping[str, Any] = field(default_factory=dict)
    admin_only_fields: Tuple[str, ...] = ()

    def default_for(self, view: View) -> Tuple[Tuple[str, int], ...]:
        if view is View.PUBLIC and self.public_default_sort:
            return self.public_default_sort
        return self.default_sort


CATEGORIES = EntityQuery(
    collection=database.CATEGORY,
    search_fields=("name", "slug", "description"),
    equality={"type": "type"},
    sortable={"name": "name", "sortOrder": "sort_order", "createdAt": "created_at"},
    default_sort=(("type", ASCENDING), ("sort_order", ASCENDING), ("name", ASCENDING)),
    public_constraint={"is_active": True},
)

PROJECTS = EntityQuery(
    collection=database.PROJECT,
    search_fields=("title", "description"),
    equality={"categoryId": "category_id", "category": "category_id"},
    sortable={"createdAt": "created_at", "title": "title", "sortOrder": "sort_order"},
    default_sort=(("sort_order", ASCENDING), ("created_at", DESCENDING)),
    public_constraint={"is_active": True},
)

INQUIRIES = EntityQuery(
    collection=database.INQUIRY,
    search_fields=("name", "email", "company", "subject"),
    equality={"status": "status", "priority": "priority", "type": "inquiry_type"},
    sortable={"createdAt": "created_at", "priority": "priority", "status": "status"},
    admin_only_fields=("notes", "follow_up_date"),
)

TESTIMONIALS = EntityQuery(
    collection=database.TESTIMONIAL,
    search_fields=("first_name", "last_name", "position", "company", "text"),
    sortable={"createdAt": "created_at"},
)

TEAM_MEMBERS = EntityQuery(
    collection=database.TEAM_MEMBER,
    search_fields=("first_name", "last_name", "display_name", "job_title", "department"),
    equality={"department": "department"},
    sortable={"sortOrder": "sort_order", "createdAt": "created_at", "displayName": "display_name"},
    default_sort=(("sort_order", DESCENDING), ("created_at", DESCENDING)),
    public_default_sort=(("sort_order", ASCENDING),),
    public_constraint={"is_public": True, "is_active": True},
)

BLOG_POSTS = EntityQuery(
    collection=database.BLOG_POST,
    search_fields=("title", "excerpt", "author"),
    equality={"status": "status", "category": "category"},
    sortable={
        "createdAt": "created_at",
        "publishedAt": "published_at",
        "viewCount": "view_count",
        "title": "title",
    },
    public_default_sort=(("published_at", DESCENDING),),
    public_constraint={"status": "published"},
    admin_only_fields=("author_id",),
)


def resolve_view(public: bool, identity: Optional[Mapping[str, Any]]) -> View:
    """Public requests never need an identity; anything else does."""
    if public:
        return View.PUBLIC
    if not identity:
        raise Unauthorized()
    return View.ADMIN


def _active(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value or value == ALL:
        return None
    return value


def build_filter(entity: EntityQuery, params: Mapping[str, Optional[str]], view: View) -> Dict[str, Any]:
    clauses: List[Dict[str, Any]] = []
    if view is View.PUBLIC and entity.public_constraint:
        clauses.append(dict(entity.public_constraint))

    search = _active(params.get("search"))
    if search and entity.search_fields:
        pattern = {"$regex": re.escape(search), "$options": "i"}
        clauses.append({"$or": [{name: pattern} for name in entity.search_fields]})

    for param, stored in entity.equality.items():
        value = _active(params.get(param))
        if value is not None:
            clauses.append({stored: value})

    if not clauses:
        return {}
    if len(clauses) == 1:
        return clauses[0]
    return {"$and": clauses}


def resolve_sort(entity: EntityQuery, sort_by: Optional[str], sort_order: Optional[str],
                 view: View = View.ADMIN) -> SortSpec:
    stored = entity.sortable.get(sort_by or "")
    if stored is None:
        keys: SortSpec = list(entity.default_for(view))
        # without sortBy, an explicit direction applies to the default's primary key
        if not (sort_by or "").strip() and sort_order in ("asc", "desc"):
            keys[0] = (keys[0][0], ASCENDING if sort_order == "asc" else DESCENDING)
    else:
        keys = [(stored, ASCENDING if sort_order == "asc" else DESCENDING)]
    # _id breaks ties so repeated calls return the same order
    keys.append(("_id", keys[-1][1]))
    return keys
