"""
Shape stored documents for the response: string ids, ISO-8601 UTC
timestamps, no admin-only fields in the public view.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

import database
import settings
from media import best_avatar_url
from query import EntityQuery, View


def iso(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    if value.tzinfo is None:
        # pymongo hands back naive datetimes that are UTC
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def _plain(value: Any) -> Any:
    if isinstance(value, datetime):
        return iso(value)
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {k: _plain(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_plain(v) for v in value]
    return value


def serialize(doc: Dict[str, Any], entity: Optional[EntityQuery] = None, view: View = View.ADMIN) -> Dict[str, Any]:
    out = {k: _plain(v) for k, v in doc.items() if k != "_id"}
    out = {"id": str(doc.get("_id")), **out}
    if entity is not None:
        if view is View.PUBLIC:
            for name in entity.admin_only_fields:
                out.pop(name, None)
        if entity.collection == database.TEAM_MEMBER:
            out["avatar"] = best_avatar_url(doc)
    return out


def serialize_many(docs: Iterable[Dict[str, Any]], entity: Optional[EntityQuery] = None,
                   view: View = View.ADMIN) -> List[Dict[str, Any]]:
    return [serialize(d, entity, view) for d in docs]


def listing(items: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"items": items, "count": len(items)}


def default_company_details() -> Dict[str, Any]:
    """What the site shows before anyone saved company details."""
    return {
        "id": None,
        "team_members_count": 0,
        "years_experience": 0,
        "projects_completed": 0,
        "company_name": settings.DEFAULT_COMPANY_NAME,
        "tagline": "",
        "about_us": "",
        "vision": "",
        "mission": "",
        "office_address": "",
        "office_address_url": "",
        "office_phone": "",
        "contact_email": "",
        "support_email": "",
        "operational_hours": "",
        "timezone": settings.DEFAULT_TIMEZONE,
        "website_url": "",
        "linkedin_url": "",
        "instagram_url": "",
        "facebook_url": "",
        "twitter_url": "",
        "youtube_url": "",
        "founded_year": None,
        "certifications": [],
        "is_active": True,
        "created_at": None,
        "updated_at": None,
    }
