"""
Read and write operations for every content collection.

Every function takes the database handle explicitly. Validation, not-found
and conflict checks all happen before the first write.
"""

import re
from typing import Any, Dict, List, Mapping, Optional

from bson import ObjectId
from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

import database
import media
import query
import settings
from database import create_document, get_documents, now
from errors import Conflict, NotFound, ValidationFailed
from log import get_logger
from query import View
from schemas import (
    BlogPost,
    BlogPostUpdate,
    Category,
    CategoryUpdate,
    CompanyDetails,
    Inquiry,
    InquiryUpdate,
    Project,
    ProjectUpdate,
    TeamMember,
    Testimonial,
)
from serializers import default_company_details, serialize, serialize_many

logger = get_logger("content")


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------

def slugify(text: str) -> str:
    s = re.sub(r"[^a-zA-Z0-9\s-]", "", text).strip().lower()
    s = re.sub(r"[\s-]+", "-", s)
    return s.strip("-")


def object_id(value: str, what: str) -> ObjectId:
    if not ObjectId.is_valid(value):
        raise NotFound(what)
    return ObjectId(value)


def _slug_for(slug: Optional[str], fallback: str) -> str:
    result = slugify(slug or fallback)
    if not result:
        raise ValidationFailed("slug", "Slug must contain at least one letter or digit")
    return result


def _ensure_unique_slug(db: Database, collection: str, slug: str, what: str,
                        exclude: Optional[ObjectId] = None) -> None:
    flt: Dict[str, Any] = {"slug": slug}
    if exclude is not None:
        flt["_id"] = {"$ne": exclude}
    if db[collection].find_one(flt, {"_id": 1}):
        raise Conflict(f"A {what} with slug '{slug}' already exists")


def _insert(db: Database, collection: str, doc: Dict[str, Any], what: str) -> Dict[str, Any]:
    try:
        return create_document(db, collection, doc)
    except DuplicateKeyError:
        raise Conflict(f"A {what} with slug '{doc.get('slug')}' already exists")


def _update(db: Database, collection: str, oid: ObjectId, changes: Dict[str, Any], what: str) -> Dict[str, Any]:
    changes["updated_at"] = now()
    try:
        doc = db[collection].find_one_and_update(
            {"_id": oid}, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
    except DuplicateKeyError:
        raise Conflict(f"A {what} with slug '{changes.get('slug')}' already exists")
    if doc is None:
        raise NotFound(what.capitalize())
    return doc


def _get(db: Database, collection: str, oid: ObjectId, what: str) -> Dict[str, Any]:
    doc = db[collection].find_one({"_id": oid})
    if doc is None:
        raise NotFound(what.capitalize())
    return doc


def _delete(db: Database, collection: str, oid: ObjectId, what: str) -> None:
    if db[collection].delete_one({"_id": oid}).deleted_count == 0:
        raise NotFound(what.capitalize())
    logger.info("Deleted %s %s", what, oid)


# -------------------------------------------------------------------
# Generic listing / lookup
# -------------------------------------------------------------------

def list_entities(db: Database, entity: query.EntityQuery, params: Mapping[str, Optional[str]],
                  view: View) -> List[Dict[str, Any]]:
    flt = query.build_filter(entity, params, view)
    sort = query.resolve_sort(entity, params.get("sortBy"), params.get("sortOrder"), view)
    docs = get_documents(db, entity.collection, flt, sort)
    logger.debug("Listed %d %s documents (%s)", len(docs), entity.collection, view.value)
    return serialize_many(docs, entity, view)


def get_entity(db: Database, entity: query.EntityQuery, id: str, what: str) -> Dict[str, Any]:
    return serialize(_get(db, entity.collection, object_id(id, what), what), entity)


# -------------------------------------------------------------------
# Categories
# -------------------------------------------------------------------

def create_category(db: Database, data: Category) -> Dict[str, Any]:
    doc = data.model_dump()
    doc["slug"] = _slug_for(data.slug, data.name)
    _ensure_unique_slug(db, database.CATEGORY, doc["slug"], "category")
    created = _insert(db, database.CATEGORY, doc, "category")
    logger.info("Created category %s (%s)", created["_id"], doc["slug"])
    return serialize(created, query.CATEGORIES)


def update_category(db: Database, id: str, data: CategoryUpdate) -> Dict[str, Any]:
    oid = object_id(id, "Category")
    changes = data.model_dump(exclude_unset=True)
    current = _get(db, database.CATEGORY, oid, "category")
    for name in ("name", "type", "sort_order", "is_active"):
        if name in changes and changes[name] is None:
            raise ValidationFailed(name, f"{name} cannot be empty")
    if "slug" in changes:
        changes["slug"] = _slug_for(changes["slug"], changes.get("name") or current["name"])
        _ensure_unique_slug(db, database.CATEGORY, changes["slug"], "category", exclude=oid)
    return serialize(_update(db, database.CATEGORY, oid, changes, "category"), query.CATEGORIES)


def delete_category(db: Database, id: str) -> None:
    oid = object_id(id, "Category")
    _get(db, database.CATEGORY, oid, "category")
    in_use = db[database.PROJECT].count_documents({"category_id": str(oid)})
    if in_use:
        raise Conflict(f"Category is used by {in_use} project(s); move or delete them first")
    _delete(db, database.CATEGORY, oid, "category")


# -------------------------------------------------------------------
# Projects
# -------------------------------------------------------------------

def _ensure_category(db: Database, category_id: str) -> str:
    """Return the canonical id of an existing category."""
    if not ObjectId.is_valid(category_id) or not db[database.CATEGORY].find_one({"_id": ObjectId(category_id)}, {"_id": 1}):
        raise ValidationFailed("category_id", "Category does not exist")
    return str(ObjectId(category_id))


def create_project(db: Database, data: Project) -> Dict[str, Any]:
    doc = data.model_dump()
    doc["slug"] = _slug_for(data.slug, data.title)
    doc["category_id"] = _ensure_category(db, data.category_id)
    _ensure_unique_slug(db, database.PROJECT, doc["slug"], "project")
    created = _insert(db, database.PROJECT, doc, "project")
    logger.info("Created project %s (%s)", created["_id"], doc["slug"])
    return serialize(created, query.PROJECTS)


def update_project(db: Database, id: str, data: ProjectUpdate) -> Dict[str, Any]:
    oid = object_id(id, "Project")
    changes = data.model_dump(exclude_unset=True)
    current = _get(db, database.PROJECT, oid, "project")
    for name in ("title", "description", "sort_order", "is_active"):
        if name in changes and changes[name] is None:
            raise ValidationFailed(name, f"{name} cannot be empty")
    if "technologies" in changes and changes["technologies"] is None:
        changes["technologies"] = []
    if "slug" in changes:
        changes["slug"] = _slug_for(changes["slug"], changes.get("title") or current["title"])
        _ensure_unique_slug(db, database.PROJECT, changes["slug"], "project", exclude=oid)
    if "category_id" in changes:
        if changes["category_id"] is None:
            raise ValidationFailed("category_id", "A project needs a category")
        changes["category_id"] = _ensure_category(db, changes["category_id"])
    return serialize(_update(db, database.PROJECT, oid, changes, "project"), query.PROJECTS)


def delete_project(db: Database, id: str) -> None:
    _delete(db, database.PROJECT, object_id(id, "Project"), "project")


# -------------------------------------------------------------------
# Inquiries
# -------------------------------------------------------------------

def submit_inquiry(db: Database, data: Inquiry) -> Dict[str, Any]:
    doc = data.model_dump()
    doc["phone"] = doc["phone"] or None
    doc["company"] = doc["company"] or None
    doc.update({"status": "new", "priority": "medium", "follow_up_date": None, "notes": None})
    created = create_document(db, database.INQUIRY, doc)
    logger.info("Saved %s inquiry %s", doc["inquiry_type"], created["_id"])
    return serialize(created, query.INQUIRIES)


def update_inquiry(db: Database, id: str, data: InquiryUpdate) -> Dict[str, Any]:
    oid = object_id(id, "Inquiry")
    changes = data.model_dump(exclude_unset=True)
    for name in ("status", "priority"):
        if changes.get(name) is None:
            changes.pop(name, None)
    doc = _update(db, database.INQUIRY, oid, changes, "inquiry")
    logger.info("Updated inquiry %s", id)
    return serialize(doc, query.INQUIRIES)


def delete_inquiry(db: Database, id: str) -> None:
    _delete(db, database.INQUIRY, object_id(id, "Inquiry"), "inquiry")


# -------------------------------------------------------------------
# Testimonials
# -------------------------------------------------------------------

def create_testimonial(db: Database, data: Testimonial) -> Dict[str, Any]:
    return serialize(create_document(db, database.TESTIMONIAL, data), query.TESTIMONIALS)


def update_testimonial(db: Database, id: str, data: Testimonial) -> Dict[str, Any]:
    oid = object_id(id, "Testimonial")
    return serialize(_update(db, database.TESTIMONIAL, oid, data.model_dump(), "testimonial"), query.TESTIMONIALS)


def delete_testimonial(db: Database, id: str) -> None:
    _delete(db, database.TESTIMONIAL, object_id(id, "Testimonial"), "testimonial")


# -------------------------------------------------------------------
# Team
# -------------------------------------------------------------------

def create_team_member(db: Database, data: TeamMember) -> Dict[str, Any]:
    created = create_document(db, database.TEAM_MEMBER, data)
    logger.info("Created team member %s", created["_id"])
    return serialize(created, query.TEAM_MEMBERS)


def update_team_member(db: Database, id: str, data: TeamMember) -> Dict[str, Any]:
    oid = object_id(id, "Team member")
    current = _get(db, database.TEAM_MEMBER, oid, "team member")
    doc = _update(db, database.TEAM_MEMBER, oid, data.model_dump(), "team member")
    old_avatar = current.get("avatar_public_id")
    if old_avatar and old_avatar != data.avatar_public_id:
        media.discard_images([old_avatar])
    return serialize(doc, query.TEAM_MEMBERS)


def delete_team_member(db: Database, id: str) -> None:
    oid = object_id(id, "Team member")
    current = _get(db, database.TEAM_MEMBER, oid, "team member")
    _delete(db, database.TEAM_MEMBER, oid, "team member")
    media.discard_images([current.get("avatar_public_id")])


# -------------------------------------------------------------------
# Company details
# -------------------------------------------------------------------

def get_company_details(db: Database) -> Dict[str, Any]:
    doc = db[database.COMPANY_DETAILS].find_one({"_id": database.COMPANY_DETAILS_ID, "is_active": True})
    if doc is None:
        return default_company_details()
    return serialize(doc)


def get_company_stats(db: Database) -> Dict[str, int]:
    details = get_company_details(db)
    return {
        "team_members_count": details.get("team_members_count") or 0,
        "years_experience": details.get("years_experience") or 0,
        "projects_completed": details.get("projects_completed") or 0,
    }


def save_company_details(db: Database, data: CompanyDetails) -> Dict[str, Any]:
    """Create the company record or update the existing one, atomically."""
    stamp = now()
    fields = data.model_dump()
    fields["timezone"] = fields["timezone"] or settings.DEFAULT_TIMEZONE
    fields.update({"is_active": True, "updated_at": stamp})
    doc = db[database.COMPANY_DETAILS].find_one_and_update(
        {"_id": database.COMPANY_DETAILS_ID},
        {"$set": fields, "$setOnInsert": {"created_at": stamp}},
        upsert=True,
        return_document=ReturnDocument.AFTER,
    )
    logger.info("Saved company details for %s", fields["company_name"])
    return serialize(doc)


# -------------------------------------------------------------------
# Blog
# -------------------------------------------------------------------

def create_post(db: Database, data: BlogPost, author: Mapping[str, Any]) -> Dict[str, Any]:
    doc = data.model_dump()
    doc["slug"] = _slug_for(data.slug, data.title)
    _ensure_unique_slug(db, database.BLOG_POST, doc["slug"], "blog post")
    doc.update({
        "author": author.get("name") or "Admin",
        "author_id": author.get("id"),
        "view_count": 0,
        "published_at": now() if data.status == "published" else None,
    })
    created = _insert(db, database.BLOG_POST, doc, "blog post")
    logger.info("Created %s blog post %s (%s)", data.status, created["_id"], doc["slug"])
    return serialize(created, query.BLOG_POSTS)


def update_post(db: Database, id: str, data: BlogPostUpdate) -> Dict[str, Any]:
    oid = object_id(id, "Blog post")
    changes = data.model_dump(exclude_unset=True)
    current = _get(db, database.BLOG_POST, oid, "blog post")

    if "slug" in changes:
        changes["slug"] = _slug_for(changes["slug"], changes.get("title") or current["title"])
        _ensure_unique_slug(db, database.BLOG_POST, changes["slug"], "blog post", exclude=oid)
    for name in ("title", "content", "status"):
        if name in changes and changes[name] is None:
            raise ValidationFailed(name, f"{name} cannot be empty")
    if "featured" in changes and changes["featured"] is None:
        changes["featured"] = False
    if "tags" in changes and changes["tags"] is None:
        changes["tags"] = []
    if "gallery" in changes and changes["gallery"] is None:
        changes["gallery"] = []

    orphaned: List[Optional[str]] = []
    if "featured_image" in changes and not changes["featured_image"]:
        changes["featured_image_public_id"] = None
    old_featured = current.get("featured_image_public_id")
    if old_featured and "featured_image_public_id" in changes and changes["featured_image_public_id"] != old_featured:
        orphaned.append(old_featured)
    if "gallery" in changes:
        kept = {img["public_id"] for img in changes["gallery"]}
        orphaned.extend(img.get("public_id") for img in current.get("gallery") or [] if img.get("public_id") not in kept)

    doc = _update(db, database.BLOG_POST, oid, changes, "blog post")
    if doc.get("status") == "published" and not doc.get("published_at"):
        # only the first transition into published stamps the date
        stamped = db[database.BLOG_POST].find_one_and_update(
            {"_id": oid, "published_at": None},
            {"$set": {"published_at": now()}},
            return_document=ReturnDocument.AFTER,
        )
        doc = stamped or _get(db, database.BLOG_POST, oid, "blog post")
    media.discard_images(orphaned)
    return serialize(doc, query.BLOG_POSTS)


def delete_post(db: Database, id: str) -> None:
    oid = object_id(id, "Blog post")
    current = _get(db, database.BLOG_POST, oid, "blog post")
    _delete(db, database.BLOG_POST, oid, "blog post")
    images = [current.get("featured_image_public_id")]
    images.extend(img.get("public_id") for img in current.get("gallery") or [])
    media.discard_images(images)


def get_published_post(db: Database, slug: str) -> Dict[str, Any]:
    doc = db[database.BLOG_POST].find_one({"slug": slug, "status": "published"})
    if doc is None:
        raise NotFound("Blog post")
    return serialize(doc, query.BLOG_POSTS, View.PUBLIC)


def increment_view_count(db: Database, id: str) -> None:
    """Runs after the response has been sent; failures are only logged."""
    try:
        db[database.BLOG_POST].update_one({"_id": ObjectId(id)}, {"$inc": {"view_count": 1}})
        logger.debug("View count incremented for post %s", id)
    except PyMongoError as exc:
        logger.error("Failed to increment view count for post %s: %s", id, exc)


# -------------------------------------------------------------------
# Homepage
# -------------------------------------------------------------------

def homepage(db: Database, limit: int = 6) -> Dict[str, Any]:
    testimonials = get_documents(
        db, database.TESTIMONIAL, {},
        query.resolve_sort(query.TESTIMONIALS, None, None, View.PUBLIC), limit,
    )
    projects = get_documents(
        db, database.PROJECT, query.build_filter(query.PROJECTS, {}, View.PUBLIC),
        query.resolve_sort(query.PROJECTS, None, None, View.PUBLIC), limit,
    )
    return {
        "company": get_company_details(db),
        "team": list_entities(db, query.TEAM_MEMBERS, {}, View.PUBLIC),
        "testimonials": serialize_many(testimonials, query.TESTIMONIALS, View.PUBLIC),
        "projects": serialize_many(projects, query.PROJECTS, View.PUBLIC),
    }
