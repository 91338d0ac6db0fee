import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import BackgroundTasks, Depends, FastAPI, File, Query, Request, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError, PyMongoError

import content
import database
import mailer
import media
import query
import settings
from auth import authenticate, get_current_admin, get_optional_admin
from errors import DependencyUnavailable, ValidationFailed
from log import get_logger, set_correlation_id
from query import View
from schemas import (
    BlogPost,
    BlogPostUpdate,
    Category,
    CategoryUpdate,
    CompanyDetails,
    Inquiry,
    InquiryUpdate,
    LoginRequest,
    Project,
    ProjectUpdate,
    TeamMember,
    Testimonial,
    Token,
)
from serializers import listing

logger = get_logger("api")

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@asynccontextmanager
async def lifespan(_: FastAPI):
    if database.db is not None:
        try:
            database.ensure_indexes(database.db)
        except PyMongoError as exc:
            logger.warning("Could not create indexes at startup: %s", exc)
    yield


# ==================
# FastAPI app config
# ==================
app = FastAPI(title="Company Site API", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def correlation_id(request: Request, call_next):
    token = set_correlation_id(request.headers.get("X-Request-ID"))
    response = await call_next(request)
    response.headers["X-Request-ID"] = token
    return response


@app.exception_handler(DuplicateKeyError)
async def duplicate_key_handler(request: Request, exc: DuplicateKeyError):
    logger.warning("Duplicate key on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=409, content={"detail": "A record with this slug already exists"})


@app.exception_handler(PyMongoError)
async def database_error_handler(request: Request, exc: PyMongoError):
    logger.error("Database error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": "Database unavailable, please retry"})


# =========
# Utilities
# =========

def get_db() -> Database:
    if database.db is None:
        raise DependencyUnavailable("database", "Database not available")
    return database.db


def list_params(
    search: Optional[str] = None,
    status: Optional[str] = None,
    category: Optional[str] = None,
    category_id: Optional[str] = Query(None, alias="categoryId"),
    type: Optional[str] = None,
    priority: Optional[str] = None,
    department: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_order: Optional[str] = Query(None, alias="sortOrder"),
) -> Dict[str, Optional[str]]:
    return {
        "search": search,
        "status": status,
        "category": category,
        "categoryId": category_id,
        "type": type,
        "priority": priority,
        "department": department,
        "sortBy": sort_by,
        "sortOrder": sort_order,
    }


def requested_view(public: bool = False, admin: Optional[dict] = Depends(get_optional_admin)) -> View:
    return query.resolve_view(public, admin)


def _image_bytes(file: UploadFile) -> bytes:
    if not (file.content_type or "").startswith("image/"):
        raise ValidationFailed("file", "Only image uploads are accepted")
    data = file.file.read(MAX_UPLOAD_BYTES + 1)
    if not data:
        raise ValidationFailed("file", "No file provided")
    if len(data) > MAX_UPLOAD_BYTES:
        raise ValidationFailed("file", "Image is larger than 10 MB")
    return data


# ======
# Routes
# ======
@app.get("/")
def root():
    return {"status": "ok", "service": "company-site-api"}


@app.get("/test")
def test_database():
    ok = database.db is not None
    collections = []
    if ok:
        try:
            collections = database.db.list_collection_names()
        except PyMongoError as exc:
            logger.warning("Database check failed: %s", exc)
            ok = False
    return {
        "backend": "running",
        "database": "connected" if ok else "not-available",
        "collections": collections[:10],
        "media": "configured" if media.is_configured() else "not-configured",
        "email": "configured" if mailer.is_configured() else "not-configured",
    }


# Auth
@app.post("/api/auth/login", response_model=Token)
def login(data: LoginRequest):
    return Token(access_token=authenticate(data.email, data.password))


@app.get("/api/auth/me")
def me(admin: dict = Depends(get_current_admin)):
    return admin


# Public site
@app.get("/api/company-details")
def public_company_details(db: Database = Depends(get_db)):
    return content.get_company_details(db)


@app.get("/api/company-details/stats")
def public_company_stats(db: Database = Depends(get_db)):
    return content.get_company_stats(db)


@app.get("/api/home")
def home(db: Database = Depends(get_db)):
    return content.homepage(db)


@app.get("/api/team")
def public_team(params: dict = Depends(list_params), db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.TEAM_MEMBERS, params, View.PUBLIC))


@app.get("/api/testimonials")
def public_testimonials(params: dict = Depends(list_params), db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.TESTIMONIALS, params, View.PUBLIC))


@app.get("/api/categories")
def public_categories(params: dict = Depends(list_params), db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.CATEGORIES, params, View.PUBLIC))


@app.get("/api/projects")
def public_projects(params: dict = Depends(list_params), db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.PROJECTS, params, View.PUBLIC))


@app.get("/api/posts")
def public_posts(params: dict = Depends(list_params), db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.BLOG_POSTS, params, View.PUBLIC))


@app.get("/api/posts/{slug}")
def public_post(slug: str, background_tasks: BackgroundTasks, db: Database = Depends(get_db)):
    post = content.get_published_post(db, slug)
    background_tasks.add_task(content.increment_view_count, db, post["id"])
    return post


@app.post("/api/contact", status_code=201)
def contact(data: Inquiry, db: Database = Depends(get_db)):
    inquiry = content.submit_inquiry(db, data)
    mailer.notify_inquiry(inquiry)
    return {"success": True, "inquiry_id": inquiry["id"], "message": "Inquiry received"}


# Admin: categories
@app.get("/api/admin/categories")
def admin_categories(params: dict = Depends(list_params), view: View = Depends(requested_view),
                     db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.CATEGORIES, params, view))


@app.post("/api/admin/categories", status_code=201)
def create_category(data: Category, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.create_category(db, data)


@app.patch("/api/admin/categories/{id}")
def update_category(id: str, data: CategoryUpdate, _: dict = Depends(get_current_admin),
                    db: Database = Depends(get_db)):
    return content.update_category(db, id, data)


@app.delete("/api/admin/categories/{id}")
def delete_category(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_category(db, id)
    return {"deleted": True}


# Admin: projects
@app.get("/api/admin/projects")
def admin_projects(params: dict = Depends(list_params), view: View = Depends(requested_view),
                   db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.PROJECTS, params, view))


@app.get("/api/admin/projects/{id}")
def admin_project(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_entity(db, query.PROJECTS, id, "Project")


@app.post("/api/admin/projects", status_code=201)
def create_project(data: Project, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.create_project(db, data)


@app.patch("/api/admin/projects/{id}")
def update_project(id: str, data: ProjectUpdate, _: dict = Depends(get_current_admin),
                   db: Database = Depends(get_db)):
    return content.update_project(db, id, data)


@app.delete("/api/admin/projects/{id}")
def delete_project(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_project(db, id)
    return {"deleted": True}


# Admin: blog
@app.get("/api/admin/posts")
def admin_posts(params: dict = Depends(list_params), view: View = Depends(requested_view),
                db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.BLOG_POSTS, params, view))


@app.get("/api/admin/posts/{id}")
def admin_post(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_entity(db, query.BLOG_POSTS, id, "Blog post")


@app.post("/api/admin/posts", status_code=201)
def create_post(data: BlogPost, admin: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.create_post(db, data, admin)


@app.patch("/api/admin/posts/{id}")
def update_post(id: str, data: BlogPostUpdate, _: dict = Depends(get_current_admin),
                db: Database = Depends(get_db)):
    return content.update_post(db, id, data)


@app.delete("/api/admin/posts/{id}")
def delete_post(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_post(db, id)
    return {"deleted": True}


# Admin: team
@app.get("/api/admin/team")
def admin_team(params: dict = Depends(list_params), view: View = Depends(requested_view),
               db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.TEAM_MEMBERS, params, view))


@app.get("/api/admin/team/{id}")
def admin_team_member(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_entity(db, query.TEAM_MEMBERS, id, "Team member")


@app.post("/api/admin/team", status_code=201)
def create_team_member(data: TeamMember, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.create_team_member(db, data)


@app.put("/api/admin/team/{id}")
def update_team_member(id: str, data: TeamMember, _: dict = Depends(get_current_admin),
                       db: Database = Depends(get_db)):
    return content.update_team_member(db, id, data)


@app.delete("/api/admin/team/{id}")
def delete_team_member(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_team_member(db, id)
    return {"deleted": True}


# Admin: testimonials
@app.get("/api/admin/testimonials")
def admin_testimonials(params: dict = Depends(list_params), view: View = Depends(requested_view),
                       db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.TESTIMONIALS, params, view))


@app.get("/api/admin/testimonials/{id}")
def admin_testimonial(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_entity(db, query.TESTIMONIALS, id, "Testimonial")


@app.post("/api/admin/testimonials", status_code=201)
def create_testimonial(data: Testimonial, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.create_testimonial(db, data)


@app.put("/api/admin/testimonials/{id}")
def update_testimonial(id: str, data: Testimonial, _: dict = Depends(get_current_admin),
                       db: Database = Depends(get_db)):
    return content.update_testimonial(db, id, data)


@app.delete("/api/admin/testimonials/{id}")
def delete_testimonial(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_testimonial(db, id)
    return {"deleted": True}


# Admin: inquiries
@app.get("/api/admin/inquiries")
def admin_inquiries(params: dict = Depends(list_params), _: dict = Depends(get_current_admin),
                    db: Database = Depends(get_db)):
    return listing(content.list_entities(db, query.INQUIRIES, params, View.ADMIN))


@app.get("/api/admin/inquiries/{id}")
def admin_inquiry(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_entity(db, query.INQUIRIES, id, "Inquiry")


@app.patch("/api/admin/inquiries/{id}")
def update_inquiry(id: str, data: InquiryUpdate, _: dict = Depends(get_current_admin),
                   db: Database = Depends(get_db)):
    return content.update_inquiry(db, id, data)


@app.delete("/api/admin/inquiries/{id}")
def delete_inquiry(id: str, _: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    content.delete_inquiry(db, id)
    return {"deleted": True}


# Admin: company details
@app.get("/api/admin/company-details")
def admin_company_details(_: dict = Depends(get_current_admin), db: Database = Depends(get_db)):
    return content.get_company_details(db)


@app.put("/api/admin/company-details")
def save_company_details(data: CompanyDetails, _: dict = Depends(get_current_admin),
                         db: Database = Depends(get_db)):
    return content.save_company_details(db, data)


# Admin: uploads
@app.post("/api/admin/upload", status_code=201)
def upload_image(file: UploadFile = File(...), _: dict = Depends(get_current_admin)) -> Dict[str, Any]:
    return media.upload_image(_image_bytes(file))


@app.post("/api/admin/upload/team-avatar", status_code=201)
def upload_team_avatar(file: UploadFile = File(...), _: dict = Depends(get_current_admin)) -> Dict[str, Any]:
    return media.upload_avatar(_image_bytes(file))


@app.delete("/api/admin/upload/{public_id:path}")
def delete_upload(public_id: str, _: dict = Depends(get_current_admin)):
    return {"deleted": media.delete_image(public_id)}


if __name__ == "__main__":
    import uvicorn
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
