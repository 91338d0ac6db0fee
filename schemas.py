"""
Database Schemas for the company site

Each Pydantic model = one MongoDB collection (lowercased class name).
The *Update models carry the same fields as optional for partial updates.
"""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

CategoryType = Literal["portfolio", "service"]
InquiryType = Literal["general", "project", "partnership", "support"]
InquiryStatus = Literal["new", "contacted", "qualified", "converted", "closed"]
InquiryPriority = Literal["low", "medium", "high", "urgent"]
PostStatus = Literal["draft", "published"]

HEX_COLOR = r"^#[0-9a-fA-F]{6}$"


class Stripped(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)


# Auth
class LoginRequest(BaseModel):
    email: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


# Portfolio
class Category(Stripped):
    name: str = Field(..., min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)  # derived from name when missing
    description: Optional[str] = None
    type: CategoryType
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    sort_order: int = 0
    is_active: bool = True


class CategoryUpdate(Stripped):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    slug: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = None
    type: Optional[CategoryType] = None
    color: Optional[str] = Field(None, pattern=HEX_COLOR)
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


class Project(Stripped):
    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: str = Field(..., min_length=1)
    image: Optional[str] = None  # image url
    technologies: List[str] = []
    category_id: str
    sort_order: int = 0
    is_active: bool = True


class ProjectUpdate(Stripped):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    description: Optional[str] = Field(None, min_length=1)
    image: Optional[str] = None
    technologies: Optional[List[str]] = None
    category_id: Optional[str] = None
    sort_order: Optional[int] = None
    is_active: Optional[bool] = None


# Contact
class Inquiry(Stripped):
    """Public contact form submission."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    phone: Optional[str] = Field(None, max_length=20)
    company: Optional[str] = Field(None, max_length=200)
    inquiry_type: InquiryType
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=10, max_length=2000)


class InquiryUpdate(Stripped):
    status: Optional[InquiryStatus] = None
    priority: Optional[InquiryPriority] = None
    notes: Optional[str] = None
    follow_up_date: Optional[datetime] = None


class Testimonial(Stripped):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    position: Optional[str] = Field(None, max_length=150)
    company: Optional[str] = Field(None, max_length=200)
    text: str = Field(..., min_length=1)


# Team
class TeamMember(Stripped):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    display_name: str = Field(..., min_length=1, max_length=200)
    job_title: str = Field(..., min_length=1, max_length=150)
    department: Optional[str] = None
    # avatar descriptor, stored as returned by the media service
    avatar_public_id: Optional[str] = None
    avatar_url: Optional[str] = None
    avatar_secure_url: Optional[str] = None
    avatar_format: Optional[str] = None
    avatar_width: Optional[int] = None
    avatar_height: Optional[int] = None
    avatar_version: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None
    github_url: Optional[str] = None
    twitter_url: Optional[str] = None
    website_url: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    start_date: Optional[datetime] = None
    is_active: bool = True
    is_public: bool = True
    sort_order: int = 0


# Company
class CompanyDetails(Stripped):
    team_members_count: int = Field(0, ge=0)
    years_experience: int = Field(0, ge=0)
    projects_completed: int = Field(0, ge=0)
    company_name: str = Field(..., min_length=1, max_length=200)
    tagline: Optional[str] = None
    about_us: Optional[str] = None
    vision: Optional[str] = None
    mission: Optional[str] = None
    office_address: Optional[str] = None
    office_address_url: Optional[str] = None
    office_phone: Optional[str] = None
    contact_email: Optional[str] = None
    support_email: Optional[str] = None
    operational_hours: Optional[str] = None
    timezone: Optional[str] = None
    website_url: Optional[str] = None
    linkedin_url: Optional[str] = None
    instagram_url: Optional[str] = None
    facebook_url: Optional[str] = None
    twitter_url: Optional[str] = None
    youtube_url: Optional[str] = None
    founded_year: Optional[int] = Field(None, ge=1800, le=2100)
    certifications: List[str] = []


# Blog
class GalleryImage(BaseModel):
    url: str
    public_id: str
    caption: Optional[str] = None


class BlogPost(Stripped):
    title: str = Field(..., min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    content: str = Field(..., min_length=1)
    featured_image: Optional[str] = None
    featured_image_public_id: Optional[str] = None
    gallery: List[GalleryImage] = []
    category: Optional[str] = Field(None, max_length=100)
    tags: List[str] = []
    status: PostStatus = "draft"
    featured: bool = False


class BlogPostUpdate(Stripped):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    slug: Optional[str] = Field(None, max_length=255)
    excerpt: Optional[str] = None
    content: Optional[str] = Field(None, min_length=1)
    featured_image: Optional[str] = None
    featured_image_public_id: Optional[str] = None
    gallery: Optional[List[GalleryImage]] = None
    category: Optional[str] = Field(None, max_length=100)
    tags: Optional[List[str]] = None
    status: Optional[PostStatus] = None
    featured: Optional[bool] = None
