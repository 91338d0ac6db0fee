"""
Runtime configuration, read once from the environment.
"""

import os

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "mongodb://localhost:27017")
DATABASE_NAME = os.getenv("DATABASE_NAME", "company_site")
DB_TIMEOUT_MS = int(os.getenv("DB_TIMEOUT_MS", "5000"))

# Auth
SECRET_KEY = os.getenv("JWT_SECRET", "super-secret-key-change")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = 60 * 12
ADMIN_EMAIL = os.getenv("ADMIN_EMAIL", "admin@company.dev")
ADMIN_NAME = os.getenv("ADMIN_NAME", "Admin")

# Media (Cloudinary)
CLOUDINARY_CLOUD_NAME = os.getenv("CLOUDINARY_CLOUD_NAME", "")
CLOUDINARY_API_KEY = os.getenv("CLOUDINARY_API_KEY", "")
CLOUDINARY_API_SECRET = os.getenv("CLOUDINARY_API_SECRET", "")
CLOUDINARY_TIMEOUT = int(os.getenv("CLOUDINARY_TIMEOUT", "30"))
UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", "company-site")

# Email (Resend)
RESEND_API_KEY = os.getenv("RESEND_API_KEY", "")
MAIL_FROM = os.getenv("MAIL_FROM", "Company Contact Form <onboarding@resend.dev>")
NOTIFY_EMAIL = os.getenv("NOTIFY_EMAIL", ADMIN_EMAIL)
RESEND_TIMEOUT = int(os.getenv("RESEND_TIMEOUT", "10"))

# Site
DEFAULT_COMPANY_NAME = os.getenv("DEFAULT_COMPANY_NAME", "APIGS Indonesia")
DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "Asia/Jakarta")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]
