from pydantic_settings import BaseSettings
from functools import lru_cache
import os


class Settings(BaseSettings):
    app_name: str = "Job Nexus API"
    debug: bool = os.getenv("DEBUG", "false").lower() == "true"
    log_level: str = "INFO"

    # Database - supports both SQLite (local) and PostgreSQL (production)
    database_url: str = "sqlite+aiosqlite:///./jobnexus.db"

    # Bearer tokens are issued by the identity provider and signed with this key
    secret_key: str = "your-secret-key-change-in-production"
    algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24  # 24 hours

    # CORS - comma-separated list of allowed origins
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # AI/LLM Configuration
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"

    # Google Cloud Vision (OCR for images and scanned PDFs)
    google_cloud_api_key: str = ""

    # Uploads
    max_upload_mb: int = 10
    uploads_dir: str = os.path.join(os.path.dirname(os.path.dirname(__file__)), "uploads")

    # Hosts the file proxy is allowed to fetch from
    proxy_allowed_hosts: str = "firebasestorage.googleapis.com,storage.googleapis.com,res.cloudinary.com"

    # Email Configuration
    mail_username: str = ""
    mail_password: str = ""
    mail_from: str = "noreply@jobnexus.app"
    mail_from_name: str = "Job Nexus"
    mail_port: int = 587
    mail_server: str = "smtp.gmail.com"
    mail_starttls: bool = True
    mail_ssl_tls: bool = False
    mail_validate_certs: bool = True
    email_notifications: bool = False

    # Frontend URL for email links
    frontend_url: str = "http://localhost:3000"

    # Cloudinary (resume file storage)
    cloudinary_cloud_name: str = ""
    cloudinary_api_key: str = ""
    cloudinary_api_secret: str = ""

    class Config:
        env_file = ".env"
        extra = "ignore"
        case_sensitive = False

    def get_cors_origins(self) -> list:
        """Parse CORS origins from comma-separated string"""
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def get_proxy_allowed_hosts(self) -> list:
        return [host.strip().lower() for host in self.proxy_allowed_hosts.split(",") if host.strip()]

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * 1024 * 1024

    @property
    def mail_configured(self) -> bool:
        return bool(self.mail_username and self.mail_password)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
