"""
Application Configuration - Environment Variables & Settings
"""
from pydantic_settings import BaseSettings
from pydantic import Field, computed_field
from typing import List
from functools import lru_cache


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables
    """
    # Application
    DEBUG: bool = Field(default=False)
    BRAND_NAME: str = Field(default="Tripsantai")

    # Hosted data API (PostgREST) and auth provider share one project URL
    DATA_API_URL: str = Field(default="", alias="SUPABASE_URL")
    SERVICE_ROLE_KEY: str = Field(default="", alias="SUPABASE_SERVICE_ROLE_KEY")
    HTTP_TIMEOUT: float = Field(default=15.0)

    # Cache - Redis (TTL store for lockouts, MFA tickets and rate limits)
    REDIS_URL: str = Field(default="redis://localhost:6379/0")

    # CORS - stored as comma-separated string
    ALLOWED_ORIGINS_STR: str = Field(
        default="http://localhost:5173,http://localhost:3000",
        alias="ALLOWED_ORIGINS"
    )

    @computed_field
    @property
    def ALLOWED_ORIGINS(self) -> List[str]:
        """Parse comma-separated origins into list"""
        return [origin.strip() for origin in self.ALLOWED_ORIGINS_STR.split(',') if origin.strip()]

    @computed_field
    @property
    def DATA_CONFIGURED(self) -> bool:
        """Both the project URL and the service-role key are required"""
        return bool(self.DATA_API_URL and self.SERVICE_ROLE_KEY)

    # Image CDN - Cloudinary
    CLOUDINARY_CLOUD_NAME: str = Field(default="")
    CLOUDINARY_API_KEY: str = Field(default="")
    CLOUDINARY_API_SECRET: str = Field(default="")

    # Bot protection for public forms
    RECAPTCHA_SECRET: str = Field(default="")

    # Admin login lockout
    ADMIN_LOCK_THRESHOLD: int = Field(default=3)
    ADMIN_LOCK_MINUTES: int = Field(default=15)

    # MFA (TOTP)
    MFA_ENCRYPTION_KEY: str = Field(default="")  # base64, 32 bytes
    MFA_ISSUER: str = Field(default="Tripsantai")
    MFA_TICKET_TTL: int = Field(default=300)  # seconds

    # Rate Limiting (public write endpoints)
    RATE_LIMIT_REQUESTS: int = Field(default=10)
    RATE_LIMIT_WINDOW: int = Field(default=60)  # seconds
    # Reverse proxies in front of the API that append to X-Forwarded-For (0 = use the socket peer)
    TRUSTED_PROXY_HOPS: int = Field(default=0)

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"
        populate_by_name = True


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
