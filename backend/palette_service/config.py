"""
Palette Service Configuration
Manages environment variables and defaults for the palette extraction backends.
"""
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()


# Request bounds are fixed; clients cannot widen them through the environment.
QUALITY_MIN = 1
QUALITY_MAX = 10
QUALITY_DEFAULT = 1

MAX_COLOR_COUNT_MIN = 16
MAX_COLOR_COUNT_MAX = 256
MAX_COLOR_COUNT_DEFAULT = 256


class Config:
    """Configuration class for the palette service."""

    # Logging
    LOG_LEVEL: str = os.environ.get("PALETTE_LOG_LEVEL", "INFO")

    # Upload limits
    MAX_FILE_MB: int = int(os.environ.get("PALETTE_MAX_FILE_MB", "10"))

    # Backend selection for the unified endpoint
    DEFAULT_BACKEND: str = os.environ.get("PALETTE_DEFAULT_BACKEND", "cluster")

    # CORS settings
    ALLOWED_ORIGINS: str = os.environ.get(
        "PALETTE_ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:3001"
    )

    # Cloudinary (remote score backend)
    CLOUDINARY_API_BASE: str = os.environ.get("CLOUDINARY_API_BASE", "https://api.cloudinary.com/v1_1")
    CLOUDINARY_CLOUD_NAME: Optional[str] = os.environ.get("CLOUDINARY_CLOUD_NAME")
    CLOUDINARY_API_KEY: Optional[str] = os.environ.get("CLOUDINARY_API_KEY")
    CLOUDINARY_API_SECRET: Optional[str] = os.environ.get("CLOUDINARY_API_SECRET")
    CLOUDINARY_UPLOAD_PRESET: str = os.environ.get("CLOUDINARY_UPLOAD_PRESET", "alamo Tees")
    CLOUDINARY_TIMEOUT_S: float = float(os.environ.get("CLOUDINARY_TIMEOUT_S", "30"))

    SUPPORTED_BACKENDS = ["remote", "cluster"]

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_FILE_MB * 1024 * 1024

    @property
    def allowed_origins(self):
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    def cloudinary_configured(self) -> bool:
        """Whether all Cloudinary credentials are present."""
        return bool(self.CLOUDINARY_CLOUD_NAME and self.CLOUDINARY_API_KEY and self.CLOUDINARY_API_SECRET)

    @classmethod
    def validate_backend(cls, backend: str) -> bool:
        """Validate backend parameter."""
        return backend in cls.SUPPORTED_BACKENDS

    def validate(self):
        """
        Check settings that would otherwise only fail per request.

        Raises:
            ValueError: If PALETTE_DEFAULT_BACKEND names an unknown backend
        """
        if not self.validate_backend(self.DEFAULT_BACKEND):
            raise ValueError(
                f"PALETTE_DEFAULT_BACKEND must be one of {self.SUPPORTED_BACKENDS}, "
                f"got {self.DEFAULT_BACKEND!r}"
            )


# Global config instance
config = Config()
