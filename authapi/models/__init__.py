# Database models
# Import all models here so Base.metadata.create_all() can find them
from authapi.models.user import User

__all__ = ["User"]
