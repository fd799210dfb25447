# =============================================================================================
# AUTHAPI/SCHEMAS/USER.PY - PYDANTIC SCHEMAS FOR USER API REQUESTS/RESPONSES
# =============================================================================================
# Request validation happens here, at the route boundary, never inside AuthService.
#
# JSON KEYS ARE camelCase (the frontend contract), Python attributes are snake_case:
#   {"currentPassword": "..."}  ↔  data.current_password
#
# SCHEMA TYPES:
# - RegisterIn / LoginIn / ChangePasswordIn / UpdateProfileIn: request bodies
# - UserOut: {id, email, name}                  (register, login)
# - UserProfileOut: UserOut + timestamps        (/auth/me, profile owner)
# - ProfileViewOut: {id, name} + owner-only fields (GET /api/users/{id})
# =============================================================================================

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for every API schema: camelCase aliases, snake_case attributes."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,  # Tests and handlers may still pass snake_case
        from_attributes=True,  # Read from dataclasses / ORM objects
    )


# =============================================================================================
# INPUT SCHEMAS (Request bodies)
# =============================================================================================

class RegisterIn(CamelModel):
    """
    POST /auth/register
    {
        "email": "alice@example.com",
        "name": "Alice",
        "password": "secret1"
    }
    """

    email: EmailStr = Field(..., examples=["alice@example.com"])
    name: str = Field(..., min_length=2, max_length=100, examples=["Alice"])
    password: str = Field(..., min_length=6, max_length=128, examples=["secret1"])


class LoginIn(CamelModel):
    """
    POST /auth/login
    {
        "email": "alice@example.com",
        "password": "secret1"
    }
    """

    email: EmailStr = Field(..., examples=["alice@example.com"])
    password: str = Field(..., min_length=6, examples=["secret1"])


class ChangePasswordIn(CamelModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6, max_length=128)


class UpdateProfileIn(CamelModel):
    name: str = Field(..., min_length=2, max_length=100)


# =============================================================================================
# OUTPUT SCHEMAS (Response bodies)
# =============================================================================================

class UserOut(CamelModel):
    id: str
    email: EmailStr
    name: str | None = None


class UserProfileOut(UserOut):
    created_at: datetime
    updated_at: datetime


class ProfileViewOut(CamelModel):
    """
    GET /api/users/{id}. Private fields stay None (and are dropped from the JSON)
    unless the caller is the profile owner.
    """

    id: str
    name: str | None = None
    email: EmailStr | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
