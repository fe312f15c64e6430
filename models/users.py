from datetime import datetime, timezone

from pydantic import Field, EmailStr, field_serializer
from typing import Annotated, List, Optional

import pymongo
from beanie import Document, Indexed, PydanticObjectId

from .helpers import UserRole


class User(Document):
    """Persisted identity record.

    Only the user store reads this document. The rest of the authentication
    core works with `UserRecord` and `Principal` values.
    """
    username: Annotated[str, Indexed(index_type=pymongo.ASCENDING, unique=True), Field(max_length=50, min_length=3)]
    email: Annotated[EmailStr, Indexed(index_type=pymongo.ASCENDING, unique=True), Field(max_length=100)]
    password: Annotated[str, Field(min_length=8)]  # bcrypt hash, never the plain password
    first_name: Annotated[Optional[str], Field(default=None, max_length=50, serialization_alias="firstName")]
    last_name: Annotated[Optional[str], Field(default=None, max_length=50, serialization_alias="lastName")]
    roles: Annotated[List[UserRole], Field(default=[UserRole.USER])]
    enabled: Annotated[bool, Field(default=True)]
    created_at: Annotated[datetime, Field(default_factory=lambda: datetime.now(timezone.utc), serialization_alias="createdAt")]

    @field_serializer("id")
    def convert_pydantic_object_id_to_string(self, id: PydanticObjectId):
        return str(id)

    class Settings:
        name = "users"
