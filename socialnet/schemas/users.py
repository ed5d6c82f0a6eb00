from pydantic import BaseModel, ConfigDict, EmailStr, Field
from typing import List, Optional
from .common import ObjectIdStr
from .thoughts import ThoughtOut


class UserIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(min_length=1)
    email: EmailStr


class UserUpdateIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    object_id: ObjectIdStr = Field(alias='_id')
    id: ObjectIdStr
    username: str
    email: str
    thoughts: List[ObjectIdStr] = []
    friends: List[ObjectIdStr] = []


class UserDetailOut(BaseModel):
    """User with thoughts and friends resolved to full documents."""
    model_config = ConfigDict(populate_by_name=True)

    object_id: ObjectIdStr = Field(alias='_id')
    id: ObjectIdStr
    username: str
    email: str
    thoughts: List[ThoughtOut] = []
    friends: List[UserOut] = []


class MessageOut(BaseModel):
    message: str
