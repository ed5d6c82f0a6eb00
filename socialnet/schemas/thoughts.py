from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, computed_field, field_serializer
from typing import List, Optional
from .common import ObjectIdStr, format_timestamp


class ThoughtIn(BaseModel):
    thoughtText: str = Field(min_length=1, max_length=280)
    username: str = Field(min_length=1)


class ThoughtUpdateIn(BaseModel):
    thoughtText: Optional[str] = Field(default=None, min_length=1, max_length=280)
    username: Optional[str] = Field(default=None, min_length=1)


class ReactionIn(BaseModel):
    reactionBody: str = Field(min_length=1, max_length=280)
    username: str = Field(min_length=1)


class ReactionOut(BaseModel):
    reactionId: ObjectIdStr
    reactionBody: str
    username: str
    createdAt: datetime

    @field_serializer('createdAt')
    def format_created_at(self, value: datetime) -> str:
        return format_timestamp(value)


class ThoughtOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    object_id: ObjectIdStr = Field(alias='_id')
    id: ObjectIdStr
    thoughtText: str
    username: str
    createdAt: datetime
    reactions: List[ReactionOut] = []

    @computed_field
    @property
    def reactionCount(self) -> int:
        return len(self.reactions)

    @field_serializer('createdAt')
    def format_created_at(self, value: datetime) -> str:
        return format_timestamp(value)
