from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Micropost(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    content: str
    created_at: datetime


class MicropostCreate(BaseModel):
    content: str = ""


class FeedItem(Micropost):
    community: bool = False
