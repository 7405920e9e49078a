from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RatingChangeOut(BaseModel):
    old: int
    new: int


class RatingUpdatedOut(BaseModel):
    message: str = "ELO updated"
    page_id: str = Field(alias="pageId")
    player_a: RatingChangeOut = Field(alias="playerA")
    player_b: RatingChangeOut = Field(alias="playerB")

    model_config = ConfigDict(populate_by_name=True)


class MessageOut(BaseModel):
    message: str
    page_id: Optional[str] = Field(default=None, alias="pageId")
    status: Optional[str] = None

    model_config = ConfigDict(populate_by_name=True)
