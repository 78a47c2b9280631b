"""Inbound intent payloads."""
from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter


class StartAction(BaseModel):
    type: Literal["start"]


class ReadyAction(BaseModel):
    type: Literal["ready"]
    ready: bool


class PlayCardAction(BaseModel):
    type: Literal["play_card"]
    card_id: str = Field(min_length=1)


class UnplayCardAction(BaseModel):
    type: Literal["unplay_card"]


class ClaimCardAction(BaseModel):
    type: Literal["claim_card"]
    card_id: str = Field(min_length=1)


class ResolutionAction(BaseModel):
    type: Literal["resolution_action"]
    choice: Literal["keep", "discard", "confirm"]


class YewTargetAction(BaseModel):
    type: Literal["yew_target"]
    ingredient: str = Field(min_length=1)


class HazelGuessAction(BaseModel):
    type: Literal["hazel_guess"]
    ingredient: str = Field(min_length=1)


class EndDiscussionAction(BaseModel):
    type: Literal["end_discussion"]


class SendRuneAction(BaseModel):
    type: Literal["send_rune"]
    to_player_id: str = Field(min_length=1)
    message: str = Field(min_length=1, max_length=200)


GameAction = Annotated[
    Union[
        StartAction,
        ReadyAction,
        PlayCardAction,
        UnplayCardAction,
        ClaimCardAction,
        ResolutionAction,
        YewTargetAction,
        HazelGuessAction,
        EndDiscussionAction,
        SendRuneAction,
    ],
    Field(discriminator="type"),
]

GAME_ACTION = TypeAdapter(GameAction)


class ChatMessage(BaseModel):
    message: str = Field(min_length=1, max_length=500)


class RoomCreate(BaseModel):
    max_players: int = Field(default=10, ge=2, le=10)
    night_seconds: Optional[int] = None
    day_seconds: Optional[int] = None
    hand_size: Optional[int] = None
