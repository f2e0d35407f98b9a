from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .constants import CHANNEL_A, CHANNEL_B, CHANNELS, GREETING_TEMPLATE


class Session(BaseModel):
    """Channel assignment fixed once per run by the negotiator."""

    model_config = ConfigDict(frozen=True)

    self_channel: str = Field(..., description="Channel this instance listens on")
    peer_channel: str = Field(..., description="Channel the other instance listens on")
    greeted: bool = Field(default=False, description="Whether a greeting was sent on startup")

    @model_validator(mode="after")
    def _check_channels(self) -> "Session":
        if self.self_channel not in CHANNELS or self.peer_channel not in CHANNELS:
            raise ValueError(f"unknown channel pair {self.self_channel}/{self.peer_channel}")
        if self.self_channel == self.peer_channel:
            raise ValueError("self and peer channel must differ")
        return self

    @property
    def is_first(self) -> bool:
        return self.self_channel == CHANNEL_A

    @property
    def greeting(self) -> str:
        return GREETING_TEMPLATE.format(channel=self.self_channel)

    @classmethod
    def first(cls) -> "Session":
        return cls(self_channel=CHANNEL_A, peer_channel=CHANNEL_B)

    @classmethod
    def second(cls, greeted: bool = False) -> "Session":
        return cls(self_channel=CHANNEL_B, peer_channel=CHANNEL_A, greeted=greeted)


__all__ = ["Session"]
