"""Pydantic request models for the dashboard API."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field


class ConfigPayload(BaseModel):
    """Body of ``POST /api/config``; field names match the dashboard's JSON."""

    model_config = ConfigDict(coerce_numbers_to_str=True, extra="ignore")

    serverId: str = Field(min_length=1)
    serverName: Optional[str] = None
    sensitivity: Literal["low", "medium", "high", "strict"] = "medium"
    primaryAction: Literal["warn", "log", "kick", "ban", "custom"] = "log"
    enableWarn: bool = False
    warnMessage: Optional[str] = None
    enableLog: bool = True
    logChannelId: Optional[str] = None
    enableKick: bool = False
    enableBan: bool = False
    banDuration: Optional[int] = Field(default=None, ge=0)
    customCommand: Optional[str] = None
    monitoredChannels: List[str] = Field(default_factory=list)
    monitorAllChannels: bool = True
