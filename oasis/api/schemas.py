"""Pydantic request and response models for the REST API.

Request bodies accept the camelCase keys the web client sends as well as
their snake_case field names.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Body(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# --- Agents ---

class SpawnRequest(_Body):
    name: str | None = Field(None, max_length=40)


class SpawnManyRequest(_Body):
    count: int = Field(5, ge=1)
    prefix: str = Field("Wanderer", max_length=30)


class WalkRequest(_Body):
    direction: str


# --- Knowledge ---

class TeachRequest(_Body):
    student_id: str = Field(alias="studentId")
    knowledge_type: str = Field(alias="knowledgeType")
    knowledge_key: str | None = Field(None, alias="knowledgeKey")


class InscribeRequest(_Body):
    knowledge_type: str = Field(alias="knowledgeType")
    knowledge_key: str = Field(alias="knowledgeKey")


class ReadScrollRequest(_Body):
    scroll_id: str = Field(alias="scrollId")


class WriteBookRequest(_Body):
    title: str
    knowledge_type: str = Field(alias="knowledgeType")
    content: str


# --- Projects ---

class ProposeProjectRequest(_Body):
    project_type: str = Field(alias="projectType")
    zone: str | None = None


class ContributeRequest(_Body):
    material: str
    quantity: int = Field(1, ge=1)


# --- Responses ---

class ControlResponse(BaseModel):
    status: str
    message: str
    tick: int


class StatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    tick: int
    game_time: dict = Field(serialization_alias="gameTime")
    agents: int
    alive: int
    world: str
    weather: dict | None = None
    uptime: float
    running: bool
    paused: bool
    observers: int
