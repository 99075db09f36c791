"""
Request and response models for the chat and model-listing endpoints.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ChatMessage(BaseModel):
    """A single conversation turn"""

    role: Literal["system", "user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """
    Chat request as sent by the UI.

    Accepts the UI's camelCase keys as well as snake_case.
    """

    model_config = ConfigDict(populate_by_name=True)

    messages: list[ChatMessage] = Field(..., min_length=1)
    selected_model: str = Field(..., min_length=1, alias="selectedModel")
    server_url: str | None = Field(None, alias="serverUrl")
    enable_thinking: bool = Field(False, alias="enableThinking")
    request_id: str | None = Field(None, alias="requestId")

    @field_validator("selected_model", mode="before")
    @classmethod
    def strip_model(cls, v: str) -> str:
        """Strip whitespace so a blank model id fails validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class ModelInfo(BaseModel):
    """A model advertised by the inference server"""

    id: str
    object: str = "model"
    owned_by: str = ""


class ModelList(BaseModel):
    object: str = "list"
    data: list[ModelInfo]
