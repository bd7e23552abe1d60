"""Pydantic models for workflow file validation.

These mirror minizap/types.py structures but accept the looser shapes people
write by hand: a flat ``triggers``/``actions`` file or the stored
``configuration`` envelope, and type names padded with whitespace.
"""

from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class StepYAML(BaseModel):
    """A trigger or action entry: ``{type, config}``."""

    type: str
    config: dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", mode="before")
    @classmethod
    def normalize_type(cls, v):
        if isinstance(v, str):
            v = v.strip()
        if not v:
            raise ValueError("type must be a non-empty string")
        return v

    @field_validator("config", mode="before")
    @classmethod
    def default_config(cls, v):
        return {} if v is None else v


class WorkflowFile(BaseModel):
    """Root schema for a workflow .yaml / .json file."""

    id: Optional[str] = None
    user_id: str = "local"
    name: str
    description: str = ""
    is_active: bool = True
    triggers: list[StepYAML] = Field(default_factory=list)
    actions: list[StepYAML] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def unwrap_configuration(cls, data):
        # Stored workflows keep steps under "configuration"
        if isinstance(data, dict) and isinstance(data.get("configuration"), dict):
            data = dict(data)
            envelope = data.pop("configuration")
            data.setdefault("triggers", envelope.get("triggers") or [])
            data.setdefault("actions", envelope.get("actions") or [])
        return data
