from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from prompt_builder import PromptFields
from prompts_lib import DEFAULT_ASPECT_RATIO, DEFAULT_NEGATIVE, DEFAULT_QUALITY, STYLE_PRESETS


class PromptFieldsIn(BaseModel):
    """Builder form as posted by the browser (camelCase) or API clients (snake_case)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    subject: str = ""
    action: str = ""
    environment: str = ""
    details: str = ""
    extras: str = ""
    style_preset: str = Field(STYLE_PRESETS[0]["value"], alias="stylePreset")
    mood: str = ""
    lens: str = ""
    lighting: str = ""
    composition: str = ""
    artists: List[str] = Field(default_factory=list)
    materials: List[str] = Field(default_factory=list)
    custom_tags: List[str] = Field(default_factory=list, alias="customTags")
    negative: str = DEFAULT_NEGATIVE
    aspect_ratio: str = Field(DEFAULT_ASPECT_RATIO, alias="aspectRatio")
    quality: str = DEFAULT_QUALITY
    seed: Optional[Union[int, str]] = None

    def to_fields(self) -> PromptFields:
        return PromptFields.from_mapping(self.model_dump())


class BuildResponse(BaseModel):
    prompt: str
    negative: str
    document: Dict[str, Any]


class SendResponse(BaseModel):
    prompt: str
    negative: str
    source: str = Field(..., description="optimized or fallback")


class QuickStarterRequest(BaseModel):
    title: str
    fields: PromptFieldsIn = Field(default_factory=PromptFieldsIn)
