"""Provider-agnostic conversation history passed to ApiHandler.create_message."""

from __future__ import annotations

from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field


class TextPart(BaseModel):
    type: Literal["text"] = "text"
    text: str


class ImagePart(BaseModel):
    """Inline image, base64 encoded."""

    type: Literal["image"] = "image"
    media_type: str = Field(default="image/png", description="e.g. image/png, image/jpeg")
    data: str


ContentPart = Annotated[Union[TextPart, ImagePart], Field(discriminator="type")]


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: Union[str, list[ContentPart]]

    def text(self) -> str:
        """Concatenated text parts (images skipped)."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(p.text for p in self.content if isinstance(p, TextPart))
