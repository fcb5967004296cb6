"""
Chat models.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict


class ChatRole(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


class ChatTurn(BaseModel):
    """One message in a contract conversation."""

    model_config = ConfigDict(use_enum_values=True)

    role: ChatRole
    content: str
    timestamp: datetime | None = None  # Filled in by the chat store on append

    def as_message(self) -> dict[str, str]:
        """Provider message format."""
        return {"role": self.role, "content": self.content}
