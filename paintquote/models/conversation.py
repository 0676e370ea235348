"""Conversation models for PaintQuote.

Ephemeral, in-memory state for one chat session plus the pure merge used to
accumulate extracted fields across turns.
"""

import asyncio
from enum import Enum
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, PrivateAttr

from paintquote.models.contractor_context import ContractorContext


class ConversationStage(str, Enum):
    """Where the conversation is in the quote checklist."""

    COLLECTING_BASICS = "collecting_basics"
    COLLECTING_MEASUREMENTS = "collecting_measurements"
    COLLECTING_PAINT_SPECS = "collecting_paint_specs"
    COLLECTING_RATES = "collecting_rates"
    READY_FOR_MARKUP = "ready_for_markup"
    COMPLETE = "complete"


class ConversationMessage(BaseModel):
    """One role-tagged message in the conversation history."""

    role: Literal["user", "assistant"]
    content: str


class PaintActionType(str, Enum):
    """Side-effecting paint catalog actions."""

    PRICE_UPDATE = "price_update"
    SAVE_FAVORITE = "save_favorite"


class PaintActionStatus(str, Enum):
    """Status of a paint action."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"


class PaintAction(BaseModel):
    """A paint catalog action dispatched during a turn."""

    type: PaintActionType
    data: Dict[str, Any] = Field(default_factory=dict)
    status: PaintActionStatus = PaintActionStatus.PENDING
    product_id: Optional[str] = None
    error: Optional[str] = None

    class Config:
        use_enum_values = True


class ConversationState(BaseModel):
    """State of one chat session. Never persisted by the core."""

    stage: str = ConversationStage.COLLECTING_BASICS.value
    extracted_data: Dict[str, Any] = Field(default_factory=dict, alias="extractedData")
    conversation_history: List[ConversationMessage] = Field(
        default_factory=list,
        alias="conversationHistory"
    )
    contractor_context: ContractorContext = Field(alias="contractorContext")

    # Serializes turns of this conversation
    _turn_lock: asyncio.Lock = PrivateAttr(default_factory=asyncio.Lock)

    class Config:
        populate_by_name = True

    @property
    def turn_lock(self) -> asyncio.Lock:
        return self._turn_lock

    def add_message(self, role: str, content: str) -> None:
        self.conversation_history.append(ConversationMessage(role=role, content=content))

    def recent_history(self, window: int) -> List[ConversationMessage]:
        """Most recent `window` messages, oldest first."""
        if window <= 0:
            return []
        return self.conversation_history[-window:]


class AssistantReply(BaseModel):
    """Result of one conversational turn."""

    response: str
    extracted_data: Dict[str, Any] = Field(default_factory=dict)
    next_stage: Optional[str] = None
    confidence: float = 0.0
    paint_actions: List[PaintAction] = Field(default_factory=list)
    used_fallback: bool = False


def is_empty_value(value: Any) -> bool:
    """True for values that carry no information in a merge."""
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple, set)):
        return len(value) == 0
    return False


def merge_extracted_data(
    existing: Optional[Dict[str, Any]],
    update: Optional[Dict[str, Any]]
) -> Dict[str, Any]:
    """Shallow last-write-wins merge of a new extraction into the accumulator.

    Newer non-empty values win; fields the update does not mention (or reports
    as None/""/{}/[]) keep their previous value. False and 0 are real values.
    Neither input is mutated.

    Args:
        existing: Accumulated data from earlier turns.
        update: Fields extracted from the latest turn.

    Returns:
        New merged dictionary.
    """
    merged = dict(existing or {})
    for key, value in (update or {}).items():
        if is_empty_value(value):
            continue
        merged[key] = value
    return merged
