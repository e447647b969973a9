"""Respondent answer models.

Several step kinds share one answer object: a choice step fills
``selected_option_id``, a text step fills ``answer_text``, and so on.  The
engine reads whichever slot the current step kind uses.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel


class FrameAnswer(BaseModel):
    """One repetition of a frames_plan step."""

    image_url: Optional[str] = None
    location: Optional[str] = None
    measurements: Optional[str] = None


class Answer(BaseModel):
    """Answer to a single step."""

    # Choice kinds
    selected_option_id: Optional[str] = None
    selected_option_ids: List[str] = []

    # Input kinds
    answer_text: Optional[str] = None
    file_url: Optional[str] = None
    width: Optional[float] = None
    height: Optional[float] = None
    depth: Optional[float] = None
    scale_rating: Optional[int] = None

    # contact_fields
    contact_name: Optional[str] = None
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None

    # frames_plan
    frames: List[FrameAnswer] = []

    # loop_section
    loop_choice: Optional[Literal["add_another", "continue"]] = None
