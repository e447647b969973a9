"""Form navigation constants shared across the SDK.

These values are referenced by the step models, the validator, and the
navigation controller.  A few can be overridden via environment variables
so deployments can change defaults without touching authored forms.
"""

import os

# Sentinel returned by the rule evaluator for "go_to_end" actions.  The
# navigation controller maps it to the terminal/submit state.
END_OF_FORM = "__end__"

# Step kinds rendered as visual option cards.  Transitions between two such
# steps are announced to the presentation hook so the renderer can animate.
VISUAL_CARD_KINDS: set[str] = {"image_selection"}

# Upper bound on repetitions for frames_plan steps that don't set one.
# Overridable via DEFAULT_FRAMES_MAX_COUNT env var.
DEFAULT_FRAMES_MAX_COUNT = int(os.getenv("DEFAULT_FRAMES_MAX_COUNT", "10"))

# Unit label for dimensions steps that don't set one.
DEFAULT_DIMENSION_UNITS = os.getenv("DEFAULT_DIMENSION_UNITS", "mm")

# Default scale upper bounds by scale_type (opinion_scale steps).
DEFAULT_SCALE_MAX: dict[str, int] = {
    "number": 10,
    "star": 5,
}

# Human-readable kind names for flowchart nodes.
STEP_KIND_NAMES: dict[str, str] = {
    "image_selection": "Image Selection",
    "multiple_choice": "Multiple Choice",
    "text_input": "Text Input",
    "file_upload": "File Upload",
    "dimensions": "Dimensions",
    "opinion_scale": "Opinion Scale",
    "frames_plan": "Frames Plan",
    "contact_fields": "Contact Fields",
    "loop_section": "Loop Section",
}
