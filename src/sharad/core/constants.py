"""Application-wide constants for the Sharad Shadowrun client.

This module defines the rule constants (value ranges, dice faces) and the
turn protocol constants used throughout the application.
"""

from __future__ import annotations

# =============================================================================
# Value Ranges
# =============================================================================

U8_MAX = 255
"""Largest value carried by a generic small counter."""

NUYEN_MAX = 4_294_967_295
"""Largest nuyen balance a sheet can hold."""

ATTRIBUTE_MAX = 15
"""Highest base attribute rating, augmentations included."""

SKILL_RATING_MAX = 13
"""Highest skill rating (12 plus the Aptitude quality)."""

CONTACT_RATING_MAX = 12
"""Highest contact loyalty or connection rating."""

ESSENCE_MAX = 6.0
"""Starting and maximum essence of a metahuman."""

# =============================================================================
# Dice
# =============================================================================

DIE_FACES = 6
"""Shadowrun rolls pools of six-sided dice."""

HIT_THRESHOLD = 5
"""Faces at or above this value count as hits."""

GLITCH_FACE = 1
"""Faces showing this value count toward a glitch."""

EXPLODING_FACE = 6
"""Faces showing this value trigger one extra die (Rule of Six)."""

# =============================================================================
# Turn Protocol
# =============================================================================

SUBMIT_TOOL_OUTPUTS = "submit_tool_outputs"
"""Required-action type carrying a batch of tool calls."""

IMAGE_IN_PROGRESS = "Image generation in progress. The portrait will be shown when ready."
"""Acknowledgement returned for detached image generation."""

HISTORY_PAGE_SIZE = 100
"""Messages requested per page when reading a thread's history."""


__all__ = [
    "U8_MAX",
    "NUYEN_MAX",
    "ATTRIBUTE_MAX",
    "SKILL_RATING_MAX",
    "CONTACT_RATING_MAX",
    "ESSENCE_MAX",
    "DIE_FACES",
    "HIT_THRESHOLD",
    "GLITCH_FACE",
    "EXPLODING_FACE",
    "SUBMIT_TOOL_OUTPUTS",
    "IMAGE_IN_PROGRESS",
    "HISTORY_PAGE_SIZE",
]
