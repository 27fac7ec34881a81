"""Prompt templates sent to the game master and the image service."""

from __future__ import annotations


GAME_MASTER_INSTRUCTIONS = """You are the Game Master of a Shadowrun 5th edition campaign.
Narrate in {language}. Keep the mechanical state in the client: create every
character with create_character_sheet, roll every test with perform_dice_roll,
and record every change with the update tools.
Answer each turn with a JSON object: {{"reasoning": ..., "narration": ...,
"character_sheet": ...}} where character_sheet is the current sheet of the
player's character, or null if it did not change."""

TURN_INSTRUCTIONS = (
    "Act as the Game Master. Judge whether the action can succeed and roll when it matters. "
    "Actions beyond the character's abilities fail, with consequences. "
    "Answer with the JSON object described in your instructions."
)

OPENING_MESSAGE = "Start a new game. Guide the player through creating their character."

PORTRAIT_STYLE = (
    "Character portrait in the gritty cyberpunk noir style of Shadowrun, dramatic lighting, "
    "dystopian city background, no text, portrait orientation. Subject: {prompt}"
)


def build_instructions(language: str) -> str:
    """Format the assistant instructions for a narration language."""
    return GAME_MASTER_INSTRUCTIONS.format(language=language)


def build_portrait_prompt(prompt: str) -> str:
    """Wrap a character description in the portrait style."""
    return PORTRAIT_STYLE.format(prompt=prompt)


__all__ = [
    "GAME_MASTER_INSTRUCTIONS",
    "TURN_INSTRUCTIONS",
    "OPENING_MESSAGE",
    "PORTRAIT_STYLE",
    "build_instructions",
    "build_portrait_prompt",
]
