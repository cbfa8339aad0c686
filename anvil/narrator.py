"""
Anvil — Combat Narrator
Wraps the OpenAI API. Receives a battle log payload, returns structured narration.

CONTRACT: The narrator is a storyteller, NOT a game arbiter.
- It reads outcomes from the battle log payload
- It never changes damage values, winners, or any combat state
- Combat state is never passed to this module
"""

from __future__ import annotations
import json
import re
from dataclasses import dataclass
from typing import Any, Optional

from openai import OpenAI

from anvil.config import load_settings
from anvil.exceptions import AnvilError
from anvil.log import get_logger

logger = get_logger(__name__)

NARRATOR_SYSTEM_PROMPT = """You are the voice of the Anvil, the ancient forge where a wandering smith hammers weapons together from scavenged parts and fights whatever crawls out of the dark.

## Your Cardinal Rules

1. **Never alter outcomes.** The engine has already decided every number. You narrate what happened; you do not invent events.
2. **Narrate events in order.** `combat_events` is sorted by `order`. Each event is a beat.
3. **Make the craft matter.** A weapon is a handle, a head and sometimes a decoration. Describe the sparks, the heat, the way the parts fit.
4. **Respect statuses.** Poison, bleed and burn eat at the enemy; a stunned enemy reels; weak enemies falter.
5. **End with the state of the fight**: both combatants' HP, delivered with weight, not as a table.
6. If `combat_outcome` is set, deliver a proper conclusion.

## Output Format

Return a JSON object with exactly these fields:

{
  "narration": "string, 80-160 words",
  "title": "string, 3-6 words",
  "key_moment": "string, one sentence naming the most dramatic beat",
  "tone": "one of: 'tense', 'devastating', 'triumphant', 'chaotic', 'grim'"
}

Return only valid JSON. No preamble, no markdown fences.
"""


class NarrationError(AnvilError):
    """The model answered with something that is not the narration JSON."""


# ---------------------------------------------------------------------------
# Structured response
# ---------------------------------------------------------------------------

@dataclass
class Narration:
    narration: str
    title: str
    key_moment: str
    tone: str
    raw_payload: dict   # The battle log that produced this narration

    def display(self):
        divider = "─" * 60
        print(f"\n{divider}")
        print(f"⚒  {self.title.upper()}")
        print(divider)
        print(f"\n{self.narration}\n")
        print(f"📍 Key Moment: {self.key_moment}")
        print(f"🎭 Tone: {self.tone}")
        print(divider)


def parse_narration(raw_text: str, payload: dict) -> Narration:
    try:
        parsed = json.loads(raw_text)
    except json.JSONDecodeError:
        # Some models still wrap the object in prose or fences
        match = re.search(r"\{.*\}", raw_text, re.DOTALL)
        if match is None:
            raise NarrationError("Narrator returned an unparseable response", details={"raw": raw_text[:200]})
        try:
            parsed = json.loads(match.group())
        except json.JSONDecodeError as exc:
            raise NarrationError("Narrator returned invalid JSON", details={"raw": raw_text[:200]}) from exc

    missing = [k for k in ("narration", "title", "key_moment", "tone") if k not in parsed]
    if missing:
        raise NarrationError("Narrator response is missing fields", details={"missing": missing})

    return Narration(
        narration=parsed["narration"],
        title=parsed["title"],
        key_moment=parsed["key_moment"],
        tone=parsed["tone"],
        raw_payload=payload,
    )


# ---------------------------------------------------------------------------
# Narrator caller
# ---------------------------------------------------------------------------

def narrate_turn(
    payload: dict,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    client: Optional[Any] = None,
) -> Narration:
    """
    Ask the model to narrate one turn.

    Args:
        payload: The dict produced by battle_log.to_narrator_payload()
        api_key: OpenAI API key. Falls back to OPENAI_API_KEY.
        model: Chat model. Falls back to ANVIL_NARRATOR_MODEL.
        client: A ready OpenAI-compatible client (tests pass a fake one).
    """
    if client is None or model is None:
        settings = load_settings()
        model = model or settings.narrator_model
        if client is None:
            client = OpenAI(api_key=api_key or settings.openai_api_key)

    user_message = f"Narrate this turn at the Anvil:\n\n{json.dumps(payload, indent=2)}"

    logger.debug("narration_requested", turn=payload.get("turn"), model=model,
                 events=len(payload.get("combat_events", [])))
    response = client.chat.completions.create(
        model=model,
        max_tokens=1024,
        response_format={"type": "json_object"},
        messages=[
            {"role": "system", "content": NARRATOR_SYSTEM_PROMPT},
            {"role": "user", "content": user_message},
        ],
    )

    raw_text = (response.choices[0].message.content or "").strip()
    return parse_narration(raw_text, payload)
