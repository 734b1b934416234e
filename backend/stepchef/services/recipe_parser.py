"""
Turns pasted recipe text into a Recipe – JSON first, numbered lines as fallback.
"""

import re
import uuid
from typing import List, Optional

from ..models.recipe import Recipe, Step

_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


class RecipeParser:
    step_pattern = re.compile(r"^\s*\d+[.\)]\s*(.*)$", re.M)
    # "for 5 minutes", "for 12-15 mins", "for 90 seconds"
    timer_pattern = re.compile(
        r"\bfor\s+(\d+)(?:\s*[-–]\s*\d+)?\s*(hours?|hrs?|minutes?|mins?|seconds?|secs?)\b",
        re.I,
    )

    @classmethod
    async def parse(cls, raw: str, title: str = "Untitled") -> Recipe:
        if raw.lstrip().startswith("{"):
            return Recipe.model_validate_json(raw)

        lines: List[str] = [m.group(1).strip() for m in cls.step_pattern.finditer(raw)]
        if not lines:
            # Fallback to trivial split
            lines = [line.strip() for line in raw.splitlines() if line.strip()]

        steps = [
            Step(id=idx, description=text, timer_duration_seconds=cls.extract_timer(text))
            for idx, text in enumerate(lines, 1)
        ]
        return Recipe(id=f"imported-{uuid.uuid4().hex[:8]}", name=title, steps=steps)

    @classmethod
    def extract_timer(cls, text: str) -> Optional[int]:
        """Seconds for the first "for N <unit>" phrase; ranges use the lower bound."""
        match = cls.timer_pattern.search(text)
        if not match:
            return None
        return int(match.group(1)) * _UNIT_SECONDS[match.group(2)[0].lower()]
