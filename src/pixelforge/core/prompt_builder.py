"""Prompt composition for the generation pipeline.

The prompt sent to the image-generation service combines two parts:

- the template's **base prompt**: what the asset is;
- the settings' optional **detail prompt**: per-run refinements.

Composition Rules
-----------------
=============  ===============  ==========================
base prompt    detail prompt    combined prompt
=============  ===============  ==========================
set            empty            ``"{base}"``
empty          set              ``"{detail}"``
set            set              ``"{base}. {detail}"``
empty          empty            ``ValidationError``
=============  ===============  ==========================

Whitespace around each part is stripped before composition.

Usage
-----
::

    prompt = build_prompt("A knight sprite", "facing left").unwrap()
    # "A knight sprite. facing left"
"""

from __future__ import annotations

from math import gcd

from .errors import ValidationError
from .models import Resolution
from .result import Result


def build_prompt(base_prompt: str | None, detail_prompt: str | None) -> Result[str]:
    """Combine the base and detail prompts.

    Args:
        base_prompt: Template prompt text.  May be empty.
        detail_prompt: Settings prompt text.  May be empty or ``None``.

    Returns:
        The combined prompt, or a ``ValidationError`` if both parts are empty.
    """
    base = (base_prompt or "").strip()
    detail = (detail_prompt or "").strip()

    if base and detail:
        return Result.ok(f"{base}. {detail}")
    if base:
        return Result.ok(base)
    if detail:
        return Result.ok(detail)
    return Result.err(ValidationError("Prompt is empty: set a base prompt or a detail prompt"))


def aspect_ratio_for(resolution: Resolution) -> str:
    """Reduce a resolution to an ``"W:H"`` aspect ratio string.

    Examples:
        >>> aspect_ratio_for(Resolution(64, 64))
        '1:1'
        >>> aspect_ratio_for(Resolution(320, 180))
        '16:9'
    """
    divisor = gcd(resolution.width, resolution.height) or 1
    return f"{resolution.width // divisor}:{resolution.height // divisor}"
