"""
Search configuration carried by a session.

SessionConfig is immutable; the session replaces it wholesale through its
builder setters so every new value goes through validation.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, PositiveInt

from ucidriver.constants import DEFAULT_MOVETIME_MS


class SessionConfig(BaseModel):
    """
    Defaults applied to every "go" command.

    Fields:
        movetime: Milliseconds the engine may spend per search. Always sent.
        depth:    Optional half-move search depth. When None the "depth"
                  clause is omitted and the search is bounded by movetime only.
    """

    model_config = ConfigDict(frozen=True)

    movetime: PositiveInt = DEFAULT_MOVETIME_MS
    depth: PositiveInt | None = None
