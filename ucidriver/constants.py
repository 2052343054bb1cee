"""
Protocol constants: command keywords, reply tokens, and session defaults.

All literal protocol strings used by the session live here so that the
command formatting and reply parsing code never repeats a magic word.
"""

# ---------------------------------------------------------------------------
# Session defaults
# ---------------------------------------------------------------------------

# Search time applied to every "go" command until changed (milliseconds).
DEFAULT_MOVETIME_MS: int = 100

# Pause between a passthrough command and the isready barrier.
# Empirical: some engines answer "isready" before they have started on the
# previous command, so the output of that command would be split around
# "readyok". Not a correctness guarantee.
SYNC_GRACE_SECONDS: float = 0.1

# ---------------------------------------------------------------------------
# Outbound commands (GUI -> engine)
# ---------------------------------------------------------------------------

CMD_UCI: str = "uci"
CMD_ISREADY: str = "isready"
CMD_UCINEWGAME: str = "ucinewgame"

# ---------------------------------------------------------------------------
# Inbound tokens (engine -> GUI)
# ---------------------------------------------------------------------------

TOKEN_BESTMOVE: str = "bestmove"
TOKEN_INFO: str = "info"
TOKEN_READYOK: str = "readyok"
TOKEN_CP: str = "cp"

NEWLINE: bytes = b"\n"
