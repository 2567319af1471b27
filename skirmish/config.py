"""Shared constants for Fleet Skirmish. All protocol-wide configuration lives here."""

# --- Networking ---
DEFAULT_PORT = 8080
CONNECT_TIMEOUT_S = 1.0      # dial timeout when polling many hosts
MAX_TOKEN_BYTES = 4096       # longest line accepted from a peer
RECV_CHUNK_SIZE = 4096       # bytes per recv() call

# --- Units ---
# Unit i beats unit (i + 1) % 3. Names are display-only.
UNIT_NAMES = ("TIEFIGHTER", "BOMBER", "DESTROYER")
STARTING_UNITS = (100, 100, 100)

# --- Match ---
NUMBER_OF_FIGHTS = 100       # rounds in fixed-count mode
MAX_CONSECUTIVE_DRAWS = 20   # stalemate ceiling in depleting mode
RESULT_LABELS = ("Draw", "Success!", "Failure :-(")

# --- Peek-and-counter ---
PEEK_INITIAL_TIMEOUT_MS = 100
PEEK_TIMEOUT_STEP_MS = 100   # added after every peek that finds nothing
PEEK_MAX_TIMEOUT_MS = 1100
CHEAT_PROBABILITY = 0.5      # chance per round of peeking instead of plain random
TAUNT_LABEL = "Are you cheating?"

# --- Orchestration ---
POLL_SWEEP_INTERVAL_S = 60   # pause between sweeps over the host list
DEFAULT_NAME = "player"
