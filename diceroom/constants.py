import string

ADMIN = "admin"
USER = "user"

# Number of roll events exposed in (and retained by) a room's history.
HISTORY_LIMIT = 20

DIE_FACES = 6

CODE_LENGTH = 4
CODE_ALPHABET = string.ascii_uppercase + string.digits
# Upper bound on collision retries when allocating a fresh room code.
CODE_ATTEMPTS = 1000

DIRECTIONS = {"up", "down"}

__all__ = [
    "ADMIN",
    "USER",
    "HISTORY_LIMIT",
    "DIE_FACES",
    "CODE_LENGTH",
    "CODE_ALPHABET",
    "CODE_ATTEMPTS",
    "DIRECTIONS",
]
