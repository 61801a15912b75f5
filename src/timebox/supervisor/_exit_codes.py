"""Exit codes reported by the supervisor.

Compatible with the coreutils ``timeout`` conventions:
- 0: Success
- 1-123: The command's own exit code
- 124: The command timed out
- 125: The supervisor itself failed (usage error)
- 126: The command was found but could not be invoked
- 127: The command was not found
- 130: Interrupted by an external termination request
"""

EXIT_SUCCESS: int = 0
EXIT_TIMED_OUT: int = 124
EXIT_USAGE_ERROR: int = 125
EXIT_NOT_EXECUTABLE: int = 126
EXIT_NOT_FOUND: int = 127
EXIT_INTERRUPTED: int = 130

# Shells report death by signal N as 128 + N
SIGNAL_EXIT_BASE: int = 128
