# ABOUTME: Debug logging helper gated on the DEBUG environment flag
# ABOUTME: Prints tagged lines to stdout so container logs pick them up

from toolpick.config import Config


def debug_log(message: str, category: str = "DEBUG") -> None:
    """Print a tagged debug line when DEBUG=true, otherwise do nothing."""
    if Config.DEBUG:
        print(f"[{category}] {message}", flush=True)
