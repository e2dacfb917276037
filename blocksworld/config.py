"""
Blocksworld Configuration

Loads planner defaults from environment variables with sensible defaults.
"""

import os
from pathlib import Path
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    """Planner configuration loaded from environment variables."""

    # Iteration budget. Requested values are clamped to the cap so a single
    # request cannot pin the process.
    MAX_ITERATIONS: int = int(os.getenv("BLOCKSWORLD_MAX_ITERATIONS", "2500"))
    MAX_ITERATION_CAP: int = int(os.getenv("BLOCKSWORLD_MAX_ITERATION_CAP", "5000"))

    # Wall-clock safety limit for one planning call (5 minutes)
    DELIBERATION_TIMEOUT_MS: int = int(
        os.getenv("BLOCKSWORLD_DELIBERATION_TIMEOUT_MS", "300000")
    )

    # Negotiation
    ENABLE_NEGOTIATION: bool = _env_flag("BLOCKSWORLD_ENABLE_NEGOTIATION", "true")
    NEGOTIATION_STRATEGY: str = os.getenv("BLOCKSWORLD_NEGOTIATION_STRATEGY", "prefer-stack")

    # Console output
    VERBOSE: bool = _env_flag("BLOCKSWORLD_VERBOSE")

    # Project Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent
    SCENARIOS_DIR: Path = PROJECT_ROOT / "examples" / "scenarios"

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors if values are inconsistent."""
        if cls.MAX_ITERATION_CAP <= 0:
            raise ValueError("BLOCKSWORLD_MAX_ITERATION_CAP must be a positive integer")

        if cls.MAX_ITERATIONS <= 0:
            raise ValueError("BLOCKSWORLD_MAX_ITERATIONS must be a positive integer")

        if cls.MAX_ITERATIONS > cls.MAX_ITERATION_CAP:
            raise ValueError(
                "BLOCKSWORLD_MAX_ITERATIONS exceeds BLOCKSWORLD_MAX_ITERATION_CAP "
                f"({cls.MAX_ITERATIONS} > {cls.MAX_ITERATION_CAP})"
            )

        if cls.DELIBERATION_TIMEOUT_MS <= 0:
            raise ValueError("BLOCKSWORLD_DELIBERATION_TIMEOUT_MS must be a positive integer")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "Blocksworld Configuration:",
            f"  Max Iterations: {cls.MAX_ITERATIONS} (cap {cls.MAX_ITERATION_CAP})",
            f"  Deliberation Timeout: {cls.DELIBERATION_TIMEOUT_MS}ms",
            f"  Negotiation: {'on' if cls.ENABLE_NEGOTIATION else 'off'} ({cls.NEGOTIATION_STRATEGY})",
            f"  Verbose: {cls.VERBOSE}",
        ]
        return "\n".join(lines)
