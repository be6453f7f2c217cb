"""
Configuration management for the influence engine.

Settings come from a JSON file (default ``~/.influence-engine/config.json``)
with ``INFLUENCE_ENGINE_*`` environment overrides; a ``.env`` file in the
project root is loaded first.
"""

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from dotenv import load_dotenv

# Auto-load .env from project root
_project_root = Path(__file__).parent.parent
_env_file = _project_root / ".env"
if _env_file.exists():
    load_dotenv(_env_file)

DEFAULT_CONFIG_PATH = Path.home() / ".influence-engine" / "config.json"


@dataclass
class BalanceConfig:
    """
    Configuration for probability balancing.

    Strategies:
    - "auto": Preserve relative ratios of unlocked rows
    - "equal": Split the remainder evenly across unlocked rows
    """

    step: int = 5
    strategy: Literal["auto", "equal"] = "auto"
    # Inspector debounce before the balancer runs
    debounce_ms: int = 120


@dataclass
class ImportConfig:
    """
    Configuration for snapshot import.

    The label limits can only tighten the stored caps (100 for nodes, 50 for
    edges); larger values behave as the cap.
    """

    max_node_label: int = 100
    max_edge_label: int = 50
    strip_html: bool = True


@dataclass
class EngineConfig:
    """Complete influence engine configuration."""

    balance: BalanceConfig = field(default_factory=BalanceConfig)
    imports: ImportConfig = field(default_factory=ImportConfig)

    @classmethod
    def load(cls, path: Path | None = None) -> "EngineConfig":
        """Load configuration from file, then apply environment overrides."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        data: dict = {}
        if path.exists():
            with open(path) as f:
                data = json.load(f)

        # Backward compatibility: "import" was renamed to "imports"
        if "import" in data and "imports" not in data:
            data["imports"] = data.pop("import")

        config = cls(
            balance=BalanceConfig(**data.get("balance", {})),
            imports=ImportConfig(**data.get("imports", {})),
        )
        config.apply_env()
        return config

    def apply_env(self) -> None:
        """Override fields from INFLUENCE_ENGINE_* environment variables."""
        step = os.getenv("INFLUENCE_ENGINE_BALANCE_STEP")
        if step:
            self.balance.step = int(step)

        strategy = os.getenv("INFLUENCE_ENGINE_BALANCE_STRATEGY")
        if strategy in ("auto", "equal"):
            self.balance.strategy = strategy

    def save(self, path: Path | None = None) -> None:
        """Save configuration to file."""
        if path is None:
            path = DEFAULT_CONFIG_PATH

        path.parent.mkdir(parents=True, exist_ok=True)

        with open(path, "w") as f:
            json.dump(
                {
                    "balance": self.balance.__dict__,
                    "imports": self.imports.__dict__,
                },
                f,
                indent=2,
            )


# Default configuration instance
default_config = EngineConfig()
