"""
Configuration objects for the engine and the bridge.

Key classes:
- EngineConfig: wasmtime engine and store limits
- BridgeConfig: store-level options, including guard contention policy
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, Optional

CONTENTION_RAISE = "raise"
CONTENTION_BLOCK = "block"

OPT_LEVELS = ("none", "speed", "speed_and_size")


@dataclass
class EngineConfig:
    """
    Limits for engine execution.

    fuel: total instruction budget for a store; None disables metering
    max_memory_bytes: per-store linear memory cap; None means unlimited
    """
    fuel: Optional[int] = None
    max_memory_bytes: Optional[int] = None
    cranelift_opt_level: str = "speed"

    def __post_init__(self):
        if self.fuel is not None and self.fuel < 0:
            raise ValueError("fuel must not be negative")
        if self.max_memory_bytes is not None and self.max_memory_bytes < 0:
            raise ValueError("max_memory_bytes must not be negative")
        if self.cranelift_opt_level not in OPT_LEVELS:
            raise ValueError(f"cranelift_opt_level must be one of {OPT_LEVELS}")


@dataclass
class BridgeConfig:
    """
    Options for a host Store.

    contention: what happens when a second OS thread tries to enter the
    engine while another thread is executing. "raise" fails the entry with
    ConcurrentEntryError, "block" waits for the active thread to leave.
    """
    contention: str = CONTENTION_RAISE
    engine: EngineConfig = field(default_factory=EngineConfig)

    def __post_init__(self):
        if self.contention not in (CONTENTION_RAISE, CONTENTION_BLOCK):
            raise ValueError(
                f"contention must be '{CONTENTION_RAISE}' or '{CONTENTION_BLOCK}', "
                f"got {self.contention!r}"
            )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BridgeConfig":
        """Build a config from a plain mapping (e.g. parsed JSON)."""
        engine = EngineConfig(**data.get("engine", {}))
        return cls(contention=data.get("contention", CONTENTION_RAISE), engine=engine)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
