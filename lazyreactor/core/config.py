"""
Scheduler configuration.

Settings can be passed explicitly or read from the environment:

    LAZYREACTOR_STACK_SIZE     routine stack size in bytes (0 = platform default)
    LAZYREACTOR_JOIN_TIMEOUT   seconds to wait when reaping a finished routine
    LAZYREACTOR_NAME_PREFIX    name prefix for routine contexts
"""

import os
from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field, field_validator

# threading.stack_size() rejects anything smaller
MIN_STACK_SIZE = 32 * 1024

ENV_VARS = {
    "stack_size": "LAZYREACTOR_STACK_SIZE",
    "join_timeout": "LAZYREACTOR_JOIN_TIMEOUT",
    "name_prefix": "LAZYREACTOR_NAME_PREFIX",
}


class SchedulerConfig(BaseModel):
    """Execution context settings for a scheduled routine."""

    model_config = ConfigDict(frozen=True)

    stack_size: int = Field(default=0, ge=0, description="Routine stack size in bytes")
    join_timeout: float = Field(default=5.0, gt=0, description="Seconds to reap a finished routine")
    name_prefix: str = Field(default="lazyreactor-routine", min_length=1)

    @field_validator("stack_size")
    @classmethod
    def _check_stack_size(cls, value: int) -> int:
        if value and value < MIN_STACK_SIZE:
            raise ValueError(f"stack_size must be 0 or at least {MIN_STACK_SIZE} bytes")
        return value

    @classmethod
    def from_env(cls) -> "SchedulerConfig":
        """Build a config from LAZYREACTOR_* environment variables."""
        values: Dict[str, Any] = {}
        for field, var in ENV_VARS.items():
            raw = os.getenv(var)
            if raw is not None:
                values[field] = raw
        return cls(**values)
