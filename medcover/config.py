"""
Runtime settings. Every field can be overridden with a MEDCOVER_<FIELD>
environment variable, e.g. MEDCOVER_NOTIFICATIONS_ENABLED=false.
"""

import os
from collections.abc import Mapping

from pydantic import BaseModel, Field

ENV_PREFIX = "MEDCOVER_"


class Settings(BaseModel):
    service_name: str = "medcover"
    log_level: str = "INFO"

    default_shift_name: str = "Default Shift"
    default_shift_description: str = (
        "Default shift covering the entire event duration"
    )
    default_shift_required_staff: int = Field(default=1, ge=1, le=50)

    # when off, the notifier logs and returns without delivering
    notifications_enabled: bool = True

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        environ = os.environ if environ is None else environ
        overrides = {
            name: environ[ENV_PREFIX + name.upper()]
            for name in cls.model_fields
            if ENV_PREFIX + name.upper() in environ
        }
        return cls.model_validate(overrides)


settings = Settings.from_env()
