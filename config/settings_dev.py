from __future__ import annotations

from .settings_base import *  # noqa: F403

# Development defaults
DEBUG = env.bool("DEBUG", default=True)  # type: ignore[name-defined]  # noqa: F405
NINJA_ENABLE_DOCS = env.bool("NINJA_ENABLE_DOCS", default=True)  # type: ignore[name-defined]  # noqa: F405

# Gateway sandbox keys usually live in .env; the console shows gateway/verification logs.
LOGGING["loggers"]["payments"] = {"level": "DEBUG"}  # type: ignore[name-defined]  # noqa: F405
