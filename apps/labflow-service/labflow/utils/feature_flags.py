"""
Switches for the optional parts of the run workflow.

Every flag defaults to on; an explicit off-style value in its environment
variable disables it. Values are read once and cached until
``refresh_feature_flag_cache`` is called.
"""
from __future__ import annotations

import os
from functools import lru_cache
from typing import Dict

PROGRESS_TRACKING = "feature_progress_tracking_enabled"
FORMULA_EVALUATION = "feature_formula_evaluation_enabled"
GRAPH_EDITOR = "feature_graph_editor_enabled"

# Flag key as reported by /feature-flags -> environment variable
FLAG_ENV_VARS: Dict[str, str] = {
    PROGRESS_TRACKING: "FEATURE_PROGRESS_TRACKING_ENABLED",
    FORMULA_EVALUATION: "FEATURE_FORMULA_EVALUATION_ENABLED",
    GRAPH_EDITOR: "FEATURE_GRAPH_EDITOR_ENABLED",
}

_OFF_VALUES = {"", "0", "false", "no", "off"}


def _flag_from_env(env_var: str) -> bool:
    raw = os.getenv(env_var)
    return raw is None or raw.strip().lower() not in _OFF_VALUES


@lru_cache(maxsize=None)
def get_feature_flags() -> Dict[str, bool]:
    return {key: _flag_from_env(env_var) for key, env_var in FLAG_ENV_VARS.items()}


def is_feature_enabled(flag: str) -> bool:
    return get_feature_flags()[flag]


def progress_tracking_enabled() -> bool:
    """Starting, advancing and closing user workflow runs."""
    return is_feature_enabled(PROGRESS_TRACKING)


def formula_evaluation_enabled() -> bool:
    return is_feature_enabled(FORMULA_EVALUATION)


def graph_editor_enabled() -> bool:
    """Replacing a workflow's assay dependency graph."""
    return is_feature_enabled(GRAPH_EDITOR)


def refresh_feature_flag_cache() -> None:
    get_feature_flags.cache_clear()
