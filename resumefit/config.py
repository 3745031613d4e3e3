"""
Pipeline configuration.

Numeric thresholds (word windows, quotas, dump budgets, sampling parameters) live
in pipeline_defaults.yaml and are loaded with OmegaConf into a frozen
PipelineSettings record. Paths and credentials come from the environment (.env).

Examples:
    >>> settings = load_settings()
    >>> settings.max_skill_deletions
    4

    >>> strict = load_settings(overrides=["skills.max_skill_deletions=0"])
"""

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Iterable, Optional, Tuple

from dotenv import load_dotenv
from omegaconf import OmegaConf

from resumefit.exceptions import ConfigurationError

load_dotenv()

DEFAULTS_PATH = Path(__file__).parent / "pipeline_defaults.yaml"
RESUMEFIT_CONFIG = os.getenv("RESUMEFIT_CONFIG")
LOGS_PATH = Path(os.getenv("LOGS_PATH", "outs/logs"))

# Environment variables that override a single setting
ENV_OVERRIDES = {
    "LLM_PROVIDER": ("model", "provider"),
    "COMPILE_URL": ("compile", "compile_url"),
}


@dataclass(frozen=True)
class PipelineSettings:
    """Flattened view of pipeline_defaults.yaml (see that file for meanings)."""

    # model
    provider: str
    model: Optional[str]

    # keyword-gap pass
    keywords_jd_chars: int
    max_keyword_items: int
    keywords_temperature: float
    keywords_max_tokens: int

    # bullet rewrite pass
    bullets_jd_chars: int
    bullets_temperature: float
    bullets_top_p: float
    bullets_max_tokens: int
    section_dump_chars: int
    window_lower_slack: int
    window_upper_slack: int
    policy_lower_slack: int
    policy_upper_slack: int
    enforce_bullet_policy: bool
    min_keyword_hits: int
    max_keyword_repeats: int

    # skill refinement pass
    skills_jd_chars: int
    skills_temperature: float
    skills_top_p: float
    skills_max_tokens: int
    max_skill_deletions: int
    skill_labels: Tuple[str, ...]

    # remote compilation
    compile_url: str
    engine: str
    main_filename: str
    default_class_filename: str
    compile_timeout_s: int


def load_settings(
    config_path: Optional[Path] = None, overrides: Optional[Iterable[str]] = None
) -> PipelineSettings:
    """
    Load pipeline settings: packaged defaults, then user YAML, then env, then dotlist.

    Args:
        config_path: Optional user YAML (defaults to RESUMEFIT_CONFIG env variable)
        overrides: Dotlist overrides, e.g. ["bullets.min_keyword_hits=2"]

    Returns:
        Frozen PipelineSettings

    Raises:
        ConfigurationError: If a key is unknown or a required key is missing
    """
    conf = OmegaConf.load(DEFAULTS_PATH)

    user_path = config_path or RESUMEFIT_CONFIG
    if user_path:
        user_path = Path(user_path)
        if not user_path.exists():
            raise ConfigurationError(f"Config file not found: {user_path}")
        conf = OmegaConf.merge(conf, OmegaConf.load(user_path))

    for env_name, (section, key) in ENV_OVERRIDES.items():
        value = os.getenv(env_name)
        if value:
            conf = OmegaConf.merge(conf, {section: {key: value}})

    if overrides:
        conf = OmegaConf.merge(conf, OmegaConf.from_dotlist(list(overrides)))

    nested = OmegaConf.to_container(conf, resolve=True)

    # Flatten: section.key -> key
    flattened = {}
    for section, values in nested.items():
        if not isinstance(values, dict):
            raise ConfigurationError(f"Config section '{section}' must be a mapping")
        flattened.update(values)

    known = {f.name for f in fields(PipelineSettings)}
    unknown = sorted(set(flattened) - known)
    if unknown:
        raise ConfigurationError(f"Unknown config keys: {', '.join(unknown)}")
    missing = sorted(known - set(flattened))
    if missing:
        raise ConfigurationError(f"Missing config keys: {', '.join(missing)}")

    flattened["skill_labels"] = tuple(flattened["skill_labels"] or ())
    return PipelineSettings(**flattened)
