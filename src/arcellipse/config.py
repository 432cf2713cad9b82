"""
Configuration management for arcellipse.

Loads YAML configuration with sensible defaults for the search, its numeric
thresholds, tracing and output files.
"""

import os
from dataclasses import asdict, dataclass, field

import yaml

from arcellipse.models import Objective


# Clamp ranges for the grid axes and the error sampler
MIN_OFFSET_STEPS = 2
MAX_OFFSET_STEPS = 30
MIN_ERROR_SAMPLE_STEPS = 4
MAX_ERROR_SAMPLE_STEPS = 30


@dataclass
class SearchConfig:
    """Default grid settings used when a request does not set them."""
    steps_d: int = 10
    steps_d1: int = 10
    steps_d2: int = 10
    error_sample_steps: int = 10
    prune_worse_than_best: bool = False
    force_anchor_p_zero: bool = False
    force_anchor_r_zero: bool = False
    objective: str = Objective.MINIMIZE_A_PLUS_B.value
    workers: int = 1


@dataclass
class NumericsConfig:
    """Thresholds for the degeneracy checks."""
    eps_small: float = 1e-12
    near_singular_eps: float = 1e-12


@dataclass
class TracingConfig:
    """Configuration for runtime tracing."""
    enabled: bool = False
    level: str = "INFO"
    file_path: str = None
    json_output: bool = False


@dataclass
class OutputConfig:
    """Configuration for files written by the pipeline."""
    json_indent: int = 2
    write_mirrored_series: bool = True
    write_summary: bool = True


@dataclass
class AppConfig:
    """Complete application configuration."""
    search: SearchConfig = field(default_factory=SearchConfig)
    numerics: NumericsConfig = field(default_factory=NumericsConfig)
    tracing: TracingConfig = field(default_factory=TracingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)


_SECTIONS = ("search", "numerics", "tracing", "output")


def load_config(config_path=None):
    """
    Load configuration from YAML file.

    Falls back to defaults for any missing values.
    """
    config = AppConfig()

    if config_path and os.path.exists(config_path):
        with open(config_path, "r", encoding="utf-8") as f:
            yaml_data = yaml.safe_load(f) or {}

        config = _merge_config(config, yaml_data)

    return config


def _merge_config(config, yaml_data):
    """Merge YAML data into config dataclass, ignoring unknown keys."""
    for section_name in _SECTIONS:
        section_data = yaml_data.get(section_name)
        if not section_data:
            continue
        section = getattr(config, section_name)
        for key, value in section_data.items():
            if hasattr(section, key):
                setattr(section, key, value)

    # validates the objective name early
    config.search.objective = Objective(config.search.objective).value

    return config


def save_default_config(path):
    """Save default configuration to YAML file for reference."""
    config = AppConfig()

    yaml_data = {name: asdict(getattr(config, name)) for name in _SECTIONS}
    yaml_data["tracing"].pop("file_path")

    with open(path, "w", encoding="utf-8") as f:
        yaml.dump(yaml_data, f, default_flow_style=False, sort_keys=False)


def clamp_steps(value, low, high):
    """Round a step count and clamp it into [low, high]."""
    return min(max(int(round(value)), low), high)
