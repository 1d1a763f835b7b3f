"""3-layer configuration system for crew runs.

Loads and merges configuration from:
1. Default settings (built-in)
2. Crew file (YAML)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError

DEFAULT_CONFIG: dict = {
    "crew": {
        "name": "crew",
        "process": "sequential",
        "max_concurrency": 4,
        "verbose": False,
        "relevance_floor": 0.0,
    },
    "tasks": {
        "max_retries": 3,
        "timeout": None,
        "backoff_base": 1.0,
        "backoff_max": 30.0,
    },
    "agents": {
        "max_iterations": 10,
        "max_execution_time": 300,
    },
    "runtime": {
        "provider": "anthropic",
        "temperature": 0.1,
        "timeout_seconds": 120,
        "anthropic": {
            "model": "claude-sonnet-4-5-20250929",
            "api_key_env": "ANTHROPIC_API_KEY",
            "max_tokens": 4000,
        },
        "openai": {
            "model": "gpt-4o",
            "api_key_env": "OPENAI_API_KEY",
            "max_tokens": 4000,
        },
        "ollama": {
            "endpoint": "http://localhost:11434",
            "model": "llama3.1:8b",
        },
        "mock": {
            "delay_seconds": 0,
        },
    },
    "agent_defs": [],
    "task_defs": [],
}

# Top-level crew file keys that map onto the "crew" section.
_CREW_KEYS = ("name", "process", "max_concurrency", "verbose", "relevance_floor")


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = {}
    for key in base:
        result[key] = base[key]
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def load_crew_file(path: Path) -> dict:
    """Read a YAML crew file into a dict.

    Unlike optional project settings, a crew file is required input, so a
    missing or malformed file is an error.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(f"Crew file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {path.name}: {e}") from e
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Crew file {path.name} must contain a mapping at the top level")
    return data


def normalize_crew_file(data: dict) -> dict:
    """Map the crew file's flat layout onto config sections.

    Top-level ``name``/``process``/``max_concurrency`` go under ``crew``;
    ``agents`` and ``tasks`` lists become ``agent_defs``/``task_defs`` so
    they do not collide with the defaults sections of the same name.
    """
    data = dict(data)
    normalized: dict = {}

    crew_section = dict(data.pop("crew", None) or {})
    for key in _CREW_KEYS:
        if key in data:
            crew_section[key] = data.pop(key)
    if crew_section:
        normalized["crew"] = crew_section

    agents = data.pop("agents", None)
    if isinstance(agents, list):
        normalized["agent_defs"] = agents
    elif isinstance(agents, dict):
        normalized["agents"] = agents

    tasks = data.pop("tasks", None)
    if isinstance(tasks, list):
        normalized["task_defs"] = tasks
    elif isinstance(tasks, dict):
        normalized["tasks"] = tasks

    for section in ("agent_defaults", "task_defaults"):
        if section in data:
            normalized[section.split("_")[0] + "s"] = data.pop(section)

    normalized.update(data)
    return normalized


def get_effective_config(
    crew_file: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration for a crew run."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    if crew_file is not None:
        file_config = normalize_crew_file(load_crew_file(crew_file))
        if file_config:
            config = deep_merge(config, file_config)
        config["_crew_file"] = str(crew_file)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config
