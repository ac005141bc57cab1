"""Model catalog and system prompt presets.

Loads model definitions and role presets from models.yaml.
"""

from __future__ import annotations

import importlib.resources
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

import yaml

DEFAULT_SYSTEM_PROMPT = "You are a helpful AI assistant. Answer concisely and clearly."
QUERY_SYSTEM_PROMPT = "Answer concisely and clearly"


@dataclass(frozen=True)
class ModelConfig:
    """Configuration for a single model."""

    id: str
    name: str
    env_var: str | None = None
    api_base: str | None = None


@lru_cache(maxsize=1)
def _load_models_yaml() -> dict[str, Any]:
    """Load models.yaml from package resources."""
    files = importlib.resources.files("llmchat.core.llm")
    yaml_path = files.joinpath("models.yaml")
    with importlib.resources.as_file(yaml_path) as path:
        with open(path, encoding="utf-8") as f:
            return yaml.safe_load(f) or {}


def _build_model_configs() -> dict[str, ModelConfig]:
    data = _load_models_yaml()
    return {
        m["id"]: ModelConfig(
            id=m["id"],
            name=m.get("name", m["id"]),
            env_var=m.get("env_var"),
            api_base=m.get("api_base"),
        )
        for m in data.get("models", [])
    }


MODEL_CONFIGS: dict[str, ModelConfig] = _build_model_configs()
AVAILABLE_MODELS: list[str] = list(MODEL_CONFIGS)
DEFAULT_MODEL: str = _load_models_yaml().get("default_model") or AVAILABLE_MODELS[0]
PREDEFINED_ROLES: dict[str, str] = dict(_load_models_yaml().get("roles", {}))


def get_model_config(model_id: str) -> ModelConfig | None:
    """Look up catalog settings for a model id, if it is in the catalog."""
    return MODEL_CONFIGS.get(model_id)


def resolve_model(name: str, aliases: Mapping[str, str] | None = None) -> str:
    """Resolve a user-supplied model name.

    Accepts an alias, a full catalog id, or a bare model name that matches
    exactly one catalog id after the provider prefix ("grok-2" ->
    "xai/grok-2"). Anything else is passed through for litellm to judge.
    """
    name = name.strip()
    if aliases and name in aliases:
        return aliases[name]
    if name in MODEL_CONFIGS:
        return name

    matches = [model_id for model_id in MODEL_CONFIGS if model_id.split("/", 1)[-1] == name]
    if len(matches) == 1:
        return matches[0]
    return name


def resolve_system_prompt(text: str) -> str:
    """Expand a predefined role name into its prompt; other text is kept."""
    return PREDEFINED_ROLES.get(text.strip(), text)
