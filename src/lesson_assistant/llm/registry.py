"""Model registry: models, actions and the model chain for each action.

Loaded from config/models.yaml at startup, validated by Pydantic.
A new action or model is a YAML edit, no code changes.
"""

from enum import StrEnum
from pathlib import Path

import yaml
from pydantic import BaseModel, model_validator


class Capability(StrEnum):
    """Capabilities a model can have."""

    LONG_CONTEXT = "long_context"
    MULTI_TURN = "multi_turn"


class CostPer1K(BaseModel):
    """Cost per 1000 tokens in USD."""

    input: float
    output: float


class ModelConfig(BaseModel):
    """Single model configuration, used by ModelRouter as a chain item."""

    model_id: str = ""  # populated from dict key during validation
    provider: str
    capabilities: list[Capability]
    max_context: int
    cost_per_1k: CostPer1K

    def estimate_cost(self, tokens_in: int, tokens_out: int) -> float:
        """Calculate cost in USD for given token counts."""
        return (
            tokens_in * self.cost_per_1k.input / 1000
            + tokens_out * self.cost_per_1k.output / 1000
        )


class ActionConfig(BaseModel):
    """Action (task type) with capability requirements."""

    description: str = ""
    requires: list[Capability] = []


class ModelRegistryConfig(BaseModel):
    """Top-level registry: models + actions + routing.

    Validates that every routed action exists, every chain is non-empty,
    and every model in a chain exists and has the capabilities its
    action requires.
    """

    models: dict[str, ModelConfig]
    actions: dict[str, ActionConfig]
    routing: dict[str, list[str]]

    @model_validator(mode="after")
    def validate_routing(self) -> "ModelRegistryConfig":
        """Populate model_id fields and validate routing consistency."""
        for model_id, model in self.models.items():
            model.model_id = model_id

        errors: list[str] = []
        for action_name, chain in self.routing.items():
            if action_name not in self.actions:
                errors.append(f"Routing references unknown action: '{action_name}'")
                continue
            if not chain:
                errors.append(f"Action '{action_name}' has empty model chain")
                continue

            required = set(self.actions[action_name].requires)
            for model_id in chain:
                if model_id not in self.models:
                    errors.append(
                        f"Routing '{action_name}' references unknown model: "
                        f"'{model_id}'"
                    )
                    continue
                missing = required - set(self.models[model_id].capabilities)
                if missing:
                    errors.append(
                        f"Model '{model_id}' in '{action_name}' "
                        f"lacks required capabilities: {missing}"
                    )

        if errors:
            raise ValueError(
                "Model registry validation failed:\n"
                + "\n".join(f"  - {e}" for e in errors)
            )
        return self

    def get_chain(self, action: str) -> list[ModelConfig]:
        """Ordered model chain for an action.

        Raises:
            KeyError: if action not found in routing.
        """
        if action not in self.routing:
            raise KeyError(f"Unknown action: '{action}'")
        return [self.models[mid] for mid in self.routing[action]]


def load_registry(config_path: Path) -> ModelRegistryConfig:
    """Load and validate model registry from YAML.

    Raises:
        FileNotFoundError: if YAML file doesn't exist.
        ValueError: if YAML parsing or validation fails.
    """
    if not config_path.exists():
        raise FileNotFoundError(f"Registry config not found: {config_path}")

    try:
        raw = yaml.safe_load(config_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise ValueError(f"Failed to parse registry config '{config_path}': {e}") from e
    return ModelRegistryConfig.model_validate(raw)
