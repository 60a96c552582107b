"""Configuration management using Pydantic for type safety and validation.

The configuration is an immutable record shared by reference between the
model, the CD-k estimator and the gradient updater. Sampling code only ever
reads from it.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, TypeVar

import torch
from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T", bound="BaseConfig")

OPTIMIZATION_ALGORITHMS = {"adagrad", "sgd", "adam", "rmsprop"}
LOSS_FUNCTIONS = {"reconstruction_crossentropy", "squared_loss", "mse"}
INIT_METHODS = {
    "xavier_uniform",
    "xavier_normal",
    "normal",
    "uniform",
    "zeros",
    "ones",
}
DTYPES = {
    "float32": torch.float32,
    "float": torch.float32,
    "fp32": torch.float32,
    "float64": torch.float64,
    "double": torch.float64,
    "fp64": torch.float64,
}


class BaseConfig(BaseModel):
    """Base configuration class with common functionality.

    All configuration classes inherit from this to get:
    - Automatic validation
    - JSON serialization
    - Immutability (frozen)
    """

    model_config = ConfigDict(
        frozen=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
    )

    @classmethod
    def from_dict(cls: type[T], config_dict: dict[str, Any]) -> T:
        """Create configuration from dictionary."""
        return cls(**config_dict)

    @classmethod
    def from_file(cls: type[T], path: str | Path) -> T:
        """Load configuration from a JSON file."""
        path = Path(path)
        if path.suffix != ".json":
            raise ValueError(f"Unsupported config file type: {path.suffix}")
        return cls.model_validate_json(path.read_text())

    def dict(self, **kwargs: Any) -> dict[str, Any]:
        """Return a JSON-serializable dictionary representation."""
        return self.model_dump(mode="json", **kwargs)

    def with_updates(self: T, **kwargs: Any) -> T:
        """Create a new config with updated fields."""
        return self.__class__(**{**self.dict(), **kwargs})


class RBMConfig(BaseConfig):
    """Hyperparameters for a Restricted Boltzmann Machine."""

    visible_units: int = Field(..., description="Number of visible units", gt=0)
    hidden_units: int = Field(..., description="Number of hidden units", gt=0)

    # Contrastive divergence
    learning_rate: float = Field(0.1, description="Learning rate", gt=0)
    k: int = Field(1, description="CD chain length", ge=1)
    sparsity: float = Field(
        0.0, description="Sparsity target (0 disables)", ge=0, lt=1
    )
    dropout: float = Field(
        0.0, description="Hidden dropout probability", ge=0, lt=1
    )

    # Unit kinds; unknown names are rejected by the unit policy lookup
    visible_unit: str = Field("binary", description="Visible unit kind")
    hidden_unit: str = Field("binary", description="Hidden unit kind")
    concat_biases: bool = Field(
        False, description="Fold biases into the weight product"
    )

    # Optimization
    optimization_algo: str = Field("adagrad", description="Optimizer name")
    loss_function: str = Field(
        "reconstruction_crossentropy", description="Reconstruction loss"
    )
    momentum: float = Field(0.5, description="Momentum", ge=0)
    momentum_after: dict[int, float] = Field(
        {}, description="Iteration threshold -> momentum"
    )
    use_regularization: bool = Field(False, description="Apply L2 penalty")
    l2: float = Field(0.1, description="L2 regularization constant", ge=0)
    reset_adagrad_iterations: int = Field(
        -1, description="Reset adaptive state every n iterations (-1 = never)"
    )
    constrain_gradient_to_unit_norm: bool = Field(
        False, description="Cap each gradient at unit norm"
    )

    # Diagnostics
    render_weights_every: int = Field(
        -1, description="Plotting cadence in iterations (-1 = never)"
    )

    # Initialization
    weight_init: str = Field("normal", description="Weight init method")
    bias_init: str | float = Field(0.0, description="Bias initialization")

    # Reproducibility and placement
    seed: int | None = Field(123, description="Random seed")
    device: str | None = Field("cpu", description="Device (cuda/cpu/auto)")
    dtype: str = Field("float32", description="Data type")

    @field_validator("visible_unit", "hidden_unit", mode="before")
    @classmethod
    def normalize_unit(cls, v: Any) -> str:
        """Store unit kinds as lower-case names."""
        return str(getattr(v, "value", v)).lower()

    @field_validator("optimization_algo")
    @classmethod
    def validate_optimizer(cls, v: str) -> str:
        """Validate optimizer name."""
        if v.lower() not in OPTIMIZATION_ALGORITHMS:
            raise ValueError(
                f"Unknown optimizer: {v}. Must be one of {OPTIMIZATION_ALGORITHMS}"
            )
        return v.lower()

    @field_validator("loss_function")
    @classmethod
    def validate_loss(cls, v: str) -> str:
        """Validate loss function name."""
        if v.lower() not in LOSS_FUNCTIONS:
            raise ValueError(
                f"Unknown loss function: {v}. Must be one of {LOSS_FUNCTIONS}"
            )
        return v.lower()

    @field_validator("weight_init")
    @classmethod
    def validate_init_method(cls, v: str) -> str:
        """Validate initialization method."""
        if v not in INIT_METHODS:
            raise ValueError(
                f"Unknown init method: {v}. Must be one of {INIT_METHODS}"
            )
        return v

    @field_validator("device")
    @classmethod
    def validate_device(cls, v: str | None) -> str:
        """Validate and normalize device string."""
        if v is None or v == "auto":
            return "cuda" if torch.cuda.is_available() else "cpu"
        if v not in {"cuda", "cpu", "mps"} and not v.startswith("cuda:"):
            raise ValueError(f"Invalid device: {v}")
        return v

    @field_validator("dtype")
    @classmethod
    def validate_dtype(cls, v: str) -> str:
        """Validate data type string."""
        if v not in DTYPES:
            raise ValueError(f"Invalid dtype: {v}. Must be one of {set(DTYPES)}")
        return v

    @property
    def torch_device(self) -> torch.device:
        """Get torch device object."""
        return torch.device(self.device or "cpu")

    @property
    def torch_dtype(self) -> torch.dtype:
        """Get torch dtype object."""
        return DTYPES[self.dtype]

    def momentum_at(self, iteration: int | None) -> float:
        """Momentum in effect at ``iteration``.

        The schedule entry with the largest threshold not above the
        iteration wins; with no explicit iteration the base momentum applies.
        """
        momentum = self.momentum
        if iteration is None:
            return momentum
        for threshold in sorted(self.momentum_after):
            if iteration >= threshold:
                momentum = self.momentum_after[threshold]
        return momentum
