"""Unit tests for configuration management."""

import json
from pathlib import Path

import pytest
import torch
from pydantic import ValidationError

from rbmkit.core.config import RBMConfig
from rbmkit.core.types import HiddenUnit, VisibleUnit


def make_config(**kwargs) -> RBMConfig:
    return RBMConfig(visible_units=10, hidden_units=5, **kwargs)


class TestBaseConfig:
    """Test the base configuration behaviour."""

    def test_immutability(self):
        """Test that configs are immutable."""
        config = make_config()

        with pytest.raises(ValidationError):
            config.k = 2

    def test_from_dict(self):
        """Test creating config from dictionary."""
        config = RBMConfig.from_dict(
            {"visible_units": 3, "hidden_units": 2, "k": 4, "seed": 7}
        )

        assert config.visible_units == 3
        assert config.k == 4
        assert config.seed == 7

    def test_to_dict(self):
        """Test converting config to dictionary."""
        data = make_config(momentum_after={10: 0.9}).dict()

        assert isinstance(data, dict)
        assert data["visible_units"] == 10
        assert data["visible_unit"] == "binary"
        json.dumps(data)

    def test_with_updates(self):
        """Test creating updated config."""
        config1 = make_config(momentum_after={10: 0.9})
        config2 = config1.with_updates(k=3)

        assert config1.k == 1
        assert config2.k == 3
        assert config2.momentum_after == {10: 0.9}

    def test_from_file(self, tmp_path: Path):
        """Test loading config from JSON."""
        config = make_config(weight_init="xavier_normal", sparsity=0.05)
        path = tmp_path / "config.json"
        path.write_text(json.dumps(config.dict()))

        loaded = RBMConfig.from_file(path)

        assert loaded == config

    def test_from_file_rejects_other_formats(self, tmp_path: Path):
        """Only JSON files are supported."""
        path = tmp_path / "config.yaml"
        path.write_text("visible_units: 3")

        with pytest.raises(ValueError, match="Unsupported"):
            RBMConfig.from_file(path)


class TestRBMConfig:
    """Test RBM hyperparameters."""

    def test_defaults(self):
        """Defaults follow the classic CD-1 setup."""
        config = make_config()

        assert config.learning_rate == 0.1
        assert config.k == 1
        assert config.sparsity == 0.0
        assert config.dropout == 0.0
        assert config.visible_unit == "binary"
        assert config.hidden_unit == "binary"
        assert config.concat_biases is False
        assert config.optimization_algo == "adagrad"
        assert config.loss_function == "reconstruction_crossentropy"
        assert config.momentum == 0.5
        assert config.l2 == 0.1
        assert config.reset_adagrad_iterations == -1
        assert config.render_weights_every == -1
        assert config.seed == 123

    @pytest.mark.parametrize(
        "field,value",
        [
            ("k", 0),
            ("k", -1),
            ("learning_rate", 0.0),
            ("sparsity", 1.0),
            ("dropout", -0.1),
            ("optimization_algo", "lbfgs"),
            ("loss_function", "hinge"),
            ("weight_init", "orthogonal"),
            ("dtype", "int8"),
            ("device", "tpu"),
        ],
    )
    def test_invalid_values(self, field, value):
        """Invalid hyperparameters are rejected."""
        with pytest.raises(ValidationError):
            make_config(**{field: value})

    def test_invalid_layer_sizes(self):
        """Layer sizes must be positive."""
        with pytest.raises(ValidationError):
            RBMConfig(visible_units=0, hidden_units=5)

    def test_unit_kind_normalization(self):
        """Unit kinds are stored lower case; enums are accepted."""
        config = make_config(visible_unit="GAUSSIAN", hidden_unit=HiddenUnit.RECTIFIED)

        assert config.visible_unit == "gaussian"
        assert config.hidden_unit == "rectified"

        config = make_config(visible_unit=VisibleUnit.SOFTMAX)
        assert config.visible_unit == "softmax"

    def test_unknown_unit_kind_accepted(self):
        """The config itself does not validate kinds."""
        config = make_config(visible_unit="bogus")
        assert config.visible_unit == "bogus"

    def test_optimizer_name_lowercased(self):
        """Optimizer names are case-insensitive."""
        assert make_config(optimization_algo="SGD").optimization_algo == "sgd"

    def test_momentum_schedule(self):
        """The largest threshold not above the iteration wins."""
        config = make_config(momentum_after={10: 0.9, 5: 0.7})

        assert config.momentum_at(None) == 0.5
        assert config.momentum_at(0) == 0.5
        assert config.momentum_at(5) == 0.7
        assert config.momentum_at(9) == 0.7
        assert config.momentum_at(12) == 0.9

    def test_torch_properties(self):
        """Device and dtype resolve to torch objects."""
        config = make_config(dtype="float64", device="cpu")

        assert config.torch_dtype == torch.float64
        assert config.torch_device == torch.device("cpu")

    def test_auto_device(self):
        """'auto' resolves to an available device."""
        config = make_config(device="auto")
        assert config.device in {"cpu", "cuda"}
