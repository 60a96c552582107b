"""Global pytest configuration and fixtures for the rbmkit test suite.

This module provides:
- Test configuration and setup
- Shared configs, models and data batches
- A stub random source with fixed draws
- Tensor comparison utilities
"""

import os
from collections.abc import Generator

import matplotlib

matplotlib.use("Agg")

import numpy as np  # noqa: E402
import pytest  # noqa: E402
import torch  # noqa: E402
from _pytest.config import Config  # noqa: E402

from rbmkit.core.config import RBMConfig  # noqa: E402
from rbmkit.models.rbm import RBM  # noqa: E402
from rbmkit.utils.random import RandomSource  # noqa: E402

# Configure random seeds for reproducibility
SEED = 42

VISIBLE_KINDS = ["binary", "gaussian", "softmax", "linear"]
HIDDEN_KINDS = ["binary", "gaussian", "softmax", "rectified"]


def pytest_configure(config: Config) -> None:
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )


@pytest.fixture(scope="session", autouse=True)
def configure_testing_environment() -> None:
    """Configure the testing environment."""
    np.random.seed(SEED)
    torch.manual_seed(SEED)
    os.environ["PYTHONHASHSEED"] = str(SEED)


class FixedRandomSource(RandomSource):
    """Random source whose Bernoulli draw is 1 wherever p >= 0.5.

    Gaussian noise is zero, so every stochastic unit returns its mean
    (binary units excepted, which round at 0.5).
    """

    def bernoulli(self, prob: torch.Tensor) -> torch.Tensor:
        return (prob >= 0.5).to(prob.dtype)

    def normal(self, like, mean=0.0, std=1.0):
        return mean + std * torch.zeros_like(like)


@pytest.fixture
def fixed_random() -> FixedRandomSource:
    """Provide a random source with deterministic draws."""
    return FixedRandomSource(seed=0)


@pytest.fixture
def small_rbm_config() -> RBMConfig:
    """Provide a small binary-binary RBM configuration."""
    return RBMConfig(
        visible_units=6,
        hidden_units=4,
        learning_rate=0.1,
        k=1,
        device="cpu",
        dtype="float32",
        seed=SEED,
    )


@pytest.fixture
def small_rbm(small_rbm_config) -> RBM:
    """Provide a small binary-binary RBM."""
    return RBM(small_rbm_config)


@pytest.fixture
def make_rbm():
    """Factory fixture for RBMs with arbitrary configuration overrides."""

    def _make_rbm(
        visible_units: int = 6,
        hidden_units: int = 4,
        random: RandomSource | None = None,
        **kwargs,
    ) -> RBM:
        config = RBMConfig(
            visible_units=visible_units,
            hidden_units=hidden_units,
            device="cpu",
            seed=kwargs.pop("seed", SEED),
            **kwargs,
        )
        return RBM(config, random=random)

    return _make_rbm


@pytest.fixture
def zero_rbm(make_rbm, fixed_random) -> RBM:
    """Binary RBM with all-zero weights and biases and fixed draws."""
    model = make_rbm(visible_units=2, hidden_units=2, random=fixed_random)
    with torch.no_grad():
        model.W.zero_()
        model.vbias.zero_()
        model.hbias.zero_()
    return model


@pytest.fixture
def binary_batch() -> torch.Tensor:
    """Provide a small batch of binary data."""
    generator = torch.Generator().manual_seed(SEED)
    return (torch.rand(8, 6, generator=generator) > 0.5).float()


@pytest.fixture
def real_batch() -> torch.Tensor:
    """Provide a small batch of real-valued data."""
    generator = torch.Generator().manual_seed(SEED)
    return torch.randn(8, 6, generator=generator)


@pytest.fixture
def assert_tensors_equal():
    """Fixture providing tensor comparison utility."""

    def _assert_tensors_equal(
        actual: torch.Tensor,
        expected: torch.Tensor,
        rtol: float = 1e-5,
        atol: float = 1e-6,
        msg: str = "",
    ) -> None:
        """Assert that two tensors are equal within tolerance."""
        assert actual.shape == expected.shape, (
            f"Shape mismatch: {actual.shape} vs {expected.shape}"
        )
        assert torch.allclose(actual, expected, rtol=rtol, atol=atol), (
            f"Tensor values not close. {msg}\n"
            f"Max diff: {(actual - expected).abs().max():.6e}"
        )

    return _assert_tensors_equal


@pytest.fixture(autouse=True)
def close_figures() -> Generator[None, None, None]:
    """Close any matplotlib figures a test left open."""
    yield
    import matplotlib.pyplot as plt

    plt.close("all")
