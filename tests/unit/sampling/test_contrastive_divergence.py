"""Unit tests for CD-k gradient estimation."""

import math

import pytest
import torch

from rbmkit.core.exceptions import ConfigurationError
from rbmkit.sampling.gradient import ContrastiveDivergence, GradientBundle


def zero_parameters(model) -> None:
    with torch.no_grad():
        model.W.zero_()
        model.vbias.zero_()
        model.hbias.zero_()


class TestGradientBundle:
    """Test the gradient container."""

    def test_as_dict(self):
        bundle = GradientBundle(torch.ones(2, 3), torch.zeros(3), torch.zeros(2))
        grads = bundle.as_dict()

        assert set(grads) == {"W", "hbias", "vbias"}
        assert grads["W"] is bundle.weight

    def test_norms(self):
        bundle = GradientBundle(torch.ones(2, 2), torch.zeros(2), torch.ones(2))
        norms = bundle.norms()

        assert norms["weight_grad_norm"] == pytest.approx(2.0)
        assert norms["hbias_grad_norm"] == 0.0
        assert norms["vbias_grad_norm"] == pytest.approx(math.sqrt(2))


class TestContrastiveDivergence:
    """Test CD-k gradient assembly."""

    def test_gradient_shapes(self, small_rbm, binary_batch):
        gradient = ContrastiveDivergence(k=1).estimate_gradient(small_rbm, binary_batch)

        assert gradient.weight.shape == small_rbm.W.shape
        assert gradient.hidden_bias.shape == small_rbm.hbias.shape
        assert gradient.visible_bias.shape == small_rbm.vbias.shape
        assert not gradient.weight.requires_grad

    @pytest.mark.parametrize("hidden_unit", ["binary", "gaussian", "softmax", "rectified"])
    @pytest.mark.parametrize("visible_unit", ["binary", "gaussian", "softmax", "linear"])
    def test_gradient_shapes_all_kinds(
        self, make_rbm, real_batch, visible_unit, hidden_unit
    ):
        model = make_rbm(visible_unit=visible_unit, hidden_unit=hidden_unit, k=2)
        gradient = model.get_gradient(real_batch)

        assert gradient.weight.shape == (6, 4)
        assert torch.isfinite(gradient.weight).all()

    def test_zero_fixed_point(self, make_rbm, fixed_random):
        """A 1x1 all-zero model on input [[1]] has zero gradients."""
        model = make_rbm(visible_units=1, hidden_units=1, random=fixed_random)
        zero_parameters(model)

        gradient = ContrastiveDivergence(k=1).estimate_gradient(model, torch.ones(1, 1))

        assert torch.equal(gradient.weight, torch.zeros(1, 1))
        assert torch.equal(gradient.hidden_bias, torch.zeros(1))
        assert torch.equal(gradient.visible_bias, torch.zeros(1))

    def test_zero_fixed_point_leaves_parameters(self, make_rbm, fixed_random):
        model = make_rbm(visible_units=1, hidden_units=1, random=fixed_random)
        zero_parameters(model)

        model.contrastive_divergence(torch.ones(1, 1))

        assert torch.equal(model.W, torch.zeros(1, 1))
        assert torch.equal(model.vbias, torch.zeros(1))
        assert torch.equal(model.hbias, torch.zeros(1))

    def test_weight_summed_biases_averaged(self, make_rbm, fixed_random):
        """Weight gradient sums over rows; bias gradients average."""
        model = make_rbm(visible_units=1, hidden_units=1, random=fixed_random)
        zero_parameters(model)

        # h0 = (0.5, 1); v1 = (0.5, 1); h1 mean = 0.5 on every row
        gradient = model.get_gradient(torch.zeros(3, 1))

        assert gradient.weight.item() == pytest.approx(-1.5)
        assert gradient.visible_bias.item() == pytest.approx(-1.0)
        assert gradient.hidden_bias.item() == pytest.approx(0.0)

    def test_sparsity_target(self, make_rbm, fixed_random):
        model = make_rbm(visible_units=2, hidden_units=2, random=fixed_random, sparsity=0.1)
        zero_parameters(model)

        gradient = model.get_gradient(torch.ones(3, 2))

        assert torch.allclose(gradient.hidden_bias, torch.full((2,), -0.4))

    @pytest.mark.parametrize("k", [0, -1])
    def test_rejects_invalid_chain_length(self, small_rbm, binary_batch, k):
        with pytest.raises(ConfigurationError):
            ContrastiveDivergence(k=1).estimate_gradient(small_rbm, binary_batch, k=k)

    def test_chain_length_override(self, small_rbm, binary_batch):
        estimator = ContrastiveDivergence(k=1)
        estimator.estimate_gradient(small_rbm, binary_batch, k=3)
        assert estimator.sampler.num_steps_taken == 3

    def test_last_negative_samples(self, small_rbm, binary_batch):
        estimator = ContrastiveDivergence(k=2)
        assert estimator.last_negative_samples is None

        estimator.estimate_gradient(small_rbm, binary_batch)

        assert estimator.last_negative_samples.shape == binary_batch.shape

    def test_compute_metrics_accepts_lists(self, small_rbm, binary_batch):
        estimator = ContrastiveDivergence(k=1)
        estimator.estimate_gradient(small_rbm, binary_batch)

        metrics = estimator.compute_metrics(small_rbm, binary_batch.tolist())

        assert math.isfinite(metrics["reconstruction_error"])

    def test_compute_metrics(self, small_rbm, binary_batch):
        estimator = ContrastiveDivergence(k=1)
        estimator.estimate_gradient(small_rbm, binary_batch)

        metrics = estimator.compute_metrics(small_rbm, binary_batch)

        assert set(metrics) == {
            "data_energy",
            "sample_energy",
            "energy_gap",
            "reconstruction_error",
        }
        assert all(math.isfinite(value) for value in metrics.values())
