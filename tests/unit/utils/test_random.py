"""Unit tests for the seeded random source."""

import torch

from rbmkit.utils.random import RandomSource


class TestRandomSource:
    """Test reproducible draws."""

    def test_same_seed_same_draws(self):
        like = torch.zeros(4, 5)
        first, second = RandomSource(seed=7), RandomSource(seed=7)

        assert torch.equal(first.uniform(like), second.uniform(like))
        assert torch.equal(first.normal(like), second.normal(like))

    def test_manual_seed_restarts_stream(self):
        source = RandomSource(seed=1)
        like = torch.zeros(3)
        expected = source.uniform(like)

        source.manual_seed(1)

        assert torch.equal(source.uniform(like), expected)
        assert source.seed == 1

    def test_bernoulli_values(self):
        source = RandomSource(seed=0)
        draws = source.bernoulli(torch.full((100,), 0.5))

        assert set(draws.unique().tolist()) <= {0.0, 1.0}
        assert torch.equal(source.bernoulli(torch.ones(5)), torch.ones(5))
        assert torch.equal(source.bernoulli(torch.zeros(5)), torch.zeros(5))

    def test_normal_mean_and_std(self):
        source = RandomSource(seed=0)
        draws = source.normal(torch.zeros(10000), mean=2.0, std=0.5)

        assert abs(draws.mean().item() - 2.0) < 0.05
        assert abs(draws.std().item() - 0.5) < 0.05

    def test_dropout_mask(self):
        source = RandomSource(seed=0)
        like = torch.zeros(4, 4)

        assert torch.equal(source.dropout_mask(like, 0.0), torch.ones(4, 4))
        mask = source.dropout_mask(like, 0.5)
        assert set(mask.unique().tolist()) <= {0.0, 1.0}

    def test_unseeded(self):
        source = RandomSource(seed=None)
        assert isinstance(source.seed, int)
        assert "RandomSource" in repr(source)
