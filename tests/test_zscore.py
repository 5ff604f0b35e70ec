"""Tests for the z-score engine."""

import random

import pytest

from rnaz.background import BackgroundMode
from rnaz.config import ScoringConfig
from rnaz.registry import ModelRegistry
from rnaz.zscore import ZScoreEngine


def _engine(registry, oracle, seed=1, **config) -> ZScoreEngine:
    config.setdefault("n_shuffles", 60)
    return ZScoreEngine(registry, oracle, ScoringConfig(seed=seed, **config))


class TestRegression:
    def test_balanced_sequence_uses_regression(self, registry, oracle, balanced_seq) -> None:
        result = _engine(registry, oracle).zscore(balanced_seq, -37.5)
        assert result.mode is BackgroundMode.MONO_REGRESSION
        assert result.warnings == []
        assert result.mean == pytest.approx(-23.84, abs=0.01)
        assert result.z == pytest.approx((-37.5 - result.mean) / result.stdev)
        assert oracle.fold_calls == 0

    def test_positive_energy_means_fold_first(self, registry, oracle, balanced_seq) -> None:
        result = _engine(registry, oracle).zscore(balanced_seq)
        assert oracle.fold_calls == 1
        assert result.mfe == oracle.energy(balanced_seq)

    def test_empty_sequence(self, registry, oracle) -> None:
        with pytest.raises(ValueError):
            _engine(registry, oracle).zscore("")


class TestShuffling:
    def test_short_sequence_falls_back(self, registry, oracle) -> None:
        seq = "GGCAUCGAUCGAUCGCCAAU"
        result = _engine(registry, oracle).zscore(seq, -6.0)
        assert result.mode is BackgroundMode.MONO_SHUFFLE
        assert len(result.warnings) == 1
        assert oracle.fold_calls == 60

    def test_dinucleotide_low_gc(self, registry, oracle, at_rich_seq) -> None:
        engine = _engine(registry, oracle, background="dinucleotide")
        result = engine.zscore(at_rich_seq, -20.0)
        assert result.mode is BackgroundMode.DI_SHUFFLE
        assert any("base composition out of range" in w.lower() for w in result.warnings)

    def test_zero_stdev_gives_zero(self, registry, oracle, balanced_seq) -> None:
        # Every dinucleotide shuffle of ACGU repeats is the sequence itself.
        engine = _engine(registry, oracle)
        result = engine.zscore(balanced_seq, -37.5, mode=BackgroundMode.DI_SHUFFLE)
        assert result.stdev == 0.0
        assert result.z == 0.0

    def test_deterministic_for_seed(self, registry, oracle) -> None:
        seq = "GGCAUCGAUCGAUCGCCAAU"
        a = _engine(registry, oracle, seed=42).zscore(seq, -6.0)
        b = _engine(registry, oracle, seed=42).zscore(seq, -6.0)
        assert a.z == b.z
        assert a.mean == b.mean

    def test_explicit_rng(self, registry, oracle) -> None:
        seq = "GGCAUCGAUCGAUCGCCAAU"
        config = ScoringConfig(n_shuffles=30)
        a = ZScoreEngine(registry, oracle, config, random.Random(9)).zscore(seq, -6.0)
        b = ZScoreEngine(registry, oracle, config, random.Random(9)).zscore(seq, -6.0)
        assert a.z == b.z

    def test_failed_dinucleotide_shuffle_reports_mono_mode(
        self, registry, oracle, balanced_seq
    ) -> None:
        engine = _engine(registry, oracle, n_shuffles=30, max_shuffle_tries=0)
        result = engine.zscore(balanced_seq, -37.5, mode=BackgroundMode.DI_SHUFFLE)
        assert result.mode is BackgroundMode.MONO_SHUFFLE
        assert any("Falling back to mononucleotide" in w for w in result.warnings)
        assert oracle.fold_calls == 30
        assert result.stdev > 0


class TestImplausibleRegression:
    def test_retries_with_shuffling(self, tmp_path, oracle, balanced_seq) -> None:
        # Mean model predicting a positive MFE.
        (tmp_path / "mfe_avg.model").write_text(
            "svm_type epsilon_svr\nkernel_type linear\nnr_class 2\ntotal_sv 1\n"
            "rho -5\nSV\n1 4:0\n"
        )
        registry = ModelRegistry(tmp_path)
        result = _engine(registry, oracle).zscore(balanced_seq, -37.5)
        assert result.mode is BackgroundMode.MONO_SHUFFLE
        assert any("Implausible regression estimate" in w for w in result.warnings)
        assert oracle.fold_calls == 60
