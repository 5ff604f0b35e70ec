"""Tests for the RNA-class decision cascade."""

import pytest

from rnaz.classify import DecisionVariant, ProbabilityError, build_features, classify
from rnaz.registry import ModelRegistry
from rnaz.scaling import ScaleTableError

NEUTRAL = {"z": -2.0, "sci": 0.6, "identity": 80.0, "n_seq": 4.0}


class TestBuildFeatures:
    def test_order_and_scaling(self) -> None:
        features, warnings = build_features(DecisionVariant.SEQUENCE_MONO, NEUTRAL)
        assert warnings == []
        assert features == pytest.approx(
            [
                round(-1 + 2 * (-2.0 + 8.15) / 10.15, 5),
                round(-1 + 2 * 0.6 / 1.29, 5),
                round(-1 + 2 * (80.0 - 35.0) / 65.0, 5),
                0.0,
            ]
        )

    def test_high_zscore_is_clamped(self) -> None:
        descriptors = dict(NEUTRAL, z=50.0)
        features, warnings = build_features(DecisionVariant.SEQUENCE_MONO, descriptors)
        assert features[0] == 1.0
        assert len(warnings) == 1
        assert "clamped to 2.00" in warnings[0]

    def test_z_and_sci_rounded_before_scaling(self) -> None:
        a, _ = build_features(DecisionVariant.SEQUENCE_MONO, dict(NEUTRAL, sci=0.601))
        b, _ = build_features(DecisionVariant.SEQUENCE_MONO, dict(NEUTRAL, sci=0.6))
        assert a == b

    def test_missing_descriptor(self) -> None:
        with pytest.raises(KeyError, match="entropy"):
            build_features(DecisionVariant.SEQUENCE_DI, {"z": -1.0, "sci": 0.5})

    def test_dinucleotide_variant(self) -> None:
        features, _ = build_features(
            DecisionVariant.STRUCTURAL_DI, {"z": -3.0, "sci": 0.9, "entropy": 0.5}
        )
        assert len(features) == 3


class TestClassify:
    def test_probability_in_unit_interval(self, registry) -> None:
        for variant, descriptors in [
            ("sequence_mono", NEUTRAL),
            ("sequence_di", {"z": -4.0, "sci": 1.1, "entropy": 0.3}),
            ("structural_di", {"z": 1.0, "sci": 0.1, "entropy": 1.2}),
        ]:
            result = classify(variant, descriptors, registry)
            assert 0.0 <= result.probability <= 1.0

    def test_clamped_zscore_matches_trained_maximum(self, registry) -> None:
        clamped = classify("sequence_mono", dict(NEUTRAL, z=50.0), registry)
        at_max = classify("sequence_mono", dict(NEUTRAL, z=2.0), registry)
        assert clamped.probability == at_max.probability
        assert clamped.warnings and not at_max.warnings

    def test_sci_monotonicity(self, registry) -> None:
        probabilities = [
            classify("sequence_mono", dict(NEUTRAL, sci=sci), registry).probability
            for sci in (0.5, 0.7, 0.9, 1.1, 1.29)
        ]
        assert probabilities == sorted(probabilities)

    def test_structured_alignment_is_rna(self, registry) -> None:
        result = classify(
            DecisionVariant.SEQUENCE_MONO,
            {"z": -6.0, "sci": 1.1, "identity": 75.0, "n_seq": 4.0},
            registry,
        )
        assert result.is_rna
        unstructured = classify(
            DecisionVariant.SEQUENCE_MONO,
            {"z": 0.5, "sci": 0.2, "identity": 75.0, "n_seq": 4.0},
            registry,
        )
        assert not unstructured.is_rna

    def test_malformed_model_is_fatal(self, tmp_path) -> None:
        (tmp_path / "decision.model").write_text(
            "svm_type c_svc\nkernel_type linear\nnr_class 2\ntotal_sv 2\nrho 0\n"
            "label 1 -1\nprobA nan\nprobB 0\nnr_sv 1 1\nSV\n1 1:1\n-1 1:-1\n"
        )
        with pytest.raises(ProbabilityError):
            classify("sequence_mono", NEUTRAL, ModelRegistry(tmp_path))

    def test_unknown_variant(self, registry) -> None:
        with pytest.raises(ValueError, match="sequence_mono"):
            classify("structural_mono", NEUTRAL, registry)

    def test_model_wider_than_variant_is_fatal(self, tmp_path) -> None:
        (tmp_path / "decision.model").write_text(
            "svm_type c_svc\nkernel_type linear\nnr_class 2\ntotal_sv 2\nrho 0\n"
            "label 1 -1\nprobA -1.5\nprobB 0\nnr_sv 1 1\nSV\n1 1:0.8 6:-0.1\n-1 1:-0.8 6:0.1\n"
        )
        with pytest.raises(ScaleTableError, match="decision.model"):
            classify("sequence_mono", NEUTRAL, ModelRegistry(tmp_path))
