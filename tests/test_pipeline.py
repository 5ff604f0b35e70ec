"""Tests for scoring whole alignment windows."""

import pytest

from rnaz.background import BackgroundMode
from rnaz.config import ScoringConfig
from rnaz.pipeline import ScoringContext, score_window

SHORT = "GGCAUCGAUCGAUCGCCAAU"


@pytest.fixture
def context(registry, oracle) -> ScoringContext:
    return ScoringContext(registry=registry, oracle=oracle, config=ScoringConfig(seed=3, n_shuffles=40))


class TestScoreWindow:
    def test_identical_balanced_pair_is_warning_free(self, context, balanced_seq) -> None:
        result = score_window([balanced_seq, balanced_seq], context, identity=100.0)
        assert not result.warnings
        assert result.n_seq == 2
        assert result.sci == pytest.approx(1.0)
        assert all(z.mode is BackgroundMode.MONO_REGRESSION for z in result.zscores)
        assert result.mean_z == pytest.approx(result.zscores[0].z)
        assert 0.0 <= result.probability <= 1.0
        assert result.strand is None

    def test_gaps_and_case(self, context, oracle, balanced_seq) -> None:
        gapped = balanced_seq[:50] + "--" + balanced_seq[50:]
        dna = gapped.lower().replace("u", "t")
        result = score_window([gapped, dna], context, identity=100.0)
        assert result.zscores[0].mfe == result.zscores[1].mfe == oracle.energy(balanced_seq)

    def test_short_window_warnings_are_tagged(self, context) -> None:
        result = score_window([SHORT, SHORT], context, identity=100.0)
        assert all(z.mode is BackgroundMode.MONO_SHUFFLE for z in result.zscores)
        messages = list(result.warnings)
        assert messages[0].startswith("Sequence 1: ")
        assert messages[1].startswith("Sequence 2: ")

    def test_with_strand(self, context, balanced_seq) -> None:
        result = score_window([balanced_seq, balanced_seq], context, identity=100.0, with_strand=True)
        assert result.strand is not None
        assert 0.0 <= result.strand.probability <= 1.0

    def test_strand_reuses_forward_rows(self, context, oracle, balanced_seq) -> None:
        score_window([balanced_seq, balanced_seq], context, identity=100.0, with_strand=True)
        # two forward rows, two reverse-complement rows
        assert oracle.fold_calls == 4

    def test_dinucleotide_decision_needs_entropy(self, registry, oracle, balanced_seq) -> None:
        config = ScoringConfig(decision_variant="sequence_di")
        context = ScoringContext(registry=registry, oracle=oracle, config=config)
        result = score_window([balanced_seq, balanced_seq], context, identity=60.0, entropy=0.8)
        assert result.entropy == 0.8
        assert len(result.classification.features) == 3
        with pytest.raises(KeyError, match="entropy"):
            score_window([balanced_seq, balanced_seq], context, identity=60.0)

    def test_verbose_writes_tagged_lines(self, registry, oracle, capsys) -> None:
        config = ScoringConfig(verbose=True, n_shuffles=20, seed=1)
        context = ScoringContext(registry=registry, oracle=oracle, config=config)
        score_window([SHORT, SHORT], context, identity=100.0)
        err = capsys.readouterr().err
        assert "[WARN] Sequence 1:" in err
        assert "[INFO] n_seq=2" in err

    def test_rejects_bad_windows(self, context) -> None:
        with pytest.raises(ValueError):
            score_window(["ACGU"], context, identity=100.0)
        with pytest.raises(ValueError):
            score_window(["ACGU", "ACG"], context, identity=100.0)

    def test_seeded_contexts_agree(self, registry, oracle) -> None:
        config = ScoringConfig(seed=5, n_shuffles=30)
        a = score_window([SHORT, SHORT], ScoringContext(registry, oracle, config), identity=90.0)
        b = score_window([SHORT, SHORT], ScoringContext(registry, oracle, config), identity=90.0)
        assert a.mean_z == b.mean_z
        assert a.probability == b.probability

    def test_context_from_config(self, oracle) -> None:
        context = ScoringContext.from_config(ScoringConfig(), oracle)
        assert context.registry.model_dir is None
        assert context.engine.oracle is oracle
