"""Tests for feature scaling tables."""

import pytest

from rnaz.scaling import (
    DECISION_SEQUENCE_MONO_SCALE,
    DI_REGRESSION_SCALE,
    MONO_AVG_TARGET,
    ScaleTable,
    ScaleTableError,
)


def test_linear_maps_bounds_to_unit_interval() -> None:
    table = DECISION_SEQUENCE_MONO_SCALE
    assert table.linear([-8.15, 0.0, 35.0, 2.0]) == pytest.approx([-1.0] * 4)
    assert table.linear([2.0, 1.29, 100.0, 6.0]) == pytest.approx([1.0] * 4)


def test_znormalize() -> None:
    table = ScaleTable("t", {1: (10.0, 2.0), 2: (0.0, 0.5)})
    assert table.znormalize([14.0, -1.0]) == pytest.approx([2.0, -2.0])


def test_clamp() -> None:
    assert DECISION_SEQUENCE_MONO_SCALE.clamp(1, 50.0) == 2.0
    assert DECISION_SEQUENCE_MONO_SCALE.clamp(1, -50.0) == -8.15
    assert DECISION_SEQUENCE_MONO_SCALE.clamp(1, 0.5) == 0.5


def test_missing_entry_is_fatal() -> None:
    with pytest.raises(ScaleTableError, match="feature 5"):
        DECISION_SEQUENCE_MONO_SCALE.linear([0.0] * 5)
    with pytest.raises(ScaleTableError):
        DECISION_SEQUENCE_MONO_SCALE.require_arity(5)
    DECISION_SEQUENCE_MONO_SCALE.require_arity(4)


def test_dinucleotide_table_covers_twenty_features() -> None:
    assert len(DI_REGRESSION_SCALE) == 20
    DI_REGRESSION_SCALE.require_arity(20)


def test_table_is_read_only() -> None:
    with pytest.raises(TypeError):
        DECISION_SEQUENCE_MONO_SCALE.entries[1] = (0.0, 1.0)


def test_target_backscale() -> None:
    assert MONO_AVG_TARGET.backscale(0.0) == pytest.approx(-58.60276)
    assert MONO_AVG_TARGET.backscale(1.0) == pytest.approx(-58.60276 + 45.24618)
