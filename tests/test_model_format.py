"""Tests for the SVM model text format."""

import numpy as np
import pytest

from rnaz import model_format as mf
from rnaz.default_models import DEFAULT_MODELS

RBF_MODEL = """\
svm_type c_svc
kernel_type rbf
gamma 0.5
nr_class 2
total_sv 3
rho -0.2
label 1 -1
probA -1.5
probB 0.1
nr_sv 2 1
SV
0.7 1:0.5 2:-0.25
0.3 1:-1 3:0.75
-1 2:1 3:-0.5
"""


class TestParse:
    """Parsing model texts."""

    def test_dense_matrix_from_sparse_lines(self) -> None:
        model = mf.parse_model(RBF_MODEL)
        assert model.svm_type == "c_svc"
        assert model.kernel_type == "rbf"
        assert model.gamma == 0.5
        assert model.total_sv == 3
        assert model.n_features == 3
        assert model.nr_sv == (2, 1)
        assert model.label == (1, -1)
        np.testing.assert_array_equal(
            model.support_vectors,
            [[0.5, -0.25, 0.0], [-1.0, 0.0, 0.75], [0.0, 1.0, -0.5]],
        )
        np.testing.assert_array_equal(model.sv_coef, [[0.7, 0.3, -1.0]])

    def test_every_default_model_parses(self) -> None:
        for name, text in DEFAULT_MODELS.items():
            model = mf.parse_model(text)
            assert model.total_sv >= 1, name

    def test_builtin_models_are_linear_placeholders(self) -> None:
        for name, text in DEFAULT_MODELS.items():
            model = mf.parse_model(text)
            assert model.kernel_type == "linear", name
            assert model.total_sv <= 2, name

    def test_unknown_key(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="unknown header key"):
            mf.parse_model(RBF_MODEL.replace("gamma 0.5", "gama 0.5"))

    def test_unknown_kernel(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="kernel_type"):
            mf.parse_model(RBF_MODEL.replace("kernel_type rbf", "kernel_type cubic"))

    def test_missing_sv_line(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="SV"):
            mf.parse_model(RBF_MODEL.split("SV\n")[0])

    def test_short_sv_section(self) -> None:
        text = RBF_MODEL.rstrip("\n").rsplit("\n", 1)[0] + "\n"
        with pytest.raises(mf.ModelFormatError, match="support vector line"):
            mf.parse_model(text)

    def test_malformed_pair(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="index:value"):
            mf.parse_model(RBF_MODEL.replace("1:0.5 2:-0.25", "1:0.5 2=-0.25"))

    def test_nr_sv_mismatch(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="nr_sv"):
            mf.parse_model(RBF_MODEL.replace("nr_sv 2 1", "nr_sv 2 2"))

    def test_missing_required_key(self) -> None:
        with pytest.raises(mf.ModelFormatError, match="rho"):
            mf.parse_model(RBF_MODEL.replace("rho -0.2\n", ""))


class TestRoundTrip:
    """File, string and serialized forms agree."""

    def test_file_and_string_predict_identically(self, tmp_path) -> None:
        path = tmp_path / "decision.model"
        path.write_text(DEFAULT_MODELS["decision.model"])

        from_file = mf.load_model(path)
        from_text = mf.parse_model(DEFAULT_MODELS["decision.model"])

        for features in ([0.1, -0.5, 0.3, 1.0], [-1.0, 1.0, 0.0, -0.2], [0.0, 0.0, 0.0, 0.0]):
            assert from_file.predict_probability(features) == from_text.predict_probability(
                features
            )
        assert from_file == from_text

    def test_dump_then_parse_is_equal(self, tmp_path) -> None:
        model = mf.parse_model(RBF_MODEL)
        path = tmp_path / "m.model"
        mf.save_model(model, path)
        assert mf.load_model(path) == model
