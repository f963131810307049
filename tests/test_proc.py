"""Tests for data_utils.proc module."""

import numpy as np
import pandas as pd
import pytest

from immune_classifier.data_utils.proc import (
    as_expression_frame,
    bin_expression,
    binarize_labels,
    check_break_vec,
    select_genes,
    train_data_proc,
)


class TestCheckBreakVec:
    """Tests for break-point validation."""

    def test_default_vector(self):
        breaks = check_break_vec([0, 0.25, 0.5, 0.75, 1.0])
        assert breaks.tolist() == [0.0, 0.25, 0.5, 0.75, 1.0]

    @pytest.mark.parametrize(
        "break_vec",
        [[0.0], [0.0, 0.5, 0.5, 1.0], [0.0, 0.6, 0.4, 1.0], [0.1, 0.5, 1.0], [0.0, 0.5, 0.9]],
    )
    def test_invalid_vectors(self, break_vec):
        with pytest.raises(ValueError):
            check_break_vec(break_vec)


class TestBinExpression:
    """Tests for within-sample quantile binning."""

    def test_quartile_bins_are_balanced(self, expression_data):
        expr, _ = expression_data
        binned = bin_expression(expr)

        assert binned.shape == expr.shape
        counts = binned["S0"].value_counts().sort_index()
        assert counts.index.tolist() == [1.0, 2.0, 3.0, 4.0]
        assert counts.tolist() == [25, 25, 25, 25]

    def test_bins_follow_rank_within_sample(self):
        expr = pd.DataFrame({"S0": [10.0, 1.0, 5.0, 7.0]}, index=list("abcd"))
        binned = bin_expression(expr, [0.0, 0.5, 1.0])

        assert binned["S0"].tolist() == [2.0, 1.0, 1.0, 2.0]

    def test_scale_invariant_per_sample(self, expression_data):
        expr, _ = expression_data
        scaled = expr.copy()
        scaled["S1"] = scaled["S1"] * 100 + 7

        pd.testing.assert_frame_equal(bin_expression(expr), bin_expression(scaled))

    def test_missing_values_stay_missing(self):
        expr = pd.DataFrame({"S0": [1.0, np.nan, 3.0, 4.0, 5.0]})
        binned = bin_expression(expr)

        assert np.isnan(binned.iloc[1, 0])
        assert binned["S0"].drop(1).between(1, 4).all()

    def test_numpy_input_gets_names(self):
        binned = bin_expression(np.arange(12.0).reshape(4, 3))

        assert binned.index.tolist() == ["gene_0", "gene_1", "gene_2", "gene_3"]
        assert binned.columns.tolist() == ["sample_0", "sample_1", "sample_2"]


class TestBinarizeLabels:
    """Tests for one-vs-rest label conversion."""

    def test_integer_labels(self):
        assert binarize_labels([1, 2, 1, 3], 1).tolist() == [1, 0, 1, 0]

    def test_string_labels(self):
        assert binarize_labels(["C1", "C2", "C2"], "C2").tolist() == [0, 1, 1]


class TestSelectGenes:
    """Tests for tail-based gene selection."""

    def _binned(self):
        Ybin = np.array([1, 1, 0, 0, 0, 0])
        Xbin = pd.DataFrame(
            [
                [4, 4, 1, 1, 1, 1],  # up in subtype
                [1, 1, 4, 4, 4, 4],  # down in subtype
                [2, 2, 2, 2, 2, 2],
                [3, 3, 3, 3, 3, 3],
            ],
            index=["UP", "DOWN", "FLAT1", "FLAT2"],
        )
        return Xbin, Ybin

    def test_zero_tail_keeps_extremes(self):
        Xbin, Ybin = self._binned()

        assert select_genes(Xbin, Ybin, ptail=0.0) == ["UP", "DOWN"]

    def test_result_never_empty(self, expression_data):
        expr, labels = expression_data
        genes = select_genes(bin_expression(expr), binarize_labels(labels, 2), ptail=0.01)

        assert len(genes) >= 2

    def test_signal_genes_selected(self, expression_data):
        expr, labels = expression_data
        genes = select_genes(bin_expression(expr), binarize_labels(labels, 1), ptail=0.05)

        assert {"GENE0", "GENE1", "GENE2", "GENE3", "GENE4"} & set(genes)

    def test_invalid_tail(self):
        Xbin, Ybin = self._binned()
        with pytest.raises(ValueError):
            select_genes(Xbin, Ybin, ptail=0.5)


class TestTrainDataProc:
    """Tests for the full one-subtype preparation."""

    def test_shapes_and_labels(self, expression_data):
        expr, labels = expression_data
        dat = train_data_proc(expr, labels, subtype=6, ptail=0.05)

        assert dat.features.shape == (40, len(dat.genes))
        assert dat.features.columns.tolist() == dat.genes
        assert dat.features.index.tolist() == expr.columns.tolist()
        assert dat.labels.sum() == int((labels == 6).sum())
        assert set(np.unique(dat.labels)) == {0, 1}

    def test_label_count_mismatch(self, expression_data):
        expr, labels = expression_data
        with pytest.raises(ValueError, match="must match"):
            train_data_proc(expr, labels[:-1], subtype=1)

    def test_absent_subtype(self, expression_data):
        expr, labels = expression_data
        with pytest.raises(ValueError, match="subtype"):
            train_data_proc(expr, labels, subtype=9)

    def test_frame_passthrough(self, expression_data):
        expr, _ = expression_data
        assert as_expression_frame(expr) is expr
