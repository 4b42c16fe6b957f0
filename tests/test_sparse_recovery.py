"""Tests for 1-sparse and s-sparse recovery."""

import random

import pytest

from streamgraph.errors import CapacityError, IncompatibleMergeError, InputError
from streamgraph.sketches.base import SketchState
from streamgraph.sketches.sparse_recovery import (
    OneSparseRecovery,
    RecoveryStatus,
    SparseRecovery,
)

# (coordinate, insert?) tokens; the net vector is 1 at coordinate 6
ONE_SPARSE_TOKENS = [
    (0, True), (9, True), (7, True), (6, True), (7, True), (9, True), (7, True),
    (9, False), (7, False), (9, False), (7, False), (0, False), (7, False),
]


def _feed(sketch, tokens):
    for index, insert in tokens:
        sketch.update(index, 1 if insert else -1)
    return sketch


class TestOneSparseRecovery:
    def test_true_positive(self):
        rec = _feed(OneSparseRecovery(10), ONE_SPARSE_TOKENS).query()
        assert rec.status is RecoveryStatus.ONE_SPARSE
        assert (rec.index, rec.value) == (6, 1)

    def test_true_zero(self):
        rec = _feed(OneSparseRecovery(10), ONE_SPARSE_TOKENS + [(6, False)]).query()
        assert rec.status is RecoveryStatus.ZERO

    def test_true_negative(self):
        rec = _feed(OneSparseRecovery(10), ONE_SPARSE_TOKENS[:7]).query()
        assert rec.status is RecoveryStatus.NOT_ONE_SPARSE

    def test_negative_value(self):
        s = OneSparseRecovery(100)
        s.update(42, -3)
        rec = s.query()
        assert (rec.index, rec.value) == (42, -3)

    def test_no_false_positives_over_seeds(self):
        for seed in range(200):
            s = OneSparseRecovery(1000, seed=seed)
            s.update(10, 2)
            s.update(30, 1)
            s.update(20, -1)
            assert s.query().status is RecoveryStatus.NOT_ONE_SPARSE

    def test_out_of_universe(self):
        with pytest.raises(InputError):
            OneSparseRecovery(10).update(10)

    def test_state_machine(self):
        s = OneSparseRecovery(10)
        assert s.state is SketchState.EMPTY
        s.update(1)
        assert s.state is SketchState.ACCUMULATING
        s.query()
        assert s.state is SketchState.QUERIED
        s.update(2)
        assert s.state is SketchState.ACCUMULATING


class TestSparseRecovery:
    def test_recovers_sparse_vector(self):
        s = SparseRecovery(5000, sparsity=20, seed=3)
        truth = {17: 1, 400: 2, 4999: -1, 0: 5}
        for index, value in truth.items():
            s.update(index, value)
        assert s.query() == truth

    def test_zero_vector(self):
        s = SparseRecovery(100, sparsity=4)
        s.update(5, 1)
        s.update(5, -1)
        assert s.query() == {}

    def test_dense_vector_reported(self):
        s = SparseRecovery(5000, sparsity=100, seed=1)
        for token in range(400):
            s.update(token)
        assert s.query() is None

    def test_success_rate_over_seeds(self):
        successes = 0
        for seed in range(100):
            rng = random.Random(seed)
            truth = {i: rng.choice([-2, -1, 1, 3]) for i in rng.sample(range(10000), 30)}
            s = SparseRecovery(10000, sparsity=30, delta=0.01, seed=seed)
            for index, value in truth.items():
                s.update(index, value)
            successes += s.query() == truth
        assert successes >= 95

    def test_merge_equals_whole(self):
        tokens = [(i * 7 % 300, 1 if i % 3 else -1) for i in range(60)]
        whole = SparseRecovery(300, sparsity=64, seed=2)
        left = SparseRecovery(300, sparsity=64, seed=2)
        right = SparseRecovery(300, sparsity=64, seed=2)
        for i, (index, delta) in enumerate(tokens):
            whole.update(index, delta)
            (left if i % 2 else right).update(index, delta)
        assert left.merge(right) == whole
        assert left + right == whole

    def test_merge_refuses_other_seed(self):
        with pytest.raises(IncompatibleMergeError):
            SparseRecovery(100, 4, seed=1).merge(SparseRecovery(100, 4, seed=2))

    def test_capacity_checks(self):
        with pytest.raises(CapacityError):
            SparseRecovery(100, sparsity=0)
        with pytest.raises(CapacityError):
            SparseRecovery(1 << 41, sparsity=4)
