"""
Test for the filter state store
"""

import numpy as np
import pytest

from seqkflib.equation import Equation
from seqkflib.gnss import FilterError, epoch2time, timeadd
from seqkflib.statestore import statestore
from seqkflib.typeid import uTYPE
from seqkflib.unknown import VarSet, unkset
from seqkflib.variable import Variable

t0 = epoch2time([2021, 3, 19, 12, 0, 0])

var_a = Variable(uTYPE.wetMap, srcidx=False, var0=4.0, qprime=0.01, x0=0.5)
var_b = Variable(uTYPE.ambLC, srcidx=False, var0=9.0, slip=uTYPE.CSL1)
var_c = Variable(uTYPE.cdt, srcidx=False, var0=25.0, white=True)
var_d = Variable(uTYPE.ionoL1, srcidx=False, var0=16.0)


def equs_of(vars, t=t0, tvm=None):
    equ = Equation(uTYPE.prefitC)
    for var in vars:
        equ.addvar(var, 1.0)
    if tvm is None:
        tvm = {uTYPE.prefitC: 0.0}
    return [equ.instance(t, None, None, tvm)]


def commit_first(store):
    """ commit a state with correlated a, b, c """
    vs = unkset(equs_of([var_a, var_b, var_c]), None, store.gen)
    x = np.array([1.0, 2.0, 3.0])
    P = np.array([[3.0, 0.5, 0.2],
                  [0.5, 2.0, 0.1],
                  [0.2, 0.1, 1.0]])
    store.set_state(x)
    store.set_covar(P)
    store.set_varset(vs)
    store.commit(t0)
    return vs, x, P


def test_new_unknowns():
    store = statestore()
    vs = unkset(equs_of([var_a, var_c]), None, store.gen)

    x = store.get_state(vs)
    P = store.get_covar(vs, t0)
    # ordering by type: cdt, wetMap
    np.testing.assert_array_equal(x, [0.0, 0.5])
    np.testing.assert_array_equal(P, np.diag([25.0, 4.0]))


def test_retained():
    store = statestore()
    vs0, x0, P0 = commit_first(store)
    assert store.gen == 1
    assert store.value(var_b) == x0[vs0.index(var_b)]

    t1 = timeadd(t0, 30.0)
    prior, gen, _ = store.snapshot()
    vs = unkset(equs_of([var_a, var_b, var_c, var_d], t1), prior, gen)

    x = store.get_state(vs)
    P = store.get_covar(vs, t1)

    # cdt (white), wetMap, ionoL1 (new), ambLC
    ic, ia, id_, ib = [vs.index(v) for v in (var_c, var_a, var_d, var_b)]
    assert x[ia] == x0[vs0.index(var_a)]
    assert x[ib] == x0[vs0.index(var_b)]
    assert x[ic] == var_c.x0
    assert x[id_] == var_d.x0

    # cross-covariance of retained variables carried over
    assert P[ia, ib] == P0[vs0.index(var_a), vs0.index(var_b)]
    # random walk added to the process variable
    assert P[ia, ia] == pytest.approx(P0[vs0.index(var_a),
                                         vs0.index(var_a)]+0.01*30.0)
    assert P[ib, ib] == P0[vs0.index(var_b), vs0.index(var_b)]
    # fresh variables are uncorrelated
    assert P[ic, ic] == 25.0 and P[id_, id_] == 16.0
    for i in (ia, ib):
        assert P[ic, i] == 0.0 and P[i, ic] == 0.0
        assert P[id_, i] == 0.0 and P[i, id_] == 0.0
    np.testing.assert_array_equal(P, P.T)


def test_reset():
    store = statestore()
    commit_first(store)
    prior, gen, _ = store.snapshot()
    vs = unkset(equs_of([var_a, var_b],
                        tvm={uTYPE.prefitC: 0.0, uTYPE.CSL1: 1.0}),
                prior, gen)
    x = store.get_state(vs)
    P = store.get_covar(vs)
    ib = vs.index(var_b)
    ia = vs.index(var_a)
    assert x[ib] == 0.0
    assert P[ib, ib] == 9.0
    assert P[ia, ib] == 0.0
    assert x[ia] == store.value(var_a)


def test_stale_generation():
    store = statestore()
    vs = unkset(equs_of([var_a]), None, store.gen)
    commit_first(store)
    with pytest.raises(FilterError):
        store.get_state(vs)
    with pytest.raises(FilterError):
        store.get_covar(vs)


def test_missing_prior():
    store = statestore()
    commit_first(store)
    # var_d claimed as retained but not in the committed state
    vs = VarSet([var_a, var_d], new=[], gen=store.gen)
    with pytest.raises(FilterError) as e:
        store.get_state(vs)
    assert "no prior state" in str(e.value)


def test_commit_mismatch():
    store = statestore()
    vs0, x0, P0 = commit_first(store)

    prior, gen, _ = store.snapshot()
    vs = unkset(equs_of([var_a, var_b, var_c, var_d]), prior, gen)
    store.set_state(np.zeros(3))
    store.set_covar(np.eye(4))
    store.set_varset(vs)
    with pytest.raises(FilterError):
        store.commit(t0)

    # committed state is unchanged
    assert store.gen == 1
    assert store.varset.vars == vs0.vars
    np.testing.assert_array_equal(store.x, x0)
    np.testing.assert_array_equal(store.P, P0)

    # staged values are discarded after a failed commit
    with pytest.raises(FilterError):
        store.commit(t0)


def test_commit_invalid():
    store = statestore()
    vs = unkset(equs_of([var_a, var_b]), None, store.gen)

    store.set_state(np.zeros(2))
    store.set_covar(np.array([[1.0, 0.1], [0.2, 1.0]]))
    store.set_varset(vs)
    with pytest.raises(FilterError):
        store.commit(t0)

    store.set_state(np.array([0.0, np.nan]))
    store.set_covar(np.eye(2))
    store.set_varset(vs)
    with pytest.raises(FilterError):
        store.commit(t0)

    assert store.gen == 0
    assert len(store.varset) == 0


def test_commit_stale():
    store = statestore()
    vs = unkset(equs_of([var_a]), None, store.gen)
    commit_first(store)
    store.set_state(np.zeros(1))
    store.set_covar(np.eye(1))
    store.set_varset(vs)
    with pytest.raises(FilterError):
        store.commit(t0)
    assert store.gen == 1
