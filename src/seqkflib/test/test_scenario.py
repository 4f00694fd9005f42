"""
Test for the filter over two epochs with a changing set of unknowns
"""

import numpy as np
import pytest

from seqkflib.equation import Equation
from seqkflib.gnss import epoch2time, timeadd
from seqkflib.measupd import measupd
from seqkflib.typeid import uTYPE
from seqkflib.unknown import unkset
from seqkflib.variable import Variable

D = 1.0e4

var_a = Variable(uTYPE.wetMap, srcidx=False, var0=D)
var_b = Variable(uTYPE.cdt, srcidx=False, var0=D, white=True)
var_c = Variable(uTYPE.ionoL1, srcidx=False, var0=D)

t1 = epoch2time([2021, 3, 19, 12, 0, 0])
t2 = timeadd(t1, 30.0)


def equ_of(vars, z, t):
    equ = Equation(uTYPE.prefitC, 1.0)
    for var in vars:
        equ.addvar(var, 1.0)
    return equ.instance(t, 'ONSA', 1, {uTYPE.prefitC: z})


def test_two_epochs():
    flt = measupd()

    # epoch 1: z = a + b = 5
    sol1 = flt.process_equs([equ_of([var_a, var_b], 5.0, t1)])
    beta = 1.0+2.0*D

    xa = flt.store.value(var_a)
    assert xa == flt.store.value(var_b)
    assert xa == pytest.approx(5.0*D/beta, rel=1e-12)
    assert flt.store.variance(var_a) == pytest.approx(D-D*D/beta, rel=1e-9)
    iab = (sol1.varset.index(var_a), sol1.varset.index(var_b))
    assert sol1.P[iab] == pytest.approx(-D*D/beta, rel=1e-9)

    # epoch 2: z = a + c = 3, b is dropped, c is new
    equs = [equ_of([var_a, var_c], 3.0, t2)]
    prior, gen, _ = flt.store.snapshot()
    vs = unkset(equs, prior, gen)
    assert list(vs) == [var_a, var_c]
    assert vs.isnew(var_c) and not vs.isnew(var_a)
    assert vs.dropped(prior) == [var_b]

    P = flt.store.get_covar(vs, t2)
    x = flt.store.get_state(vs)
    Paa = flt.store.variance(var_a)
    np.testing.assert_array_equal(P, [[Paa, 0.0], [0.0, D]])
    np.testing.assert_array_equal(x, [xa, 0.0])

    sol2 = flt.process_equs(equs)
    Ka = Paa/(Paa+D+1.0)
    assert sol2.value(var_a) == pytest.approx(xa+Ka*(3.0-xa), rel=1e-9)
    assert var_b not in flt.store.varset
    assert flt.store.gen == 2


def test_sequential_epochs():
    # epoch-wise processing equals joint processing of a process variable
    var = Variable(uTYPE.wetMap, srcidx=False, var0=D)
    flt = measupd()
    flt.process_equs([equ_of([var], 1.0, t1)])
    flt.process_equs([equ_of([var], 2.0, t2)])

    x = 0.0
    P = D
    for z in (1.0, 2.0):
        K = P/(P+1.0)
        x += K*(z-x)
        P -= K*P
    assert flt.store.value(var) == pytest.approx(x, rel=1e-12)
    assert flt.store.variance(var) == pytest.approx(P, rel=1e-9)
