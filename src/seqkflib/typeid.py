"""
module for typed-value identifiers
"""

from enum import IntEnum


class uTYPE(IntEnum):
    """ class for typed-value identifiers """

    NONE = -1

    # independent terms (prefit residuals)
    prefitC = 1
    prefitL = 2
    prefitP1 = 3
    prefitP2 = 4
    prefitL1 = 5
    prefitL2 = 6
    prefitMW = 7

    # secondary weights
    weightC = 10
    weightL = 11
    weightMW = 12

    # coefficients and unknowns
    dx = 20
    dy = 21
    dz = 22
    cdt = 23
    wetMap = 24
    ionoL1 = 25
    satClock = 26
    ambLC = 30
    ambL1 = 31
    ambL2 = 32
    ambWL = 33

    # cycle-slip flags
    CSL1 = 40
    CSL2 = 41

    # auxiliary model values
    elevation = 50
    rho = 51


# independent term -> secondary weight
wgt_tbl = {uTYPE.prefitC: uTYPE.weightC,
           uTYPE.prefitP1: uTYPE.weightC,
           uTYPE.prefitP2: uTYPE.weightC,
           uTYPE.prefitL: uTYPE.weightL,
           uTYPE.prefitL1: uTYPE.weightL,
           uTYPE.prefitL2: uTYPE.weightL,
           uTYPE.prefitMW: uTYPE.weightMW}


def typ2str(typ):
    """ convert typed-value identifier to string """
    try:
        return uTYPE(typ).name
    except ValueError:
        return "?{}".format(typ)


def wgtval(indterm, tvm):
    """ secondary weight of an independent term, 1.0 if not available """
    wtyp = wgt_tbl.get(indterm)
    if wtyp is None or wtyp not in tvm:
        return 1.0
    return tvm[wtyp]
