"""
module for commonly used equation templates in PPP
"""

from copy import copy

from seqkflib.gnss import rCST
from seqkflib.typeid import uTYPE
from seqkflib.equation import Equation, Lookup
from seqkflib.variable import var_dx, var_dy, var_dz, var_cdt, var_trop
from seqkflib.variable import var_ion, var_ambLC, var_ambL1, var_ambL2
from seqkflib.variable import var_ambWL

# GPS L1/L2 wavelengths [m] and ionospheric factor
lam1 = rCST.CLIGHT/rCST.FREQ_G1
lam2 = rCST.CLIGHT/rCST.FREQ_G2
lamWL = rCST.CLIGHT/(rCST.FREQ_G1-rCST.FREQ_G2)
gamma = (rCST.FREQ_G1/rCST.FREQ_G2)**2

# Observation noise: phase is 100x more precise than code
wgtC = 1.0
wgtL = 1.0e4
wgtMW = 4.0


def geometry(equ, kinematic=False):
    """ add receiver position and clock to the equation """
    for var in (var_dx, var_dy, var_dz):
        if kinematic:
            var = copy(var)
            var.white = True
        # line-of-sight component, no contribution if not available
        equ.addvar(var, Lookup(var.typ, 0.0))
    equ.addvar(var_cdt, 1.0)
    return equ


def ppp_ionofree(kinematic=False, trop=True):
    """ templates for ionosphere-free PPP, code before phase """

    equPC = Equation(uTYPE.prefitC, wgtC, "PC")
    geometry(equPC, kinematic)
    if trop:
        equPC.addvar(var_trop)

    equLC = Equation(uTYPE.prefitL, wgtL, "LC")
    geometry(equLC, kinematic)
    if trop:
        equLC.addvar(var_trop)
    equLC.addvar(var_ambLC, 1.0)

    return [equPC, equLC]


def ppp_uncombined(kinematic=False, trop=True):
    """ templates for uncombined PPP with slant ionosphere estimation """

    equP1 = Equation(uTYPE.prefitP1, wgtC, "P1")
    geometry(equP1, kinematic)
    equP1.addvar(var_ion, 1.0)

    equP2 = Equation(uTYPE.prefitP2, wgtC, "P2")
    geometry(equP2, kinematic)
    equP2.addvar(var_ion, gamma)

    equL1 = Equation(uTYPE.prefitL1, wgtL, "L1")
    geometry(equL1, kinematic)
    equL1.addvar(var_ion, -1.0)
    equL1.addvar(var_ambL1, lam1)

    equL2 = Equation(uTYPE.prefitL2, wgtL, "L2")
    geometry(equL2, kinematic)
    equL2.addvar(var_ion, -gamma)
    equL2.addvar(var_ambL2, lam2)

    equs = [equP1, equP2, equL1, equL2]
    if trop:
        for equ in equs:
            equ.addvar(var_trop)
    return equs


def mw_widelane():
    """ template for Melbourne-Wubbena wide-lane ambiguity """
    equMW = Equation(uTYPE.prefitMW, wgtMW, "MW")
    equMW.addvar(var_ambWL, lamWL)
    return [equMW]
