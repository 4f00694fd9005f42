"""
module for the definition of unknown parameters (variables)
"""

from copy import copy
import numpy as np

from seqkflib.gnss import FilterError, sat2id
from seqkflib.typeid import uTYPE, typ2str


class Variable():
    """
    class to define an unknown parameter

    The identity of a variable is (typ, source, sat). A variable with
    srcidx/satidx set is a template until bound to an entity with bind().

    Parameters
    ----------
    typ : uTYPE
        Parameter type, also the default coefficient lookup key
    srcidx : bool
        Variable is indexed by source (receiver)
    satidx : bool
        Variable is indexed by satellite
    var0 : float
        Default variance when the variable is introduced
    white : bool
        White-noise variable, re-initialized every epoch
    qprime : float
        Random-walk spectral density of a process variable [unit^2/s]
    x0 : float
        Prior mean when the variable is introduced
    slip : uTYPE
        Cycle-slip flag type resetting the variable, None if not applicable
    """

    def __init__(self, typ, srcidx=True, satidx=False, var0=4.0e14,
                 white=False, qprime=0.0, x0=0.0, slip=None,
                 source=None, sat=None):
        try:
            self.typ = uTYPE(typ)
        except ValueError:
            raise FilterError("unknown variable type {}".format(typ)) \
                from None
        self.srcidx = srcidx
        self.satidx = satidx
        self.var0 = var0
        self.white = white
        self.qprime = qprime
        self.x0 = x0
        self.slip = slip
        self.source = source
        self.sat = sat

    def key(self):
        """ total order key (type, source, sat) """
        return (int(self.typ),
                "" if self.source is None else self.source,
                0 if self.sat is None else self.sat)

    def __eq__(self, other):
        if not isinstance(other, Variable):
            return NotImplemented
        return self.key() == other.key()

    def __hash__(self):
        return hash(self.key())

    def __lt__(self, other):
        return self.key() < other.key()

    def __repr__(self):
        return var2str(self)

    def bind(self, source=None, sat=None):
        """ return the variable bound to source/sat """
        var = copy(self)
        var.source = source if self.srcidx else None
        var.sat = sat if self.satidx else None
        return var


def var2str(var):
    """ convert variable to string """
    txt = typ2str(var.typ)
    if var.source is not None:
        txt += " {}".format(var.source)
    if var.sat is not None:
        txt += " {}".format(sat2id(var.sat))
    return txt


# Receiver position (static)
var_dx = Variable(uTYPE.dx, var0=100.0**2)
var_dy = Variable(uTYPE.dy, var0=100.0**2)
var_dz = Variable(uTYPE.dz, var0=100.0**2)

# Receiver clock offset [m]
var_cdt = Variable(uTYPE.cdt, var0=9.0e10, white=True)

# Satellite clock offset [m]
var_satclk = Variable(uTYPE.satClock, srcidx=False, satidx=True,
                      var0=9.0e10, white=True)

# Zenith wet tropospheric delay [m]
var_trop = Variable(uTYPE.wetMap, var0=0.1**2,
                    qprime=(0.05/np.sqrt(3600))**2, x0=0.1)

# Slant ionospheric delay on L1 [m]
var_ion = Variable(uTYPE.ionoL1, satidx=True, var0=10.0**2, white=True)

# Ionosphere-free ambiguity [m]
var_ambLC = Variable(uTYPE.ambLC, satidx=True, var0=100.0**2,
                     slip=uTYPE.CSL1)

# L1/L2 ambiguities [cyc]
var_ambL1 = Variable(uTYPE.ambL1, satidx=True, var0=30.0**2,
                     slip=uTYPE.CSL1)
var_ambL2 = Variable(uTYPE.ambL2, satidx=True, var0=30.0**2,
                     slip=uTYPE.CSL2)

# Wide-lane ambiguity [cyc]
var_ambWL = Variable(uTYPE.ambWL, satidx=True, var0=30.0**2,
                     slip=uTYPE.CSL1)
