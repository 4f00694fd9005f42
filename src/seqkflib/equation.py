"""
module for observation equation descriptors
"""

import numpy as np

from seqkflib.gnss import sat2id, time2str
from seqkflib.typeid import typ2str, wgtval


class Fixed():
    """ coefficient fixed by convention """

    def __init__(self, value=1.0):
        self.value = value

    def __repr__(self):
        return "Fixed({})".format(self.value)


class Lookup():
    """ coefficient looked up by type, with default if not available """

    def __init__(self, typ=None, default=1.0):
        self.typ = typ
        self.default = default

    def __repr__(self):
        return "Lookup({}, {})".format(
            typ2str(self.typ) if self.typ is not None else "-", self.default)


def coefval(coef, var, tvm):
    """ resolve the coefficient of var against the typed-value bag """
    if isinstance(coef, Fixed):
        return coef.value
    typ = var.typ if coef.typ is None else coef.typ
    if typ in tvm:
        return tvm[typ]
    return coef.default


class Equation():
    """
    class to define an observation equation

    An equation without source/sat is a template. instance() binds the
    variables of a template to an entity and attaches the typed-value bag.
    """

    def __init__(self, indterm, weight=1.0, name=None, sources=None):
        self.indterm = indterm
        self.weight = weight
        self.name = name if name is not None else typ2str(indterm)
        # restrict template to a set of sources, None for all
        self.sources = sources
        self.t = None
        self.source = None
        self.sat = None
        self.tvm = {}
        self.body = {}

    def __repr__(self):
        return "{} {} {} {}".format(self.name, time2str(self.t),
                                    self.source if self.source else "-",
                                    sat2id(self.sat))

    def addvar(self, var, coef=None):
        """
        add variable with coefficient

        coef is a Fixed/Lookup instance, a float (fixed coefficient) or None
        (looked up by the variable type with default 1.0)
        """
        if coef is None:
            coef = Lookup(var.typ, 1.0)
        elif not isinstance(coef, (Fixed, Lookup)):
            coef = Fixed(float(coef))
        self.body[var] = coef
        return self

    def entity(self):
        """ owning (source, sat) pair """
        return (self.source, self.sat)

    def instance(self, t, source, sat, tvm):
        """ bind template to epoch, source, satellite and typed values """
        equ = Equation(self.indterm, self.weight, self.name)
        equ.t = t
        equ.source = source
        equ.sat = sat
        equ.tvm = tvm
        for var, coef in self.body.items():
            equ.body[var.bind(source, sat)] = coef
        return equ


def resolve(equ):
    """
    resolve independent term, effective weight and coefficients

    Returns
    -------
    z   : float
        Independent term (prefit residual)
    w   : float
        Effective weight (base weight x secondary weight)
    G   : np.array of float values
        Coefficients of the variables in body order
    msg : str
        Reason to skip the equation, None if valid
    """
    tvm = equ.tvm
    try:
        G = np.array([coefval(coef, var, tvm)
                      for var, coef in equ.body.items()], dtype=float)
    except (TypeError, ValueError):
        G = np.full(len(equ.body), np.nan)

    if equ.indterm not in tvm:
        return 0.0, 0.0, G, "no independent term"
    try:
        z = float(tvm[equ.indterm])
    except (TypeError, ValueError):
        return np.nan, 0.0, G, "invalid independent term {!r}" \
            .format(tvm[equ.indterm])
    try:
        w = float(equ.weight*wgtval(equ.indterm, tvm))
    except (TypeError, ValueError):
        return z, np.nan, G, "invalid weight {!r}" \
            .format(wgtval(equ.indterm, tvm))

    if not np.isfinite(z):
        return z, w, G, "invalid independent term {}".format(z)
    if not np.isfinite(w) or w <= 0.0:
        return z, w, G, "invalid weight {}".format(w)
    if not np.all(np.isfinite(G)):
        return z, w, G, "invalid coefficient"
    return z, w, G, None
