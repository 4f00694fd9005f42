"""
module for the registry of unknowns of the current epoch
"""

from seqkflib.gnss import FilterError
from seqkflib.variable import var2str


class VarSet():
    """
    class for the ordered set of unknowns of an epoch

    Indices are valid only together with the generation gen of the
    state store the set was built against.
    """

    def __init__(self, vars=(), new=(), reset=(), gen=0):
        self.vars = sorted(set(vars))
        self.idx = {var: i for i, var in enumerate(self.vars)}
        self.new = set(new)
        self.reset = set(reset)
        self.gen = gen

    def __len__(self):
        return len(self.vars)

    def __iter__(self):
        return iter(self.vars)

    def __contains__(self, var):
        return var in self.idx

    def __getitem__(self, i):
        return self.vars[i]

    def index(self, var):
        """ index of variable in state vector """
        if var not in self.idx:
            raise FilterError("variable not registered: {}"
                              .format(var2str(var)),
                              source=var.source, sat=var.sat)
        return self.idx[var]

    def isnew(self, var):
        """ variable is introduced in this epoch """
        return var in self.new

    def isfresh(self, var):
        """ variable is (re-)initialized in this epoch """
        return var in self.new or var in self.reset or var.white

    def dropped(self, prior):
        """ variables of prior set not present in this set """
        if prior is None:
            return []
        return [var for var in prior if var not in self.idx]


def unkset(equs, prior=None, gen=0):
    """
    build the registry of unknowns referenced by the equation list

    Parameters
    ----------
    equs  : list of Equation
        Equations of the epoch
    prior : VarSet
        Committed set of the previous epoch, None if empty
    gen   : int
        Generation of the state store

    Returns
    -------
    varset : VarSet
        Ordered set of unknowns, new variables and ambiguity resets flagged
    """
    vars = set()
    reset = set()
    for equ in equs:
        if len(equ.body) == 0:
            raise FilterError("equation {} references no unknowns"
                              .format(equ.name), equ.t, equ.source, equ.sat)
        for var in equ.body:
            vars.add(var)
            if var.slip is not None and equ.tvm.get(var.slip, 0) > 0:
                reset.add(var)

    new = [var for var in vars if prior is None or var not in prior]
    reset = [var for var in reset if var not in new]
    return VarSet(vars, new, reset, gen)
