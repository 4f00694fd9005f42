"""
module for the filter state persisted across epochs
"""

import threading
import numpy as np

from seqkflib.gnss import FilterError, timediff
from seqkflib.unknown import VarSet
from seqkflib.variable import var2str


class statestore():
    """
    class for the state vector and covariance matrix of the filter

    The committed state is replaced only by commit(); readers always
    observe a fully committed epoch.
    """

    def __init__(self):
        self._lock = threading.RLock()
        self.reset()

    def reset(self):
        """ clear the committed state """
        with self._lock:
            self.varset = VarSet()
            self.x = np.zeros(0)
            self.P = np.zeros((0, 0))
            self.t = None
            self.gen = 0
            self._pend = {}

    def snapshot(self):
        """ committed registry, generation and epoch """
        with self._lock:
            return self.varset, self.gen, self.t

    def _check(self, varset):
        """ check the registry against the committed state """
        if varset.gen != self.gen:
            raise FilterError("registry generation {} does not match "
                              "state generation {}"
                              .format(varset.gen, self.gen))
        for var in varset:
            if not varset.isnew(var) and var not in self.varset:
                raise FilterError("no prior state for {}"
                                  .format(var2str(var)),
                                  source=var.source, sat=var.sat)

    def get_state(self, varset):
        """ state vector reindexed to varset """
        with self._lock:
            self._check(varset)
            x = np.zeros(len(varset))
            for i, var in enumerate(varset):
                if varset.isfresh(var):
                    x[i] = var.x0
                else:
                    x[i] = self.x[self.varset.index(var)]
            return x

    def get_covar(self, varset, t=None):
        """
        covariance matrix reindexed to varset

        Variables (re-)initialized in this epoch get their default
        variance and zero covariance with all other variables. Retained
        process variables get the random-walk noise since the committed
        epoch added to the variance.
        """
        with self._lock:
            self._check(varset)
            n = len(varset)
            P = np.zeros((n, n))
            ri = []
            pj = []
            for i, var in enumerate(varset):
                if varset.isfresh(var):
                    P[i, i] = var.var0
                else:
                    ri.append(i)
                    pj.append(self.varset.index(var))
            if len(ri) > 0:
                P[np.ix_(ri, ri)] = self.P[np.ix_(pj, pj)]

            dt = 0.0
            if t is not None and self.t is not None:
                dt = timediff(t, self.t)
            if dt > 0.0:
                for i in ri:
                    P[i, i] += varset[i].qprime*dt
            return P

    def set_state(self, x):
        """ stage state vector for commit """
        with self._lock:
            self._pend['x'] = np.array(x, dtype=float)

    def set_covar(self, P):
        """ stage covariance matrix for commit """
        with self._lock:
            self._pend['P'] = np.array(P, dtype=float)

    def set_varset(self, varset):
        """ stage registry for commit """
        with self._lock:
            self._pend['varset'] = varset

    def commit(self, t=None):
        """
        replace the committed state by the staged one

        The staged state is checked for consistency first; on failure the
        committed state is kept and FilterError is raised.
        """
        with self._lock:
            pend = self._pend
            self._pend = {}

            if 'x' not in pend or 'P' not in pend or 'varset' not in pend:
                raise FilterError("incomplete state for commit", t)

            x = pend['x']
            P = pend['P']
            varset = pend['varset']
            n = len(varset)

            if x.shape != (n,) or P.shape != (n, n):
                raise FilterError("state size {} / covariance size {} does "
                                  "not match {} unknowns"
                                  .format(x.shape, P.shape, n), t)
            if varset.gen != self.gen:
                raise FilterError("registry generation {} does not match "
                                  "state generation {}"
                                  .format(varset.gen, self.gen), t)
            if not np.array_equal(P, P.T):
                raise FilterError("covariance is not symmetric", t)
            if not np.all(np.isfinite(x)) or not np.all(np.isfinite(P)):
                raise FilterError("state is not finite", t)

            self.gen += 1
            self.varset = VarSet(varset.vars, gen=self.gen)
            self.x = x
            self.P = P
            self.t = t

    def value(self, var):
        """ committed estimate of a variable """
        with self._lock:
            return self.x[self.varset.index(var)]

    def variance(self, var):
        """ committed variance of a variable """
        with self._lock:
            i = self.varset.index(var)
            return self.P[i, i]
