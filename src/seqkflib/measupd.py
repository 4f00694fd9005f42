"""
module for the sequential measurement update of the filter
"""

import threading
from concurrent.futures import ThreadPoolExecutor
from sys import stdout
import numpy as np

from seqkflib.gnss import FilterError, time2str, sat2id
from seqkflib.equation import resolve
from seqkflib.eqsys import eqsys
from seqkflib.outlier import pfilter
from seqkflib.statestore import statestore
from seqkflib.typeid import typ2str
from seqkflib.unknown import unkset
from seqkflib.variable import var2str

# format definition for logging
fmt_row = "{}  {:8s} {} {:4s} row {:4d} z {:12.4f} w {:10.3e} " + \
    "beta {:10.3e} res {:10.4f}\n"
fmt_skip = "{}  {:8s} {} - skip {} row {:4d}: {}\n"
fmt_rej = "{}  {:8s} {} - rejected, sigma {:10.4f}\n"
fmt_rmv = "{}  {:8s} {} - removed, less than {:d} satellites\n"
fmt_rw = "{}  {:8s} {} - reweight {} {:10.3e}\n"
fmt_var = "{}  {} - {}\n"
fmt_sum = "{}  pass {:d} nequ {:4d} nx {:4d} sigma {:10.4f} " + \
    "chi2-p {:8.5f}\n"


class Row():
    """ class for an equation row of a pass """

    def __init__(self, equ, z=0.0, w=0.0, msg=None):
        self.equ = equ
        self.z = z
        self.w = w
        self.msg = msg
        self.G = np.zeros(0)
        self.idx = np.zeros(0, dtype=int)
        self.beta = np.nan
        # residual after the update of the row
        self.res = np.nan
        # residual against the state at the end of the pass
        self.post = np.nan


class Sol():
    """ class for the solution of an epoch """

    def __init__(self, t=None):
        self.t = t
        self.varset = None
        self.x = np.zeros(0)
        self.P = np.zeros((0, 0))
        self.equs = []
        self.rows = []
        self.rejected = []
        self.removed = []
        self.reweighted = []
        self.sigma = np.nan
        self.chi2p = np.nan
        self.niter = 0
        self.valid = True
        self.gds = None

    @property
    def res(self):
        """ postfit residuals at the end of the pass, nan for skipped rows """
        return np.array([r.post for r in self.rows])

    @property
    def skipped(self):
        """ skipped rows as (row, reason) """
        return [(k, r.msg) for k, r in enumerate(self.rows)
                if r.msg is not None]

    def value(self, var):
        """ estimate of a variable """
        return self.x[self.varset.index(var)]

    def variance(self, var):
        """ variance of a variable """
        i = self.varset.index(var)
        return self.P[i, i]


def covrows(P, K, M, rows):
    """ covariance update of rows i, owning cells (i,j>=i) and (j>i,i) """
    for i in rows:
        P[i, i:] -= K[i]*M[i:]
        P[i+1:, i] = P[i, i+1:]


class measupd():
    """
    class for the sequential measurement update

    Equations are processed one at a time in list order as scalar
    Kalman filter updates. The state is read from and committed to the
    state store; nothing is committed if a pass fails.
    """

    def __init__(self, equsys=None, store=None, logfile=None, monlevel=0,
                 nthread=0, thres_rej=2.5, thres_rw=1.5, reweight=False,
                 maxiter=1, nmin=4, alpha=0.001):

        self.eqsys = eqsys() if equsys is None else equsys
        self.store = statestore() if store is None else store

        # Outlier policy
        #
        self.pf = pfilter(thres_rej=thres_rej, thres_rw=thres_rw,
                          reweight=reweight, nmin=nmin, alpha=alpha)

        # number of passes, 1: single pass without retry
        self.maxiter = maxiter

        # threads for covariance update, 0/1: serial
        self.nthread = nthread
        self._pool = None

        self._lock = threading.Lock()

        # Logging level
        #
        self.monlevel = monlevel
        self.fout = None
        if logfile is not None:
            self.fout = open(logfile, 'w')

    def set_config(self, config):
        """ apply configuration dictionary """
        cfg = config.get('filter', {})
        self.monlevel = cfg.get('monlevel', self.monlevel)
        self.nthread = cfg.get('nthread', self.nthread)

        cfg = config.get('outlier', {})
        self.maxiter = cfg.get('maxiter', self.maxiter)
        self.pf.thres_rej = cfg.get('thres_rej', self.pf.thres_rej)
        self.pf.thres_rw = cfg.get('thres_rw', self.pf.thres_rw)
        self.pf.reweight = cfg.get('reweight', self.pf.reweight)
        self.pf.nmin = cfg.get('nmin', self.pf.nmin)
        self.pf.alpha = cfg.get('alpha', self.pf.alpha)

    def close(self):
        """ release thread pool and log file """
        if self._pool is not None:
            self._pool.shutdown()
            self._pool = None
        if self.fout is not None:
            self.fout.close()
            self.fout = None

    def trace(self, level, txt):
        """ output log message of level """
        if self.monlevel < level:
            return
        if self.fout is None:
            stdout.write(txt)
        else:
            self.fout.write(txt)

    def covupd(self, P, K, M):
        """ covariance update P = P - K*M' on the upper triangle """
        n = len(K)
        if self.nthread > 1 and n > 1:
            if self._pool is None:
                self._pool = ThreadPoolExecutor(max_workers=self.nthread)
            nt = min(self.nthread, n)
            futs = [self._pool.submit(covrows, P, K, M, np.arange(k, n, nt))
                    for k in range(nt)]
            for fut in futs:
                fut.result()
        else:
            KM = np.outer(K, M)
            iu = np.triu_indices(n)
            P[iu] -= KM[iu]
            P[iu[1], iu[0]] = P[iu]

    def update(self, equs, varset, x, P, t=None):
        """
        sequential measurement update, x and P are updated in place

        Parameters
        ----------
        equs   : list of Equation
            Equations in processing order
        varset : VarSet
            Registry of unknowns indexing x and P
        x      : np.array of float values
            State vector
        P      : np.array of float values
            Covariance matrix

        Returns
        -------
        rows : list of Row
            Rows with the residual after the update of the row (res) and
            the residual at the end of the pass (post)
        """
        rows = []
        for k, equ in enumerate(equs):

            z, w, G, msg = resolve(equ)
            row = Row(equ, z, w, msg)
            rows.append(row)

            if msg is None:
                idx = np.array([varset.index(var) for var in equ.body],
                               dtype=int)

                # M = P*G', innovation variance and Kalman gain
                M = P[:, idx]@G
                beta = 1.0/w+G@M[idx]
                if not np.isfinite(beta) or beta <= 0.0:
                    row.msg = "invalid innovation variance {}".format(beta)

            if row.msg is not None:
                self.trace(1, fmt_skip.format(time2str(equ.t), str(equ.source),
                                              sat2id(equ.sat), equ.name, k,
                                              row.msg))
                continue

            K = M/beta
            x += K*(z-G@x[idx])
            self.covupd(P, K, M)

            row.G = G
            row.idx = idx
            row.beta = beta
            row.res = z-G@x[idx]

            self.trace(3, fmt_row.format(time2str(equ.t), str(equ.source),
                                         sat2id(equ.sat), equ.name, k, z, w,
                                         beta, row.res))

        self.postfit(rows, x)
        return rows

    def postfit(self, rows, x):
        """ postfit residuals z-G*x against the state x of the pass """
        for row in rows:
            if row.msg is None:
                row.post = row.z-row.G@x[row.idx]

    def _run(self, t, build, gds=None):
        """ run the passes, fatal errors are reported with the epoch """
        try:
            return self._solve(t, build, gds)
        except FilterError as e:
            if e.t is not None or t is None:
                raise
            raise FilterError(e.msg, t, e.source, e.sat) from e

    def _solve(self, t, build, gds=None):
        """ passes with outlier policy and commit of the state """

        sol = Sol(t)
        sol.gds = gds

        with self._lock:

            prior, _, _ = self.store.snapshot()

            for it in range(1, self.maxiter+1):

                equs, varset = build(sol.removed)
                if len(equs) == 0:
                    self.trace(1, "{}  no equations to process\n"
                               .format(time2str(t)))
                    return None

                for var in varset.reset:
                    self.trace(1, fmt_var.format(time2str(t), var2str(var),
                                                 "reset"))
                for var in varset.dropped(prior):
                    self.trace(2, fmt_var.format(time2str(t), var2str(var),
                                                 "dropped"))

                x = self.store.get_state(varset)
                P = self.store.get_covar(varset, t)

                rows = self.update(equs, varset, x, P, t)

                valid, rejected, removed, reweighted, sig = \
                    self.pf.apply(rows, len(varset), gds, t)
                chi2p = self.pf.chi2test(rows, len(varset))

                self.trace(2, fmt_sum.format(time2str(t), it, len(equs),
                                             len(varset), sig, chi2p))
                if chi2p < self.pf.alpha:
                    self.trace(1, "{}  chi-square test failed p={:.3e}\n"
                               .format(time2str(t), chi2p))
                for t_, source, sat in rejected:
                    self.trace(1, fmt_rej.format(time2str(t_), str(source),
                                                 sat2id(sat), sig))
                for t_, source, sat in removed:
                    if (t_, source, sat) not in rejected:
                        self.trace(1, fmt_rmv.format(time2str(t_),
                                                     str(source),
                                                     sat2id(sat),
                                                     self.pf.nmin))
                for t_, source, sat, typ, w in reweighted:
                    self.trace(1, fmt_rw.format(time2str(t_), str(source),
                                                sat2id(sat), typ2str(typ), w))

                sol.equs = equs
                sol.rows = rows
                sol.varset = varset
                sol.x = x
                sol.P = P
                sol.sigma = sig
                sol.chi2p = chi2p
                sol.niter = it
                sol.valid = valid
                sol.rejected += [p for p in rejected
                                 if p not in sol.rejected]
                sol.removed += [p for p in removed if p not in sol.removed]
                sol.reweighted += reweighted

                if valid:
                    break

            self.store.set_state(x)
            self.store.set_covar(P)
            self.store.set_varset(varset)
            self.store.commit(t)

            self.trace(2, "{}  commit {:d} unknowns\n"
                       .format(time2str(t), len(varset)))

        return sol

    def process(self, gds):
        """
        process the latest epoch of the data map

        Only the data of the latest epoch is used; data of earlier epochs
        in the map is left untouched. The data map is modified in place by
        the outlier policy: rejected satellites, sources below the minimum
        satellite count and an empty epoch are removed.
        """
        t = gds.last()
        if t is None:
            return None

        def build(removed):
            return self.eqsys.prepare(gds, self.store, t)

        return self._run(t, build, gds)

    def process_equs(self, equs, t=None):
        """
        process a list of equations built by the caller

        A retry of the pass excludes the equations of removed
        (t, source, sat) pairs.
        """
        if len(equs) > 0 and t is None:
            t = equs[0].t

        def build(removed):
            equs_ = [equ for equ in equs
                     if (equ.t, equ.source, equ.sat) not in removed]
            prior, gen, _ = self.store.snapshot()
            return equs_, unkset(equs_, prior, gen)

        return self._run(t, build)
