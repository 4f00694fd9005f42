"""
module for the postfit residual test and data exclusion
"""

import numpy as np
from scipy.stats import chi2

from seqkflib.typeid import wgt_tbl


class pfilter():
    """
    class for the postfit outlier policy

    Parameters
    ----------
    thres_rej : float
        Hard rejection threshold in units of sigma
    thres_rw : float
        Lower bound of the re-weighting band in units of sigma
    reweight : bool
        Enable the re-weighting band (thres_rw, thres_rej]
    nmin : int
        Minimum number of satellites of a source after rejection
    alpha : float
        Significance level of the global chi-square test
    """

    def __init__(self, thres_rej=2.5, thres_rw=1.5, reweight=False, nmin=4,
                 alpha=0.001):
        self.thres_rej = thres_rej
        self.thres_rw = thres_rw
        self.reweight = reweight
        self.nmin = nmin
        self.alpha = alpha

    def sigma(self, rows, nx):
        """ unbiased noise estimate from postfit residuals of the pass """
        used = [r for r in rows if r.msg is None]
        dof = len(used)-nx
        if dof <= 0:
            return np.nan, dof
        s = sum([r.w*r.post**2 for r in used])
        return np.sqrt(s/dof), dof

    def chi2test(self, rows, nx):
        """ p-value of the global test on the weighted residuals """
        used = [r for r in rows if r.msg is None]
        dof = len(used)-nx
        if dof <= 0:
            return np.nan
        T = sum([r.w*r.post**2 for r in used])
        return chi2.sf(T, dof)

    def normres(self, rows):
        """ normalized residuals, nan for skipped rows """
        v = np.full(len(rows), np.nan)
        for k, r in enumerate(rows):
            if r.msg is None:
                v[k] = np.sqrt(r.w)*np.fabs(r.post)
        return v

    def prune_equs(self, rows, rejected):
        """ entities below the minimum satellite count in equation rows """
        sats = {}
        for r in rows:
            t, source, sat = r.equ.t, r.equ.source, r.equ.sat
            if sat is None:
                continue
            s = sats.setdefault((t, source), set())
            if (t, source, sat) not in rejected:
                s.add(sat)
        pruned = []
        for (t, source), s in sats.items():
            if len(s) >= self.nmin:
                continue
            for r in rows:
                pair = (r.equ.t, r.equ.source, r.equ.sat)
                if r.equ.t == t and r.equ.source == source and \
                        r.equ.sat is not None and pair not in pruned and \
                        pair not in rejected:
                    pruned.append(pair)
        return pruned

    def apply(self, rows, nx, gds=None, t=None):
        """
        apply the outlier policy to the rows of a pass

        Parameters
        ----------
        rows : list of Row
            Rows of the pass with postfit residuals at the end of the pass
        nx   : int
            Number of unknowns
        gds  : gdsmap
            Data map of the epoch, modified in place if given
        t    : gtime_t
            Epoch pruned in the data map, all epochs if None

        Returns
        -------
        valid      : bool
            No data rejected or re-weighted
        rejected   : list of (t, source, sat)
            Rejected satellites
        removed    : list of (t, source, sat)
            Rejected and pruned satellites
        reweighted : list of (t, source, sat, indterm, weight)
            Re-weighted satellites with new secondary weight
        sig        : float
            Noise estimate
        """
        sig, _ = self.sigma(rows, nx)
        v = self.normres(rows)

        rejected = []
        reweighted = []
        if np.isfinite(sig) and sig > 0.0:
            for k, r in enumerate(rows):
                if r.msg is None and v[k] > self.thres_rej*sig:
                    pair = (r.equ.t, r.equ.source, r.equ.sat)
                    if pair not in rejected:
                        rejected.append(pair)

            if self.reweight:
                for k, r in enumerate(rows):
                    if r.msg is not None or \
                            v[k] <= self.thres_rw*sig or \
                            v[k] > self.thres_rej*sig:
                        continue
                    pair = (r.equ.t, r.equ.source, r.equ.sat)
                    wtyp = wgt_tbl.get(r.equ.indterm)
                    if pair in rejected or wtyp is None:
                        continue
                    w = r.equ.tvm.get(wtyp, 1.0)*self.thres_rw*sig/v[k]
                    r.equ.tvm[wtyp] = w
                    reweighted.append(pair+(r.equ.indterm, w))

        if gds is not None:
            for t, source, sat in rejected:
                gds.remove_sat(source, sat, t)
            pruned = [p for p in gds.prune(self.nmin, t) if p not in rejected]
        else:
            pruned = self.prune_equs(rows, rejected)

        valid = len(rejected) == 0 and len(reweighted) == 0
        return valid, rejected, rejected+pruned, reweighted, sig
