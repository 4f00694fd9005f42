"""
Utility functions for seqkflib
"""

from sys import stdout
import numpy as np
import matplotlib.pyplot as plt

from seqkflib.gnss import time2str, timediff
from seqkflib.plot import plot_state, plot_res
from seqkflib.variable import var2str


class process:
    """ class to process the filter over a sequence of epochs """

    def __init__(self, flt=None, config=None, nep=0, vars=[]):
        self.flt = flt
        self.config = config
        self.nep = nep
        self.vars = list(vars)
        self.t0 = None

        if config is not None:
            self.flt.set_config(config)

        # Initialize data structures for results
        #
        self.t = np.zeros(nep)
        self.x = np.ones((nep, len(self.vars)))*np.nan
        self.sig = np.ones((nep, len(self.vars)))*np.nan
        self.nequ = np.zeros(nep, dtype=int)
        self.nrej = np.zeros(nep, dtype=int)
        self.res = [np.zeros(0) for _ in range(nep)]

    def step(self, ne, gds):
        """ process epoch ne and save the output """

        sol = self.flt.process(gds)
        if sol is None:
            return None

        if self.t0 is None:
            self.t0 = sol.t
        self.t[ne] = timediff(sol.t, self.t0)

        for k, var in enumerate(self.vars):
            if var not in sol.varset:
                continue
            self.x[ne, k] = sol.value(var)
            self.sig[ne, k] = np.sqrt(sol.variance(var))

        self.nequ[ne] = len(sol.rows)
        self.nrej[ne] = len(sol.rejected)
        self.res[ne] = sol.res

        self.flt.trace(1, "{} nequ {:4d} nx {:4d} rejected {:3d} "
                       "removed {:3d} sigma {:8.4f}\n"
                       .format(time2str(sol.t), len(sol.rows),
                               len(sol.varset), len(sol.rejected),
                               len(sol.removed), sol.sigma))

        # Log to standard output
        #
        stdout.write('\r {} nequ {:4d} nx {:4d} sigma {:8.4f}'
                     .format(time2str(sol.t), len(sol.rows),
                             len(sol.varset), sol.sigma))
        return sol

    def run(self, gds_list):
        """ process the data maps of all epochs """
        sols = []
        for ne, gds in enumerate(gds_list):
            if ne >= self.nep:
                break
            sols.append(self.step(ne, gds))
        return sols

    def close(self):
        """ finish processing """

        # Send line-break to stdout
        #
        stdout.write('\n')

        self.flt.close()

    def plot(self, ttl='test', gfmt='png', dpi=300):
        """ plot estimates and postfit residuals """

        lbl = [var2str(var) for var in self.vars]

        fig = plot_state(self.t, self.x, self.sig, lbl)
        fname = '.'.join((ttl+'_state', gfmt))
        fig.savefig(fname, format=gfmt, bbox_inches='tight', dpi=dpi)
        plt.close(fig)

        fig = plot_res(self.t, self.res)
        fname_r = '.'.join((ttl+'_res', gfmt))
        fig.savefig(fname_r, format=gfmt, bbox_inches='tight', dpi=dpi)
        plt.close(fig)

        return fname, fname_r
