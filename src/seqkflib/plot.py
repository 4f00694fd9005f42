"""
module for plotting
"""

import numpy as np
import matplotlib.pyplot as plt


def plot_state(t, x, sig, lbl=None, nsig=3.0):
    """ plot estimates with nsig-sigma bounds """
    n = x.shape[1]
    fig, ax = plt.subplots(n, 1, sharex=True, squeeze=False)
    for k in range(n):
        ax[k, 0].plot(t, x[:, k], '-b')
        ax[k, 0].fill_between(t, x[:, k]-nsig*sig[:, k],
                              x[:, k]+nsig*sig[:, k],
                              facecolor='b', alpha=0.2)
        if lbl is not None:
            ax[k, 0].set_ylabel(lbl[k])
        ax[k, 0].grid()
    ax[-1, 0].set_xlabel('time [s]')
    return fig


def plot_res(t, res, ylim=None):
    """ plot postfit residuals of all equations per epoch """
    fig, ax = plt.subplots(1, 1)
    for ne, v in enumerate(res):
        if len(v) == 0:
            continue
        ax.plot(np.full(len(v), t[ne]), v, '.k', markersize=2)
    ax.set_ylabel('postfit residual')
    ax.set_xlabel('time [s]')
    if ylim is not None:
        ax.set_ylim([-ylim, ylim])
    ax.grid()
    return fig
