"""
module for GNSS data maps: epoch -> source -> satellite -> typed values
"""

from copy import deepcopy
import numpy as np


class gdsmap():
    """ class to hold typed-value bags by epoch, source and satellite """

    def __init__(self):
        self.data = {}

    def __len__(self):
        return len(self.data)

    def __contains__(self, key):
        t, source, sat = key
        return t in self.data and source in self.data[t] and \
            sat in self.data[t][source]

    def copy(self):
        """ return a deep copy of the data map """
        return deepcopy(self)

    def insert(self, t, source, sat, typ, value):
        """ insert a single typed value """
        self.data.setdefault(t, {}).setdefault(source, {}) \
            .setdefault(sat, {})[typ] = value

    def insertvalues(self, t, source, sat, tvm):
        """ insert typed values of a satellite """
        self.data.setdefault(t, {}).setdefault(source, {}) \
            .setdefault(sat, {}).update(tvm)

    def tvm(self, t, source, sat):
        """ typed-value bag of a satellite """
        return self.data[t][source][sat]

    def value(self, t, source, sat, typ, default=None):
        """ typed value, default if not available """
        if (t, source, sat) not in self:
            return default
        return self.data[t][source][sat].get(typ, default)

    def epochs(self):
        """ sorted list of epochs """
        return sorted(self.data.keys())

    def last(self):
        """ latest epoch, None if empty """
        if len(self.data) == 0:
            return None
        return max(self.data.keys())

    def sources(self, t):
        """ sorted list of sources of an epoch """
        return sorted(self.data[t].keys())

    def sats(self, t, source):
        """ sorted list of satellites of a source """
        return sorted(self.data[t][source].keys())

    def numsats(self, t, source):
        """ number of satellites of a source """
        if t not in self.data or source not in self.data[t]:
            return 0
        return len(self.data[t][source])

    def items(self):
        """ iterate (t, source, sat, tvm) in sorted order """
        for t in self.epochs():
            for source in self.sources(t):
                for sat in self.sats(t, source):
                    yield t, source, sat, self.data[t][source][sat]

    def remove_sat(self, source, sat, t=None):
        """ remove a source-satellite pair, from all epochs if t is None """
        epochs = self.epochs() if t is None else [t]
        for t_ in epochs:
            if (t_, source, sat) in self:
                del self.data[t_][source][sat]

    def remove_source(self, source, t=None):
        """ remove a source, from all epochs if t is None """
        epochs = self.epochs() if t is None else [t]
        for t_ in epochs:
            if t_ in self.data and source in self.data[t_]:
                del self.data[t_][source]

    def prune(self, nmin=4, t=None):
        """
        drop sources with less than nmin satellites and empty epochs,
        only in epoch t if given

        Returns
        -------
        removed : list of (t, source, sat)
            Satellites removed with their source
        """
        removed = []
        epochs = self.epochs() if t is None else [t]
        for t_ in epochs:
            if t_ not in self.data:
                continue
            for source in self.sources(t_):
                if self.numsats(t_, source) < nmin:
                    for sat in self.sats(t_, source):
                        removed.append((t_, source, sat))
                    del self.data[t_][source]
            if len(self.data[t_]) == 0:
                del self.data[t_]
        return removed


def rngfilter(gds, typs, vmin=15.0e6, vmax=30.0e6):
    """
    range filter: remove satellites with a typed value missing or out of
    [vmin, vmax] for any type in typs

    Returns
    -------
    removed : list of (t, source, sat)
        Satellites removed with their source
    """
    removed = []
    for typ in typs:
        rej = []
        for t, source, sat, tvm in gds.items():
            v = tvm.get(typ)
            if v is None or not np.isfinite(v) or v < vmin or v > vmax:
                rej.append((t, source, sat))
        for t, source, sat in rej:
            gds.remove_sat(source, sat, t)
        removed += rej
    return removed
