"""
module for the equation system of an epoch
"""

from seqkflib.unknown import unkset


class eqsys():
    """ class to build equations of an epoch from the template catalogue """

    def __init__(self, templates=None):
        self.templates = [] if templates is None else list(templates)

    def addequ(self, equ):
        """ add equation template, applied after the existing ones """
        self.templates.append(equ)

    def equations(self, gds, t=None):
        """
        instantiate templates for the data map

        Equations are ordered by template, epoch, source and satellite.
        A template is applied to a satellite only if its typed values
        include the independent term of the template. If t is given, only
        the data of epoch t is used.
        """
        if t is None:
            epochs = gds.epochs()
        else:
            epochs = [t] if t in gds.data else []

        equs = []
        for tmpl in self.templates:
            for t_ in epochs:
                for source in gds.sources(t_):
                    if tmpl.sources is not None and \
                            source not in tmpl.sources:
                        continue
                    for sat in gds.sats(t_, source):
                        tvm = gds.tvm(t_, source, sat)
                        if tmpl.indterm not in tvm:
                            continue
                        equs.append(tmpl.instance(t_, source, sat, tvm))
        return equs

    def prepare(self, gds, store, t=None):
        """ equations and registry of unknowns for the data map """
        equs = self.equations(gds, t)
        prior, gen, _ = store.snapshot()
        return equs, unkset(equs, prior, gen)
