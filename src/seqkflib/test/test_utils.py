"""
 static test for ionosphere-free PPP with simulated observations
"""

import matplotlib
matplotlib.use('Agg')

import numpy as np  # noqa: E402

from seqkflib.eqsys import eqsys  # noqa: E402
from seqkflib.equations import ppp_ionofree  # noqa: E402
from seqkflib.gds import gdsmap  # noqa: E402
from seqkflib.gnss import epoch2time, timeadd  # noqa: E402
from seqkflib.measupd import measupd  # noqa: E402
from seqkflib.typeid import uTYPE  # noqa: E402
from seqkflib.utils import process  # noqa: E402
from seqkflib.variable import var_dx, var_dy, var_dz, var_trop  # noqa: E402

D2R = np.pi/180.0

nep = 10
sats = [2, 5, 9, 13, 18, 21, 25, 29]
source = 'SIMU'

# reference values of position offset [m], zenith wet delay [m]
xyz_ref = np.array([1.2, -0.8, 2.0])
ztd_ref = 0.15


def simulate(seed=0):
    """ data maps of nep epochs with static geometry """
    rng = np.random.default_rng(seed)
    az = rng.uniform(0.0, 360.0, len(sats))*D2R
    el = rng.uniform(15.0, 85.0, len(sats))*D2R
    e = np.array([-np.cos(el)*np.sin(az), -np.cos(el)*np.cos(az),
                  -np.sin(el)]).T
    mapw = 1.0/np.sin(el)
    amb = rng.normal(0.0, 5.0, len(sats))

    t0 = epoch2time([2021, 3, 19, 12, 0, 0])
    gds_list = []
    for ne in range(nep):
        t = timeadd(t0, ne*30.0)
        cdt = 100.0+10.0*ne
        gds = gdsmap()
        for k, sat in enumerate(sats):
            r = e[k]@xyz_ref+cdt+mapw[k]*ztd_ref
            tvm = {uTYPE.prefitC: r+rng.normal(0.0, 0.3),
                   uTYPE.prefitL: r+amb[k]+rng.normal(0.0, 0.003),
                   uTYPE.dx: e[k, 0], uTYPE.dy: e[k, 1], uTYPE.dz: e[k, 2],
                   uTYPE.wetMap: mapw[k]}
            gds.insertvalues(t, source, sat, tvm)
        gds_list.append(gds)
    return gds_list


def test_process(tmp_path):
    unks = [var_dx.bind(source), var_dy.bind(source), var_dz.bind(source),
            var_trop.bind(source)]
    config = {'filter': {'monlevel': 1},
              'outlier': {'thres_rej': 3.0}}

    flt = measupd(eqsys(ppp_ionofree()),
                  logfile=str(tmp_path / 'ppp.log'))
    proc = process(flt, config, nep, unks)
    sols = proc.run(simulate())

    assert len(sols) == nep
    assert all(sol is not None for sol in sols)
    assert np.all(proc.nequ == 2*len(sats))
    assert proc.t[-1] == (nep-1)*30.0

    # position converges to the reference
    assert np.all(np.isfinite(proc.x))
    assert np.all(np.fabs(proc.x[-1, 0:3]-xyz_ref) < 3.0)
    assert np.all(proc.sig[-1, 0:3] < proc.sig[0, 0:3])

    fname, fname_r = proc.plot(str(tmp_path / 'ppp'))
    assert (tmp_path / 'ppp_state.png').exists()
    assert (tmp_path / 'ppp_res.png').exists()
    assert fname.endswith('ppp_state.png')

    proc.close()
