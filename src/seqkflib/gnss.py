"""
module for GNSS definitions shared by the filter modules
"""

from copy import deepcopy
from enum import IntEnum
from math import floor
import numpy as np


class rCST():
    """ class for constants """
    CLIGHT = 299792458.0

    FREQ_G1 = 1575.42e6      # [Hz] GPS L1
    FREQ_G2 = 1227.60e6      # [Hz] GPS L2


class uGNSS(IntEnum):
    """ class for GNS systems """

    NONE = -1

    GPS = 0
    GAL = 1
    QZS = 2
    BDS = 3
    GLO = 4
    SBS = 5
    IRN = 6

    GNSSMAX = 7

    GPSMAX = 32
    GALMAX = 36
    QZSMAX = 10
    BDSMAX = 63
    GLOMAX = 27
    SBSMAX = 39
    IRNMAX = 10

    GPSMIN = 0
    GALMIN = GPSMIN+GPSMAX
    QZSMIN = GALMIN+GALMAX
    BDSMIN = QZSMIN+QZSMAX
    GLOMIN = BDSMIN+BDSMAX
    SBSMIN = GLOMIN+GLOMAX
    IRNMIN = SBSMIN+SBSMAX

    MAXSAT = GPSMAX+GALMAX+QZSMAX+BDSMAX+GLOMAX+SBSMAX+IRNMAX


class FilterError(ValueError):
    """ fatal error of the estimation, with the epoch and entity """

    def __init__(self, msg, t=None, source=None, sat=None):
        self.msg = msg
        self.t = t
        self.source = source
        self.sat = sat
        txt = msg
        if t is not None:
            txt = "{} {}".format(time2str(t), txt)
        if source is not None or sat is not None:
            txt += " ({}".format(source if source is not None else "-")
            if sat is not None:
                txt += " {}".format(sat2id(sat))
            txt += ")"
        super().__init__(txt)


class gtime_t():
    """ class to define the time """

    def __init__(self, time=0, sec=0.0):
        self.time = time
        self.sec = sec

    def __repr__(self):
        return "gtime_t({}, {})".format(self.time, self.sec)

    def __eq__(self, other):
        if not isinstance(other, gtime_t):
            return NotImplemented
        return self.time == other.time and self.sec == other.sec

    def __hash__(self):
        return hash((self.time, self.sec))

    def __lt__(self, other):
        return self.time < other.time or \
            (self.time == other.time and self.sec < other.sec)

    def __gt__(self, other):
        return self.time > other.time or \
            (self.time == other.time and self.sec > other.sec)


def epoch2time(ep):
    """ calculate time from epoch """
    doy = [1, 32, 60, 91, 121, 152, 182, 213, 244, 274, 305, 335]
    time = gtime_t()
    year = int(ep[0])
    mon = int(ep[1])
    day = int(ep[2])

    if year < 1970 or year > 2099 or mon < 1 or mon > 12:
        return time
    days = (year-1970)*365+(year-1969)//4+doy[mon-1]+day-2
    if year % 4 == 0 and mon >= 3:
        days += 1
    sec = int(ep[5])
    time.time = days*86400+int(ep[3])*3600+int(ep[4])*60+sec
    time.sec = ep[5]-sec
    return time


def time2epoch(t):
    """ convert time to epoch """
    mday = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31, 31, 28, 31, 30, 31,
            30, 31, 31, 30, 31, 30, 31, 31, 29, 31, 30, 31, 30, 31, 31, 30, 31,
            30, 31, 31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

    days = int(t.time/86400)
    sec = int(t.time-days*86400)
    day = days % 1461
    for mon in range(48):
        if day >= mday[mon]:
            day -= mday[mon]
        else:
            break
    ep = [0, 0, 0, 0, 0, 0]
    ep[0] = 1970+days//1461*4+mon//12
    ep[1] = mon % 12+1
    ep[2] = day+1
    ep[3] = sec//3600
    ep[4] = sec % 3600//60
    ep[5] = sec % 60+t.sec
    return ep


def timeadd(t: gtime_t, sec: float):
    """ return time added with sec """
    tr = deepcopy(t)
    tr.sec += sec
    tt = floor(tr.sec)
    tr.time += int(tt)
    tr.sec -= tt
    return tr


def timediff(t1: gtime_t, t2: gtime_t):
    """ return time difference """
    dt = t1.time-t2.time
    dt += t1.sec-t2.sec
    return dt


def time2str(t):
    """ epoch string, '-' for an undefined epoch """
    if t is None:
        return "-"
    e = time2epoch(t)
    return "{:04d}-{:02d}-{:02d} {:02d}:{:02d}:{:02d}"\
        .format(e[0], e[1], e[2], e[3], e[4], int(e[5]))


def prn2sat(sys, prn):
    """ convert sys+prn to sat """
    if sys == uGNSS.GPS:
        sat = prn
    elif sys == uGNSS.GAL:
        sat = prn+uGNSS.GALMIN
    elif sys == uGNSS.QZS:
        sat = prn-192+uGNSS.QZSMIN
    elif sys == uGNSS.GLO:
        sat = prn+uGNSS.GLOMIN
    elif sys == uGNSS.BDS:
        sat = prn+uGNSS.BDSMIN
    elif sys == uGNSS.SBS:
        sat = prn-119+uGNSS.SBSMIN
    elif sys == uGNSS.IRN:
        sat = prn+uGNSS.IRNMIN
    else:
        sat = 0
    return sat


def sat2prn(sat):
    """ convert sat to sys+prn """
    if sat > uGNSS.MAXSAT:
        prn = 0
        sys = uGNSS.NONE
    elif sat > uGNSS.IRNMIN:
        prn = sat-uGNSS.IRNMIN
        sys = uGNSS.IRN
    elif sat > uGNSS.SBSMIN:
        prn = sat+119-uGNSS.SBSMIN
        sys = uGNSS.SBS
    elif sat > uGNSS.GLOMIN:
        prn = sat-uGNSS.GLOMIN
        sys = uGNSS.GLO
    elif sat > uGNSS.BDSMIN:
        prn = sat-uGNSS.BDSMIN
        sys = uGNSS.BDS
    elif sat > uGNSS.QZSMIN:
        prn = sat+192-uGNSS.QZSMIN
        sys = uGNSS.QZS
    elif sat > uGNSS.GALMIN:
        prn = sat-uGNSS.GALMIN
        sys = uGNSS.GAL
    else:
        prn = sat
        sys = uGNSS.GPS
    return (sys, prn)


def sys2char(sys):
    """ convert gnss to character """
    gnss_tbl = {uGNSS.GPS: 'G', uGNSS.GLO: 'R', uGNSS.GAL: 'E', uGNSS.BDS: 'C',
                uGNSS.QZS: 'J', uGNSS.SBS: 'S', uGNSS.IRN: 'I'}

    if sys not in gnss_tbl:
        return "?"
    else:
        return gnss_tbl[sys]


def char2sys(c):
    """ convert character to GNSS """
    gnss_tbl = {'G': uGNSS.GPS, 'R': uGNSS.GLO, 'E': uGNSS.GAL, 'C': uGNSS.BDS,
                'J': uGNSS.QZS, 'S': uGNSS.SBS, 'I': uGNSS.IRN}

    if c not in gnss_tbl:
        return uGNSS.NONE
    else:
        return gnss_tbl[c]


def sat2id(sat):
    """ convert satellite number to id """
    if sat is None:
        return "---"
    sys, prn = sat2prn(sat)
    if sys == uGNSS.NONE:
        return "???"
    if sys == uGNSS.QZS:
        prn -= 192
    elif sys == uGNSS.SBS:
        prn -= 100
    return '%s%02d' % (sys2char(sys), prn)


def id2sat(id_):
    """ convert id to satellite number """
    sys = char2sys(id_[0])
    if sys == uGNSS.NONE:
        return -1

    prn = int(id_[1:3])
    if sys == uGNSS.QZS:
        prn += 192
    elif sys == uGNSS.SBS:
        prn += 100
    sat = prn2sat(sys, prn)
    return sat


def kfupdate(x, P, H, v, R):
    """
    Kalman filter measurement update for a batch of observations.

    Parameters:
    x (ndarray): State estimate vector
    P (ndarray): State covariance matrix
    H (ndarray): Observation model matrix
    v (ndarray): Innovation vector
    R (ndarray): Measurement noise covariance

    Returns:
    x (ndarray): Updated state estimate vector
    P (ndarray): Updated state covariance matrix
    S (ndarray): Innovation covariance matrix
    """
    PHt = P@H.T
    S = H@PHt+R
    K = PHt@np.linalg.inv(S)
    x = x+K@v
    P = P-K@H@P
    return x, P, S
