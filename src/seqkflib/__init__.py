"""
seqkflib: sequential Kalman filter measurement update for GNSS processing
"""

__version__ = "0.0.1"
