"""物理相关函数模块：四矢量、运动学、分 bin、修正因子"""

from .kinematics import (
    ELECTRON_MASS,
    PROTON_MASS,
    FourVector,
    EventKinematics,
    spherical_to_cartesian,
    build_four_vector,
    angle_between_planes,
    compute_kinematics,
    kinematics_from_measurements,
    compute_event_columns,
)
from .binning import BinGrid, find_bin, OUT_OF_RANGE, N_PHI_BINS, PHI_BIN_WIDTH
from .correction import CorrectionTable, get_correction_factor

__all__ = [
    "ELECTRON_MASS",
    "PROTON_MASS",
    "FourVector",
    "EventKinematics",
    "spherical_to_cartesian",
    "build_four_vector",
    "angle_between_planes",
    "compute_kinematics",
    "kinematics_from_measurements",
    "compute_event_columns",
    "BinGrid",
    "find_bin",
    "OUT_OF_RANGE",
    "N_PHI_BINS",
    "PHI_BIN_WIDTH",
    "CorrectionTable",
    "get_correction_factor",
]
