"""分析模块：分 bin 截面、束流自旋不对称性和 π0 本底修正"""

from .histograms import Accumulator, Grid3D, divide, multiply
from .events import read_columns, EVENT_COLUMNS
from .cross_section import compute_cross_section, compute_mean_kinematics
from .asymmetry import (
    asymmetry,
    compute_beam_spin_asymmetry,
    fit_bsa_modulation,
    fit_bsa_grid,
)
from .background import combine_double_ratio, compute_background_correction
from .exclusivity import exclusivity_windows

__all__ = [
    "Accumulator",
    "Grid3D",
    "divide",
    "multiply",
    "read_columns",
    "EVENT_COLUMNS",
    "compute_cross_section",
    "compute_mean_kinematics",
    "asymmetry",
    "compute_beam_spin_asymmetry",
    "fit_bsa_modulation",
    "fit_bsa_grid",
    "combine_double_ratio",
    "compute_background_correction",
    "exclusivity_windows",
]
