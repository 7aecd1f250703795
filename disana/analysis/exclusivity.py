"""
排他性变量统计

对每个排他性变量给出均值、标准差和 mean ± nσ 窗口，
供选择条件设定和模型间比较使用。本模块只做统计，不做事件筛选。
"""

import numpy as np
from typing import Dict, Mapping, Tuple

EXCLUSIVITY_VARIABLES = (
    "Mx2_ep",
    "Emiss",
    "PTmiss",
    "Theta_gamma_gamma",
    "DeltaPhi",
    "Mx2_epg",
    "Mx2_eg",
    "Theta_e_gamma",
    "DeltaE",
)


def exclusivity_windows(
    columns: Mapping[str, np.ndarray], n_sigma: float = 3.0
) -> Dict[str, Tuple[float, float, float, float]]:
    """
    Args:
        columns: 列名 -> 数组（例如 compute_event_columns 的输出）
        n_sigma: 窗口宽度（以标准差为单位）

    Returns:
        变量名 -> (mean, sigma, low, high)；缺失或没有有限值的变量被忽略
    """
    windows = {}
    for name in EXCLUSIVITY_VARIABLES:
        if name not in columns:
            continue
        values = np.asarray(columns[name], dtype=float)
        values = values[np.isfinite(values)]
        if values.size == 0:
            continue
        mean = float(np.mean(values))
        sigma = float(np.std(values))
        windows[name] = (mean, sigma, mean - n_sigma * sigma, mean + n_sigma * sigma)
    return windows
