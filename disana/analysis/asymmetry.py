"""
束流自旋不对称性（BSA）

由两种束流螺旋度下的截面计算 A_LU(φ)，并可对每个格子拟合
a0 + a1·sinφ / (1 + a2·cosφ) 调制。
"""

import numpy as np
from scipy.optimize import curve_fit
from typing import Dict, Optional, Tuple

from disana.core.logging import get_logger
from disana.analysis.histograms import Accumulator, Grid3D

logger = get_logger(__name__)


def asymmetry(
    n_pos: np.ndarray,
    n_neg: np.ndarray,
    e_pos: np.ndarray,
    e_neg: np.ndarray,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    逐 bin 计算不对称性及其统计误差

    A = (N+ − N−)/(N+ + N−)
    σ_A = 2/(N+ + N−)² · √((N−·σ+)² + (N+·σ−)²)
    分母为 0 时 A 和 σ_A 都为 0。
    """
    n_pos, n_neg = np.asarray(n_pos, dtype=float), np.asarray(n_neg, dtype=float)
    e_pos, e_neg = np.asarray(e_pos, dtype=float), np.asarray(e_neg, dtype=float)

    den = n_pos + n_neg
    num = n_pos - n_neg
    nonzero = den != 0

    asym = np.divide(num, den, out=np.zeros_like(den), where=nonzero)
    err = np.divide(
        2.0 * np.sqrt((n_neg * e_pos) ** 2 + (n_pos * e_neg) ** 2),
        den**2,
        out=np.zeros_like(den),
        where=nonzero,
    )
    return asym, err


def compute_beam_spin_asymmetry(
    sigma_pos: Grid3D, sigma_neg: Grid3D, polarization: float = 1.0
) -> Grid3D:
    """
    计算三维 BSA

    两个输入的维度必须完全一致，否则直接返回空的 Grid3D。
    任一输入缺失的格子跳过（结果中为 None）。

    Args:
        sigma_pos: 正螺旋度截面
        sigma_neg: 负螺旋度截面
        polarization: 束流极化度

    Returns:
        Grid3D，content 为 A/P，error 为 σ_A/P
    """
    for axis, label in enumerate(("xB", "Q2", "t")):
        if sigma_pos.shape[axis] != sigma_neg.shape[axis]:
            logger.error(
                f"{label} dim mismatch: {sigma_pos.shape[axis]} vs {sigma_neg.shape[axis]}"
            )
            return Grid3D()

    result = Grid3D(sigma_pos.shape)
    for index, hp in sigma_pos.items():
        hm = sigma_neg[index]
        if hp is None or hm is None:
            logger.warning(f"Missing histogram at (xB, Q2, t) = {index}, skipping")
            continue

        asym, err = asymmetry(hp.content, hm.content, hp.error, hm.error)
        result[index] = Accumulator(
            name=f"{hp.name}_BSA",
            title=f"Beam Spin Asymmetry of {hp.title}",
            content=asym / polarization,
            error=err / polarization,
        )

    logger.info("Beam-Spin Asymmetries (3D) computed.")
    return result


def bsa_modulation(phi_deg: np.ndarray, a0: float, a1: float, a2: float) -> np.ndarray:
    """A(φ) = a0 + a1·sinφ / (1 + a2·cosφ)，φ 以度为单位"""
    phi = np.radians(phi_deg)
    return a0 + a1 * np.sin(phi) / (1.0 + a2 * np.cos(phi))


def fit_bsa_modulation(
    acc: Accumulator, p0: Tuple[float, float, float] = (0.0, 0.2, 0.1)
) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """
    对单个 BSA 直方图拟合 sinφ 调制

    只使用误差大于 0 的 φ bin；可用的 bin 少于 3 个时返回 None。

    Returns:
        (popt, perr)，perr 为协方差矩阵对角元的平方根
    """
    usable = acc.error > 0
    if np.count_nonzero(usable) < len(p0):
        return None

    popt, pcov = curve_fit(
        bsa_modulation,
        acc.centers[usable],
        acc.content[usable],
        p0=list(p0),
        sigma=acc.error[usable],
        absolute_sigma=True,
        maxfev=20000,
    )
    perr = np.sqrt(np.diag(pcov))
    return popt, perr


def fit_bsa_grid(grid: Grid3D) -> Dict[Tuple[int, int, int], Tuple[np.ndarray, np.ndarray]]:
    """
    对 Grid3D 中每个格子做 BSA 拟合

    缺失的格子、可用 bin 不足或拟合不收敛的格子不出现在结果中。
    """
    results = {}
    for index, acc in grid.items():
        if acc is None:
            continue
        try:
            fit = fit_bsa_modulation(acc)
        except RuntimeError as err:
            logger.warning(f"BSA fit failed at (xB, Q2, t) = {index}: {err}")
            continue
        if fit is None:
            logger.warning(f"Not enough populated phi bins to fit at (xB, Q2, t) = {index}")
            continue
        results[index] = fit
    return results
