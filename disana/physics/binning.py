"""
分 bin 函数

定义 (Q2, t, xB) 三维相空间格点和 φ 方位角分 bin。

所有 bin 均为左闭右开区间 [lo, hi)：恰好落在内部边界上的值属于上一个 bin，
等于最后一个边界或超出范围的值返回 OUT_OF_RANGE。
"""

import numpy as np
from typing import Sequence, Tuple


# 实验默认的分 bin 边界
DEFAULT_Q2_BINS = (1.0, 2.0, 4.0, 6.0)
DEFAULT_T_BINS = (0.1, 0.3, 0.6, 1.0)
DEFAULT_XB_BINS = (0.1, 0.2, 0.4, 0.6)

# φ 分布：18 个 bin 覆盖 [0, 360) 度
N_PHI_BINS = 18
PHI_MIN = 0.0
PHI_MAX = 360.0
PHI_BIN_WIDTH = (PHI_MAX - PHI_MIN) / N_PHI_BINS
PHI_EDGES = np.linspace(PHI_MIN, PHI_MAX, N_PHI_BINS + 1)

OUT_OF_RANGE = -1


def validate_edges(edges: Sequence[float], axis: str = "axis") -> np.ndarray:
    """
    检查边界序列至少有两个点且严格递增

    Args:
        edges: 边界序列
        axis: 轴名称（用于报错信息）

    Returns:
        float 类型的 numpy 数组
    """
    edges = np.asarray(edges, dtype=float)
    if edges.ndim != 1 or len(edges) < 2:
        raise ValueError(f"{axis} bins need at least two edges, got {edges.tolist()}")
    if not np.all(np.diff(edges) > 0):
        raise ValueError(f"{axis} bin edges must be strictly increasing, got {edges.tolist()}")
    return edges


def find_bin(value, edges: np.ndarray):
    """
    在有序边界中查找 value 所在的 bin

    等价于 upper_bound 搜索：返回满足 edges[i] <= value < edges[i+1] 的 i；
    低于第一个边界、不小于最后一个边界或为 NaN 时返回 OUT_OF_RANGE。

    Args:
        value: 标量或数组
        edges: 严格递增的边界数组

    Returns:
        bin 索引（标量输入返回 int，数组输入返回 int 数组）
    """
    edges = np.asarray(edges, dtype=float)
    idx = np.searchsorted(edges, value, side="right") - 1
    valid = (idx >= 0) & (idx < len(edges) - 1)
    idx = np.where(valid, idx, OUT_OF_RANGE)
    if np.ndim(idx) == 0:
        return int(idx)
    return idx


class BinGrid:
    """
    (Q2, t, xB) 三维分 bin 格点

    格点维度按 (xB, Q2, t) 排列，与 Grid3D 的索引 (ix, iq, it) 一致。
    边界可以通过 setter 整体替换，但在一次事件遍历过程中视为只读。
    """

    def __init__(
        self,
        q2_bins: Sequence[float] = DEFAULT_Q2_BINS,
        t_bins: Sequence[float] = DEFAULT_T_BINS,
        xb_bins: Sequence[float] = DEFAULT_XB_BINS,
    ):
        self.q2_bins = q2_bins
        self.t_bins = t_bins
        self.xb_bins = xb_bins

    @property
    def q2_bins(self) -> np.ndarray:
        return self._q2_bins

    @q2_bins.setter
    def q2_bins(self, edges: Sequence[float]) -> None:
        self._q2_bins = validate_edges(edges, "Q2")

    @property
    def t_bins(self) -> np.ndarray:
        return self._t_bins

    @t_bins.setter
    def t_bins(self, edges: Sequence[float]) -> None:
        self._t_bins = validate_edges(edges, "t")

    @property
    def xb_bins(self) -> np.ndarray:
        return self._xb_bins

    @xb_bins.setter
    def xb_bins(self, edges: Sequence[float]) -> None:
        self._xb_bins = validate_edges(edges, "xB")

    @property
    def shape(self) -> Tuple[int, int, int]:
        """格点维度 (n_xB, n_Q2, n_t)"""
        return (len(self._xb_bins) - 1, len(self._q2_bins) - 1, len(self._t_bins) - 1)

    def locate(self, Q2, t, xB):
        """
        查找事件所在的三维 bin

        Returns:
            (ix, iq, it)，任一维越界时对应索引为 OUT_OF_RANGE
        """
        return (
            find_bin(xB, self._xb_bins),
            find_bin(Q2, self._q2_bins),
            find_bin(t, self._t_bins),
        )

    def bin_name(self, ix: int, iq: int, it: int) -> str:
        return "hphi_q%.1f_t%.1f_xb%.2f" % (
            self._q2_bins[iq], self._t_bins[it], self._xb_bins[ix]
        )

    def bin_title(self, ix: int, iq: int, it: int) -> str:
        return "dsigma/dphi (Q2=[%.1f,%.1f], t=[%.1f,%.1f], xB=[%.2f,%.2f])" % (
            self._q2_bins[iq], self._q2_bins[iq + 1],
            self._t_bins[it], self._t_bins[it + 1],
            self._xb_bins[ix], self._xb_bins[ix + 1],
        )

    def __repr__(self) -> str:
        return (
            f"BinGrid(q2_bins={self._q2_bins.tolist()}, "
            f"t_bins={self._t_bins.tolist()}, xb_bins={self._xb_bins.tolist()})"
        )
