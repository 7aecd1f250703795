"""
修正因子查找表

四维 (Q2, t, xB, φ) 查找表，给出每个事件的乘法权重（例如 π0 本底修正）。
查找表由调用方构建和持有，在事件遍历中只读。
"""

import numpy as np
from typing import Mapping, Optional, Sequence, Tuple

from .binning import OUT_OF_RANGE, find_bin, validate_edges


AXES = ("Q2", "t", "xB", "phi")


class CorrectionTable:
    """
    四维修正因子查找表

    与稀疏直方图的约定一致：未填充的格子或任一轴越界时返回 0。

    Args:
        q2_bins, t_bins, xb_bins, phi_bins: 各轴严格递增的边界
        content: 形状为 (n_Q2, n_t, n_xB, n_phi) 的数组；为 None 时全部为 0
    """

    def __init__(
        self,
        q2_bins: Sequence[float],
        t_bins: Sequence[float],
        xb_bins: Sequence[float],
        phi_bins: Sequence[float],
        content: Optional[np.ndarray] = None,
    ):
        self.edges = tuple(
            validate_edges(edges, axis)
            for edges, axis in zip((q2_bins, t_bins, xb_bins, phi_bins), AXES)
        )
        shape = tuple(len(e) - 1 for e in self.edges)

        if content is None:
            content = np.zeros(shape)
        content = np.array(content, dtype=float)
        if content.shape != shape:
            raise ValueError(
                f"Correction content shape {content.shape} does not match axes {shape}"
            )
        content.setflags(write=False)
        self.content = content

    @classmethod
    def from_entries(
        cls,
        q2_bins: Sequence[float],
        t_bins: Sequence[float],
        xb_bins: Sequence[float],
        phi_bins: Sequence[float],
        entries: Mapping[Tuple[int, int, int, int], float],
    ) -> "CorrectionTable":
        """由稀疏的 {(iq, it, ix, iphi): value} 字典构建"""
        shape = tuple(len(e) - 1 for e in (q2_bins, t_bins, xb_bins, phi_bins))
        content = np.zeros(shape)
        for index, value in entries.items():
            content[index] = value
        return cls(q2_bins, t_bins, xb_bins, phi_bins, content)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.content.shape

    def find_bins(self, Q2, t, xB, phi):
        """每个轴上的 bin 索引，越界为 OUT_OF_RANGE"""
        return tuple(
            find_bin(value, edges) for value, edges in zip((Q2, t, xB, phi), self.edges)
        )

    def lookup(self, Q2, t, xB, phi):
        """
        查找修正因子

        Returns:
            标量输入返回 float，数组输入返回数组
        """
        indices = np.broadcast_arrays(*(np.asarray(i) for i in self.find_bins(Q2, t, xB, phi)))
        valid = np.all([i != OUT_OF_RANGE for i in indices], axis=0)

        factors = np.zeros(indices[0].shape)
        factors[valid] = self.content[tuple(i[valid] for i in indices)]

        if factors.ndim == 0:
            return float(factors)
        return factors


def get_correction_factor(Q2, t, xB, phi, correction: Optional[CorrectionTable] = None):
    """
    事件权重

    没有提供修正表时返回 1.0（或与输入同形状的全 1 数组）。
    """
    if correction is None:
        shape = np.broadcast(
            np.asarray(Q2), np.asarray(t), np.asarray(xB), np.asarray(phi)
        ).shape
        if shape == ():
            return 1.0
        return np.ones(shape)
    return correction.lookup(Q2, t, xB, phi)
