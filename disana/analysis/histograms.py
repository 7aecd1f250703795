"""
φ 分布直方图和三维格点容器

Accumulator 是固定 18 个 bin、覆盖 [0, 360) 度的一维直方图，每个 bin 保存
(content, error)。Grid3D 是按 (ix, iq, it) = (xB, Q2, t) 索引的稠密三维数组，
每个格子保存一个 Accumulator 或 None（缺失）。

截面、不对称性和本底修正的结果都用 Grid3D 表示，返回后由调用方独占，
不与输入共享任何数组。
"""

import numpy as np
from typing import Iterator, List, Optional, Tuple

from disana.physics.binning import N_PHI_BINS, PHI_BIN_WIDTH, PHI_EDGES


class Accumulator:
    """
    φ 分布直方图

    Args:
        name: 直方图名称
        title: 直方图标题
        content: 每个 bin 的内容（默认为 0）
        error: 每个 bin 的误差（默认为 0）
    """

    n_bins = N_PHI_BINS
    edges = PHI_EDGES
    bin_width = PHI_BIN_WIDTH

    def __init__(
        self,
        name: str = "",
        title: str = "",
        content: Optional[np.ndarray] = None,
        error: Optional[np.ndarray] = None,
    ):
        self.name = name
        self.title = title
        self.content = self._as_bins(content)
        self.error = self._as_bins(error)

    @classmethod
    def _as_bins(cls, values: Optional[np.ndarray]) -> np.ndarray:
        if values is None:
            return np.zeros(cls.n_bins)
        values = np.array(values, dtype=float)
        if values.shape != (cls.n_bins,):
            raise ValueError(f"Expected {cls.n_bins} phi bins, got shape {values.shape}")
        return values

    @property
    def centers(self) -> np.ndarray:
        return 0.5 * (self.edges[1:] + self.edges[:-1])

    def integral(self) -> float:
        return float(np.sum(self.content))

    def copy(self, name: Optional[str] = None, title: Optional[str] = None) -> "Accumulator":
        return Accumulator(
            name=self.name if name is None else name,
            title=self.title if title is None else title,
            content=self.content,
            error=self.error,
        )

    def normalized(self) -> "Accumulator":
        """缩放到单位面积；积分不为正时原样复制"""
        result = self.copy()
        integral = self.integral()
        if integral > 0:
            result.content /= integral
            result.error /= integral
        return result

    def __repr__(self) -> str:
        return f"Accumulator(name={self.name!r}, integral={self.integral():.6g})"


def divide(numerator: Accumulator, denominator: Accumulator, name: str = "") -> Accumulator:
    """
    逐 bin 相除，按商的误差传递公式计算误差

    σ² = (σ₁²·c₂² + σ₂²·c₁²) / c₂⁴；分母为 0 的 bin 内容和误差都置 0。
    """
    c1, e1 = numerator.content, numerator.error
    c2, e2 = denominator.content, denominator.error
    nonzero = c2 != 0

    content = np.divide(c1, c2, out=np.zeros_like(c1), where=nonzero)
    variance = np.divide(
        e1**2 * c2**2 + e2**2 * c1**2, c2**4, out=np.zeros_like(c1), where=nonzero
    )
    return Accumulator(name=name or numerator.name, title=numerator.title,
                       content=content, error=np.sqrt(variance))


def multiply(a: Accumulator, b: Accumulator, name: str = "") -> Accumulator:
    """逐 bin 相乘，σ² = σ₁²·c₂² + σ₂²·c₁²"""
    content = a.content * b.content
    error = np.sqrt(a.error**2 * b.content**2 + b.error**2 * a.content**2)
    return Accumulator(name=name or a.name, title=a.title, content=content, error=error)


class Grid3D:
    """
    按 (ix, iq, it) 索引的 Accumulator 三维数组

    Attributes:
        n_entries: 填入直方图的事件数
        n_dropped: 因落在分 bin 范围外而丢弃的事件数
    """

    def __init__(self, shape: Tuple[int, int, int] = (0, 0, 0)):
        if len(shape) != 3:
            raise ValueError(f"Grid3D needs a 3D shape, got {shape}")
        self.cells = np.empty(shape, dtype=object)
        self.n_entries = 0
        self.n_dropped = 0

    @property
    def shape(self) -> Tuple[int, int, int]:
        return self.cells.shape

    def is_empty(self) -> bool:
        return self.cells.size == 0

    def __getitem__(self, index: Tuple[int, int, int]) -> Optional[Accumulator]:
        return self.cells[index]

    def __setitem__(self, index: Tuple[int, int, int], acc: Optional[Accumulator]) -> None:
        self.cells[index] = acc

    def get(self, index: Tuple[int, int, int]) -> Optional[Accumulator]:
        """越界时返回 None 而不是抛出异常"""
        if len(index) != 3 or any(i < 0 or i >= n for i, n in zip(index, self.shape)):
            return None
        return self.cells[index]

    def indices(self) -> Iterator[Tuple[int, int, int]]:
        return np.ndindex(*self.shape)

    def items(self) -> Iterator[Tuple[Tuple[int, int, int], Optional[Accumulator]]]:
        for index in self.indices():
            yield index, self.cells[index]

    def flatten(self) -> List[Accumulator]:
        """按 (ix, iq, it) 顺序列出所有存在的直方图"""
        return [acc for _, acc in self.items() if acc is not None]

    def n_missing(self) -> int:
        return sum(1 for _, acc in self.items() if acc is None)

    def contents(self) -> np.ndarray:
        """形状为 (n_xB, n_Q2, n_t, 18) 的内容数组，缺失格子为 NaN"""
        return self._stack("content")

    def errors(self) -> np.ndarray:
        return self._stack("error")

    def _stack(self, attr: str) -> np.ndarray:
        out = np.full(self.shape + (N_PHI_BINS,), np.nan)
        for index, acc in self.items():
            if acc is not None:
                out[index] = getattr(acc, attr)
        return out

    def copy(self) -> "Grid3D":
        result = Grid3D(self.shape)
        for index, acc in self.items():
            result[index] = None if acc is None else acc.copy()
        result.n_entries = self.n_entries
        result.n_dropped = self.n_dropped
        return result

    def __repr__(self) -> str:
        return f"Grid3D(shape={self.shape}, missing={self.n_missing()})"
