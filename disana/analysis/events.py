"""
事件源适配

事件源可以是列式表（列名 -> 数组的 dict，或带 .columns 的 DataFrame），
也可以是逐行的映射序列（每一行是 {列名: 数值}）。两种形式都只遍历一次。
"""

import numpy as np
from collections.abc import Mapping
from typing import Sequence, Tuple

from tqdm import tqdm


EVENT_COLUMNS = ("Q2", "t", "xB", "phi")


def _is_column_table(source) -> bool:
    return isinstance(source, Mapping) or hasattr(source, "columns")


def read_columns(
    source,
    columns: Sequence[str] = EVENT_COLUMNS,
    progress: bool = False,
    desc: str = "Reading events",
) -> Tuple[np.ndarray, ...]:
    """
    从事件源读取指定的数值列

    Args:
        source: 列式表或逐行映射的可迭代对象
        columns: 需要读取的列名
        progress: 逐行读取时是否显示进度条
        desc: 进度条描述

    Returns:
        与 columns 顺序一致的 float 数组元组
    """
    if _is_column_table(source):
        arrays = []
        for name in columns:
            if name not in source:
                raise KeyError(f"Event source has no column '{name}'")
            values = source[name]
            # awkward / pandas 列先转换为 numpy
            if hasattr(values, "to_numpy"):
                values = values.to_numpy()
            arrays.append(np.asarray(values, dtype=float).reshape(-1))
        return tuple(arrays)

    rows = {name: [] for name in columns}
    for row in tqdm(source, desc=desc, disable=not progress):
        for name in columns:
            try:
                rows[name].append(float(row[name]))
            except KeyError:
                raise KeyError(f"Event source has no column '{name}'") from None
    return tuple(np.asarray(rows[name], dtype=float) for name in columns)
