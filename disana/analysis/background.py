"""
π0 本底修正（双比值）

η = (MC_DVCS / MC_π0) × (Data_π0 / Data_DVCS)

四个事件样本各自按 L = 1 做一次截面计算，再逐格子、逐 φ bin 组合。
比值中公共的接收度和探测效率相互抵消。
"""

from disana.core.logging import get_logger
from disana.physics.binning import BinGrid
from disana.analysis.cross_section import compute_cross_section
from disana.analysis.histograms import Accumulator, Grid3D, divide, multiply

logger = get_logger(__name__)


def double_ratio(
    sim_signal: Accumulator,
    sim_background: Accumulator,
    data_signal: Accumulator,
    data_background: Accumulator,
    name: str = "",
) -> Accumulator:
    """((sim_signal / sim_background) × data_background) / data_signal，逐步传递误差"""
    ratio = divide(sim_signal, sim_background, name=name)
    ratio = multiply(ratio, data_background, name=name)
    ratio = divide(ratio, data_signal, name=name)
    return ratio


def combine_double_ratio(
    sim_signal: Grid3D,
    sim_background: Grid3D,
    data_signal: Grid3D,
    data_background: Grid3D,
) -> Grid3D:
    """
    逐格子组合四个截面

    结果维度与 sim_signal 相同。任一输入缺失（或越界）的格子跳过并给出警告，
    其余格子照常计算。
    """
    result = Grid3D(sim_signal.shape)
    for index in result.indices():
        ix, iq, it = index
        inputs = [grid.get(index) for grid in (sim_signal, sim_background, data_signal, data_background)]
        if any(acc is None for acc in inputs):
            logger.warning(f"Missing histogram for Q2 bin {iq}, xB bin {ix}, t bin {it}")
            continue

        result[index] = double_ratio(*inputs, name=f"hPi0Corr_xb{ix}_q2{iq}_t{it}")

    return result


def compute_background_correction(
    sim_signal,
    sim_background,
    data_signal,
    data_background,
    bins: BinGrid,
    progress: bool = False,
) -> Grid3D:
    """
    由四个事件样本计算 π0 本底修正

    Args:
        sim_signal: 模拟的类信号（DVCS 选择下的 π0）事件
        sim_background: 模拟的 π0 本底过程事件
        data_signal: 数据中信号区的事件
        data_background: 数据中本底区（π0）的事件
        bins: 共用的分 bin 格点
        progress: 逐行事件源是否显示进度条

    Returns:
        修正因子的 Grid3D
    """
    grids = [
        compute_cross_section(source, bins, luminosity=1.0, progress=progress)
        for source in (sim_signal, sim_background, data_signal, data_background)
    ]
    result = combine_double_ratio(*grids)
    logger.info(f"Pi0 background correction computed ({result.n_missing()} bins skipped).")
    return result
