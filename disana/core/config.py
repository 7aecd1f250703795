"""
配置管理系统

从 YAML 文件加载分析配置（束流能量、亮度、极化度、相空间分 bin），
并提供类型安全的访问接口。
"""

import yaml
from pathlib import Path
from typing import Any, Dict, List
from dataclasses import dataclass, field

from disana.physics.binning import (
    BinGrid,
    DEFAULT_Q2_BINS,
    DEFAULT_T_BINS,
    DEFAULT_XB_BINS,
)


@dataclass
class Config:
    """配置类，提供类型安全的配置访问"""

    # 文件路径
    working_dir: Path
    output_dir: Path

    # 分析关键词
    analysis_name: str
    beam_energy: float
    luminosity: float = 1.0
    polarization: float = 1.0

    # 分 bin 边界（Q2, t, xB）
    bin_edges: Dict[str, List[float]] = field(default_factory=dict)

    # 其他配置
    raw_config: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """确保路径是 Path 对象"""
        self.working_dir = Path(self.working_dir)
        self.output_dir = Path(self.output_dir)
        if self.luminosity <= 0:
            raise ValueError(f"Luminosity must be positive, got {self.luminosity}")
        if self.polarization == 0:
            raise ValueError("Beam polarization must be non-zero")

    @property
    def log_dir(self) -> Path:
        return self.output_dir / "logs"

    def bin_grid(self) -> BinGrid:
        """根据配置中的边界构建 BinGrid，缺省轴使用默认边界"""
        return BinGrid(
            q2_bins=self.bin_edges.get("Q2", DEFAULT_Q2_BINS),
            t_bins=self.bin_edges.get("t", DEFAULT_T_BINS),
            xb_bins=self.bin_edges.get("xB", DEFAULT_XB_BINS),
        )


def load_config(config_path: str | Path) -> Config:
    """
    从 YAML 文件加载配置

    Args:
        config_path: 配置文件路径

    Returns:
        Config 对象
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path, 'r') as f:
        raw_config = yaml.safe_load(f) or {}

    # 提取配置
    file_paths = raw_config.get("file_paths", {})
    analysis_keywords = raw_config.get("analysis_keywords", {})

    if "beam_energy" not in analysis_keywords:
        raise ValueError(f"'analysis_keywords.beam_energy' missing in {config_path}")

    working_dir = Path(file_paths.get("working_dir", "."))
    output_dir = working_dir / "outputs" / analysis_keywords.get("name", "default")

    config = Config(
        working_dir=working_dir,
        output_dir=output_dir,
        analysis_name=analysis_keywords.get("name", "default"),
        beam_energy=float(analysis_keywords["beam_energy"]),
        luminosity=float(analysis_keywords.get("luminosity", 1.0)),
        polarization=float(analysis_keywords.get("polarization", 1.0)),
        bin_edges=raw_config.get("binning", {}) or {},
        raw_config=raw_config,
    )

    return config
