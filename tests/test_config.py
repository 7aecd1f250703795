"""
测试配置系统

验证配置加载和访问是否正常工作。
"""

import logging
import sys
from pathlib import Path

import numpy as np
import pytest

# 添加项目根目录到路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from disana.core.config import load_config
from disana.core.logging import get_logger, setup_logging


def test_config_loading():
    """测试配置加载"""
    config_path = project_root / "configs" / "dvcs_default.yaml"
    config = load_config(config_path)

    # 验证基本属性
    assert config.analysis_name == "dvcs_inb"
    assert config.beam_energy == 10.6
    assert config.luminosity == 1.0
    assert config.polarization == 0.85
    assert config.output_dir == Path(".") / "outputs" / "dvcs_inb"

    # 验证分 bin
    bins = config.bin_grid()
    assert bins.shape == (3, 3, 3)
    np.testing.assert_array_equal(bins.q2_bins, [1.0, 2.0, 4.0, 6.0])

    print("✓ Config loading test passed")


def test_config_defaults(tmp_path):
    """缺省的分 bin 和亮度使用默认值"""
    config_path = tmp_path / "minimal.yaml"
    config_path.write_text(
        "analysis_keywords:\n"
        "  beam_energy: 6.5\n"
        "binning:\n"
        "  xB: [0.1, 0.3, 0.5, 0.7, 0.9]\n"
    )
    config = load_config(config_path)
    assert config.analysis_name == "default"
    assert config.luminosity == 1.0
    assert config.bin_grid().shape == (4, 3, 3)


def test_config_errors(tmp_path):
    """缺失文件、缺失束流能量或非法边界时报错"""
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")

    no_beam = tmp_path / "no_beam.yaml"
    no_beam.write_text("analysis_keywords:\n  name: test\n")
    with pytest.raises(ValueError):
        load_config(no_beam)

    bad_bins = tmp_path / "bad_bins.yaml"
    bad_bins.write_text(
        "analysis_keywords:\n  beam_energy: 10.6\n"
        "binning:\n  Q2: [4.0, 2.0, 1.0]\n"
    )
    config = load_config(bad_bins)
    with pytest.raises(ValueError):
        config.bin_grid()


def test_logging_to_file(tmp_path):
    """日志同时写入终端和文件"""
    setup_logging(log_dir=tmp_path / "logs", level=logging.INFO)
    get_logger("disana.test").info("hello from test")
    for handler in logging.getLogger().handlers:
        handler.flush()

    log_file = tmp_path / "logs" / "disana.log"
    assert log_file.exists()
    assert "hello from test" in log_file.read_text()

    # 移除 handler，避免影响其他测试
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()


if __name__ == "__main__":
    test_config_loading()
    print("All tests passed!")
