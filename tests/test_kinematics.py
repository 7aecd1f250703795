"""
测试运动学计算

验证四矢量构建、DIS 不变量、φ 角约定和排他性变量。
"""

import sys
from pathlib import Path

import numpy as np
import pytest

# 添加项目根目录到路径
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from disana.analysis.exclusivity import exclusivity_windows
from disana.physics.kinematics import (
    ELECTRON_MASS,
    PROTON_MASS,
    FourVector,
    angle_between_planes,
    beam_four_vector,
    build_four_vector,
    compute_event_columns,
    compute_kinematics,
    kinematics_from_measurements,
    spherical_to_cartesian,
    target_four_vector,
    MEASURED_COLUMNS,
)

BEAM_ENERGY = 10.6


def random_measurements(n: int, seed: int = 1):
    """在 CLAS12 前向区域附近随机生成 e, p, γ 的 (p, θ, φ)"""
    rng = np.random.default_rng(seed)
    return dict(
        recel_p=rng.uniform(1.5, 8.0, n),
        recel_theta=rng.uniform(0.1, 0.6, n),
        recel_phi=rng.uniform(-np.pi, np.pi, n),
        recpro_p=rng.uniform(0.3, 2.0, n),
        recpro_theta=rng.uniform(0.3, 1.2, n),
        recpro_phi=rng.uniform(-np.pi, np.pi, n),
        recpho_p=rng.uniform(1.0, 8.0, n),
        recpho_theta=rng.uniform(0.05, 0.6, n),
        recpho_phi=rng.uniform(-np.pi, np.pi, n),
    )


def test_energy_relation():
    """E² − |p⃗|² = m²"""
    for p, theta, phi, mass in [
        (2.5, 0.3, 1.2, ELECTRON_MASS),
        (0.8, 1.1, -2.0, PROTON_MASS),
        (5.0, 0.1, 3.0, 0.0),
        (0.0, 0.7, 0.4, PROTON_MASS),
    ]:
        v = build_four_vector(p, theta, phi, mass)
        assert np.isclose(v.mag2(), mass**2, atol=1e-12)
        assert np.isclose(np.linalg.norm(v.p), p)

    # 向量化输入
    rng = np.random.default_rng(0)
    p = rng.uniform(0, 10, 100)
    v = build_four_vector(p, rng.uniform(0, np.pi, 100), rng.uniform(-np.pi, np.pi, 100), PROTON_MASS)
    np.testing.assert_allclose(v.e**2 - np.sum(v.p**2, axis=-1), PROTON_MASS**2, atol=1e-9)


def test_spherical_to_cartesian():
    """沿坐标轴的简单方向"""
    np.testing.assert_allclose(spherical_to_cartesian(2.0, 0.0, 0.0), [0.0, 0.0, 2.0], atol=1e-12)
    np.testing.assert_allclose(spherical_to_cartesian(1.0, np.pi / 2, 0.0), [1.0, 0.0, 0.0], atol=1e-12)
    np.testing.assert_allclose(spherical_to_cartesian(1.0, np.pi / 2, np.pi / 2), [0.0, 1.0, 0.0], atol=1e-12)


def test_four_vector_algebra():
    """加减法、Minkowski 内积和横动量"""
    a = FourVector(5.0, [1.0, 2.0, 3.0])
    b = FourVector(2.0, [0.5, -1.0, 0.0])
    s = a + b
    d = a - b
    assert np.isclose(s.e, 7.0)
    np.testing.assert_allclose(d.p, [0.5, 3.0, 3.0])
    assert np.isclose(a.dot(b), 5.0 * 2.0 - (0.5 - 2.0))
    assert np.isclose(a.perp(), np.sqrt(5.0))
    np.testing.assert_allclose((-a).p, [-1.0, -2.0, -3.0])
    # 类空矢量的 mag 为负
    spacelike = FourVector(1.0, [0.0, 0.0, 2.0])
    assert np.isclose(spacelike.mag(), -np.sqrt(3.0))


def test_dis_invariants():
    """Q2, ν, y, xB, W 与解析公式一致"""
    e_p, e_theta, e_phi = 4.0, 0.35, 0.7
    kin = kinematics_from_measurements(
        BEAM_ENERGY, e_p, e_theta, e_phi, 1.0, 0.6, -2.0, 5.0, 0.15, 1.0
    )

    e_out = np.sqrt(e_p**2 + ELECTRON_MASS**2)
    Q2 = 2.0 * BEAM_ENERGY * (e_out - e_p * np.cos(e_theta)) - ELECTRON_MASS**2
    nu = BEAM_ENERGY - e_out

    assert np.isclose(kin.Q2, Q2)
    assert np.isclose(kin.nu, nu)
    assert np.isclose(kin.y, nu / BEAM_ENERGY)
    assert np.isclose(kin.xB, Q2 / (2.0 * PROTON_MASS * nu))
    assert np.isclose(kin.W, np.sqrt(PROTON_MASS**2 + 2.0 * PROTON_MASS * nu - Q2))


def test_mandelstam_t():
    """t = |(N − N')²| = 2M(E' − M) 对静止靶"""
    kin = kinematics_from_measurements(
        BEAM_ENERGY, 4.0, 0.35, 0.7, 1.2, 0.6, -2.0, 5.0, 0.15, 1.0
    )
    e_recoil = np.sqrt(1.2**2 + PROTON_MASS**2)
    assert np.isclose(kin.t, 2.0 * PROTON_MASS * (e_recoil - PROTON_MASS))


def test_phi_range():
    """方位角总是落在 [0, 360)"""
    m = random_measurements(2000)
    columns = compute_event_columns(m, BEAM_ENERGY)
    phi = columns["phi"]
    assert np.all(np.isfinite(phi))
    assert np.all((phi >= 0.0) & (phi < 360.0))


def test_phi_mirror_symmetry():
    """电子在 xz 平面内时，把质子 φ 取反得到 360° − φ"""
    e_args = (4.0, 0.35, 0.0)
    g_args = (5.0, 0.15, 1.0)
    for p_phi in (0.4, 1.3, 2.5):
        up = kinematics_from_measurements(BEAM_ENERGY, *e_args, 1.0, 0.6, p_phi, *g_args)
        down = kinematics_from_measurements(BEAM_ENERGY, *e_args, 1.0, 0.6, -p_phi, *g_args)
        assert np.isclose(up.phi + down.phi, 360.0)


def test_balanced_event_exclusivity():
    """ℓ' + N' + γ = ℓ + N 时排他性变量全部为 0"""
    beam = beam_four_vector(BEAM_ENERGY)
    target = target_four_vector()
    scattered = build_four_vector(3.0, 0.3, 0.2, ELECTRON_MASS)
    photon = build_four_vector(5.0, 0.15, np.pi + 0.3, 0.0)
    recoil = beam + target - scattered - photon

    kin = compute_kinematics(beam, scattered, target, recoil, photon)

    assert abs(kin.delta_e) < 1e-12
    assert abs(kin.mx2_epg) < 1e-9
    assert abs(kin.emiss) < 1e-12
    assert abs(kin.ptmiss) < 1e-12
    # 缺失质量平方 (ep) 就是光子质量平方
    assert abs(kin.mx2_ep) < 1e-9
    # 光子方向与 ep 缺失动量方向一致
    assert kin.theta_gg < 1e-4


def test_angle_between_planes():
    """带符号的二面角"""
    a = np.array([0.0, 0.0, 1.0])
    b = np.array([1.0, 0.0, 0.0])
    alpha = np.radians(60.0)
    c_up = np.array([np.cos(alpha), np.sin(alpha), 0.0])
    c_down = np.array([np.cos(alpha), -np.sin(alpha), 0.0])

    assert np.isclose(angle_between_planes(a, b, c_up), 240.0)
    assert np.isclose(angle_between_planes(a, b, c_down), 120.0)


def test_exclusivity_angles():
    """θ(e, γ) 与 Δφ 的取值范围"""
    kin = kinematics_from_measurements(
        BEAM_ENERGY, 4.0, 0.35, 0.0, 1.0, 0.6, np.pi, 5.0, 0.15, 0.0
    )
    assert np.isclose(kin.theta_e_gamma, np.degrees(0.35 - 0.15))
    assert 0.0 <= kin.delta_phi <= 360.0


def test_vectorized_matches_scalar():
    """按列计算与逐事件计算一致"""
    m = random_measurements(20, seed=7)
    columns = compute_event_columns(m, BEAM_ENERGY)

    for i in range(20):
        kin = kinematics_from_measurements(BEAM_ENERGY, *(m[name][i] for name in MEASURED_COLUMNS))
        for name, value in kin.as_columns().items():
            assert np.isclose(columns[name][i], value), name


def test_event_columns():
    """输出列名完整，缺失输入列时报错"""
    columns = compute_event_columns(random_measurements(5), BEAM_ENERGY)
    expected = {
        "Q2", "xB", "t", "phi", "W", "nu", "y", "Mx2_ep", "Emiss", "PTmiss",
        "Mx2_epg", "DeltaPhi", "Theta_gamma_gamma", "Mx2_eg", "Theta_e_gamma", "DeltaE",
    }
    assert set(columns) == expected
    assert all(len(v) == 5 for v in columns.values())

    incomplete = random_measurements(5)
    del incomplete["recpho_p"]
    with pytest.raises(KeyError):
        compute_event_columns(incomplete, BEAM_ENERGY)


def test_exclusivity_windows():
    """排他性变量的均值、标准差和 ±3σ 窗口"""
    columns = compute_event_columns(random_measurements(200, seed=11), BEAM_ENERGY)
    windows = exclusivity_windows(columns)
    assert "DeltaE" in windows and "Mx2_epg" in windows
    assert "Q2" not in windows

    mean, sigma, low, high = exclusivity_windows({"DeltaE": np.array([1.0, 3.0, np.nan])})["DeltaE"]
    assert (mean, sigma) == (2.0, 1.0)
    assert (low, high) == (-1.0, 5.0)


if __name__ == "__main__":
    test_energy_relation()
    test_spherical_to_cartesian()
    test_four_vector_algebra()
    test_dis_invariants()
    test_mandelstam_t()
    test_phi_range()
    test_phi_mirror_symmetry()
    test_balanced_event_exclusivity()
    test_angle_between_planes()
    test_exclusivity_angles()
    test_vectorized_matches_scalar()
    test_event_columns()
    test_exclusivity_windows()
    print("All tests passed!")
