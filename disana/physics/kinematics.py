"""
运动学计算函数

由测得的 (p, θ, φ) 构建四动量，计算 DVCS（e p → e' p' γ）事件的
Lorentz 不变量和排他性（exclusivity）变量。

所有函数同时支持单个事件（标量）和按列向量化的输入（numpy 数组）。
三维矢量以最后一维长度为 3 的数组表示。
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Mapping, NamedTuple


# 物理常数
ELECTRON_MASS = 0.000511  # GeV
PROTON_MASS = 0.938272  # GeV


def _dot3(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    return np.sum(a * b, axis=-1)


def _mag3(a: np.ndarray) -> np.ndarray:
    return np.sqrt(_dot3(a, a))


def _unit(a: np.ndarray) -> np.ndarray:
    """单位矢量；零矢量保持不变"""
    mag = np.expand_dims(_mag3(a), -1)
    return np.divide(a, mag, out=np.array(a, dtype=float, copy=True), where=mag > 0)


def angle_between(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """两个三维矢量之间的夹角（弧度），任一矢量为零时返回 0"""
    norm = _mag3(a) * _mag3(b)
    cos = np.divide(_dot3(a, b), norm, out=np.ones_like(norm, dtype=float), where=norm > 0)
    return np.arccos(np.clip(cos, -1.0, 1.0))


@dataclass(frozen=True, eq=False)
class FourVector:
    """
    能量-动量四矢量 (E, p⃗)

    度规约定 mass² = E² − |p⃗|²。构建后不可变。
    """

    e: np.ndarray
    p: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "e", np.asarray(self.e, dtype=float))
        object.__setattr__(self, "p", np.asarray(self.p, dtype=float))

    @property
    def px(self) -> np.ndarray:
        return self.p[..., 0]

    @property
    def py(self) -> np.ndarray:
        return self.p[..., 1]

    @property
    def pz(self) -> np.ndarray:
        return self.p[..., 2]

    def __add__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.e + other.e, self.p + other.p)

    def __sub__(self, other: "FourVector") -> "FourVector":
        return FourVector(self.e - other.e, self.p - other.p)

    def __neg__(self) -> "FourVector":
        return FourVector(-self.e, -self.p)

    def dot(self, other: "FourVector") -> np.ndarray:
        """Minkowski 内积 E₁E₂ − p⃗₁·p⃗₂"""
        return self.e * other.e - _dot3(self.p, other.p)

    def mag2(self) -> np.ndarray:
        return self.dot(self)

    def mag(self) -> np.ndarray:
        """不变长度；类空矢量返回 −√(−mag²)"""
        m2 = self.mag2()
        return np.sign(m2) * np.sqrt(np.abs(m2))

    def perp(self) -> np.ndarray:
        """三动量的横向分量大小"""
        return np.sqrt(self.px**2 + self.py**2)


def spherical_to_cartesian(p, theta, phi) -> np.ndarray:
    """
    球坐标 (p, θ, φ) 转换为笛卡尔三维矢量

    Args:
        p: 动量大小
        theta: 极角（弧度）
        phi: 方位角（弧度）

    Returns:
        形状为 (..., 3) 的数组
    """
    p = np.asarray(p, dtype=float)
    px = p * np.sin(theta) * np.cos(phi)
    py = p * np.sin(theta) * np.sin(phi)
    pz = p * np.cos(theta)
    return np.stack(np.broadcast_arrays(px, py, pz), axis=-1)


def build_four_vector(p, theta, phi, mass) -> FourVector:
    """用球坐标动量和静止质量构建四矢量，E = √(p² + m²)"""
    vec = spherical_to_cartesian(p, theta, phi)
    energy = np.sqrt(_dot3(vec, vec) + np.asarray(mass, dtype=float) ** 2)
    return FourVector(energy, vec)


def angle_between_planes(a: np.ndarray, b: np.ndarray, c: np.ndarray) -> np.ndarray:
    """
    (a×b) 与 (a×c) 两个平面之间的带符号二面角（度），取值 [0, 360]

    符号由 (a×b)·c 给出，大小为 acos((a×b)·(a×c) / (|a×b||a×c|))。
    """
    ab = np.cross(a, b)
    ac = np.cross(a, c)
    sign = np.sign(_dot3(ab, c))
    cos = _dot3(ab, ac) / (_mag3(ab) * _mag3(ac))
    return sign * np.degrees(np.arccos(np.clip(cos, -1.0, 1.0))) + 180.0


class EventKinematics(NamedTuple):
    """单个事件（或一列事件）的运动学与排他性变量"""

    Q2: float
    xB: float
    t: float
    phi: float  # 度，[0, 360)
    W: float
    nu: float
    y: float
    mx2_ep: float
    emiss: float
    ptmiss: float
    mx2_epg: float
    delta_phi: float  # 度
    theta_gg: float  # 度
    mx2_eg: float
    theta_e_gamma: float  # 度
    delta_e: float

    def as_columns(self) -> Dict[str, np.ndarray]:
        """按分析中使用的列名返回所有变量"""
        return {column: getattr(self, attr) for column, attr in COLUMN_NAMES.items()}


# 列名 -> EventKinematics 字段
COLUMN_NAMES = {
    "Q2": "Q2",
    "xB": "xB",
    "t": "t",
    "phi": "phi",
    "W": "W",
    "nu": "nu",
    "y": "y",
    "Mx2_ep": "mx2_ep",
    "Emiss": "emiss",
    "PTmiss": "ptmiss",
    "Mx2_epg": "mx2_epg",
    "DeltaPhi": "delta_phi",
    "Theta_gamma_gamma": "theta_gg",
    "Mx2_eg": "mx2_eg",
    "Theta_e_gamma": "theta_e_gamma",
    "DeltaE": "delta_e",
}


def compute_kinematics(
    beam: FourVector,
    scattered: FourVector,
    target: FourVector,
    recoil: FourVector,
    photon: FourVector,
) -> EventKinematics:
    """
    计算 DVCS 事件的全部运动学量

    物理假设：
    - q = ℓ − ℓ' 为虚光子
    - φ 为轻子散射平面与强子产生平面之间的夹角（Trento 约定）

    Args:
        beam: 入射电子 ℓ
        scattered: 散射电子 ℓ'
        target: 靶质子 N
        recoil: 反冲质子 N'
        photon: 末态光子 γ

    Returns:
        EventKinematics
    """
    q = beam - scattered

    Q2 = -q.mag2()
    nu = q.e
    y = nu / beam.e
    W = (target + q).mag()
    xB = Q2 / (2.0 * target.dot(q))
    t = np.abs((target - recoil).mag2())

    # 轻子平面与强子平面之间的方位角
    n_L = _unit(np.cross(beam.p, scattered.p))
    n_H = _unit(np.cross(q.p, recoil.p))
    cos_phi = _dot3(n_L, n_H)
    sin_phi = _dot3(np.cross(n_L, n_H), _unit(q.p))
    phi_deg = np.mod(np.degrees(np.arctan2(sin_phi, cos_phi) + np.pi), 360.0)

    # 复合四矢量
    total_initial = beam + target
    total_final = scattered + recoil + photon
    missing = total_initial - total_final

    mx2_ep = (total_initial - scattered - recoil).mag2()
    emiss = missing.e
    ptmiss = missing.perp()
    mx2_epg = missing.mag2()

    # 共面性：反冲质子与光子相对于 (q, ℓ) 平面的方位角之差
    delta_phi = np.abs(
        angle_between_planes(q.p, beam.p, photon.p)
        - angle_between_planes(q.p, beam.p, -recoil.p)
    )

    theta_gg = np.degrees(angle_between(photon.p, (total_initial - (scattered + recoil)).p))
    mx2_eg = (beam + target - scattered - photon).mag2()
    theta_e_gamma = np.degrees(angle_between(scattered.p, photon.p))
    delta_e = (beam.e + target.e) - (scattered.e + recoil.e + photon.e)

    return EventKinematics(
        Q2=Q2,
        xB=xB,
        t=t,
        phi=phi_deg,
        W=W,
        nu=nu,
        y=y,
        mx2_ep=mx2_ep,
        emiss=emiss,
        ptmiss=ptmiss,
        mx2_epg=mx2_epg,
        delta_phi=delta_phi,
        theta_gg=theta_gg,
        mx2_eg=mx2_eg,
        theta_e_gamma=theta_e_gamma,
        delta_e=delta_e,
    )


def beam_four_vector(beam_energy) -> FourVector:
    """沿 z 轴入射的电子束（忽略电子质量）"""
    beam_energy = np.asarray(beam_energy, dtype=float)
    zero = np.zeros_like(beam_energy)
    return FourVector(beam_energy, np.stack([zero, zero, beam_energy], axis=-1))


def target_four_vector() -> FourVector:
    """静止的质子靶"""
    return FourVector(PROTON_MASS, np.zeros(3))


def kinematics_from_measurements(
    beam_energy,
    e_p, e_theta, e_phi,
    p_p, p_theta, p_phi,
    g_p, g_theta, g_phi,
) -> EventKinematics:
    """
    由测得的电子、质子、光子 (p, θ, φ) 计算运动学量

    物理假设：
    - 入射电子沿 z 轴，E = |p| = beam_energy
    - 质子靶静止
    - 光子质量为零
    """
    return compute_kinematics(
        beam_four_vector(beam_energy),
        build_four_vector(e_p, e_theta, e_phi, ELECTRON_MASS),
        target_four_vector(),
        build_four_vector(p_p, p_theta, p_phi, PROTON_MASS),
        build_four_vector(g_p, g_theta, g_phi, 0.0),
    )


# 重建粒子的测量列：电子、质子、光子
MEASURED_COLUMNS = tuple(
    f"rec{particle}_{var}"
    for particle in ("el", "pro", "pho")
    for var in ("p", "theta", "phi")
)


def compute_event_columns(
    events: Mapping[str, np.ndarray], beam_energy: float
) -> Dict[str, np.ndarray]:
    """
    按列计算整个事件样本的运动学量

    Args:
        events: 包含 MEASURED_COLUMNS 各列的表（dict 或 DataFrame）
        beam_energy: 束流能量（GeV）

    Returns:
        列名 -> 数组 的字典，列名见 COLUMN_NAMES
    """
    missing = [name for name in MEASURED_COLUMNS if name not in events]
    if missing:
        raise KeyError(f"Event table is missing measured columns: {missing}")

    columns = [np.asarray(events[name], dtype=float) for name in MEASURED_COLUMNS]
    kin = kinematics_from_measurements(beam_energy, *columns)
    return {name: np.asarray(values) for name, values in kin.as_columns().items()}
