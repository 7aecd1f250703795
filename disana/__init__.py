"""DVCS 排他反应运动学重建与分 bin 截面、束流自旋不对称性分析"""

__version__ = "0.1.0"
