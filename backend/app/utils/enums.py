from enum import Enum


class QualityLabel(str, Enum):
    excellent = "Excellent"   # quality >= 8
    good = "Good"             # 6 <= quality < 8
    fair = "Fair"             # 4 <= quality < 6
    poor = "Poor"             # quality < 4
