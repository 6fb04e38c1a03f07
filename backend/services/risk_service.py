"""
Risk classification for village drought metrics.
"""

from models import RiskLevel

# WSI strictly above these values moves a village into the next tier
ORANGE_THRESHOLD = 40.0
RED_THRESHOLD = 70.0

# Share of base water demand assumed unmet during drought
WATER_GAP_COEFFICIENT = 0.4


def classify_risk(wsi: float) -> str:
    """Map a water stress index (0-100) to a risk level."""
    if wsi > RED_THRESHOLD:
        return RiskLevel.red.value
    elif wsi > ORANGE_THRESHOLD:
        return RiskLevel.orange.value
    else:
        return RiskLevel.green.value
