"""Per-BSSID signal history and a one-hour linear forecast."""

from __future__ import annotations

import math

from ..history import HistoryStore
from ..measurements.models import SignalPrediction

PREDICTION_WINDOW = 10
MIN_READINGS = 3
# readings are assumed to arrive about once a minute
MINUTES_AHEAD = 60
VOLATILE_TREND_DBM = 2.0

INSUFFICIENT_DATA = "Insufficient data for prediction"
VOLATILITY = "Signal volatility detected"


def predict_signal(store: HistoryStore, bssid: str) -> SignalPrediction:
    """Forecast the signal an hour ahead from the last readings of ``bssid``.

    The forecast is the recent average plus the per-reading trend carried
    forward. Confidence falls linearly with the size of the trend and
    reaches zero at 10 dBm per reading.
    """
    readings = store.get(bssid)
    if len(readings) < MIN_READINGS:
        last = readings[-1] if readings else 0
        return SignalPrediction(bssid=bssid, next_hour_dbm=round(last), confidence=0.0, factors=(INSUFFICIENT_DATA,))

    recent = readings[-PREDICTION_WINDOW:]
    average = sum(recent) / len(recent)
    trend = store.trend(bssid, PREDICTION_WINDOW)
    predicted = average + trend * MINUTES_AHEAD
    confidence = max(0.0, min(1.0, 1 - abs(trend) / 10))
    factors = (VOLATILITY,) if abs(trend) > VOLATILE_TREND_DBM else ()
    return SignalPrediction(
        bssid=bssid,
        next_hour_dbm=math.floor(predicted + 0.5),
        confidence=round(confidence, 2),
        factors=factors,
    )


class SignalTracker:
    """Records signal readings per BSSID into a caller-owned store."""

    def __init__(self, store: HistoryStore):
        self.store = store

    def record(self, bssid: str, signal_dbm: float) -> None:
        self.store.append(bssid, float(signal_dbm))

    def predict(self, bssid: str) -> SignalPrediction:
        return predict_signal(self.store, bssid)
