"""Assign episodes to dose-relative reporting windows."""
from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from ..models import DoseWindow, Participant


def classify_dose_window(
    event_date: date,
    dose1_date: Optional[date],
    dose2_date: Optional[date],
    window_days: int = 30,
) -> DoseWindow:
    """Intervals are half-open: each window includes its lower bound.

    A participant without a second-dose date keeps every post-dose-1 episode in
    the first window, whether the dose is pending or was never given.
    """
    if dose1_date is None:
        return DoseWindow.UNMAPPED
    if event_date < dose1_date:
        return DoseWindow.PRE_DOSE
    if dose2_date is None or event_date < dose2_date:
        return DoseWindow.AFTER_DOSE_1
    if event_date < dose2_date + timedelta(days=window_days):
        return DoseWindow.AFTER_DOSE_2
    return DoseWindow.AFTER_30_DAYS_DOSE_2


def classify_for_participant(
    event_date: date, participant: Optional[Participant], window_days: int = 30
) -> DoseWindow:
    if participant is None:
        return DoseWindow.UNMAPPED
    return classify_dose_window(event_date, participant.dose1_date, participant.dose2_date, window_days)


__all__ = ["classify_dose_window", "classify_for_participant"]
