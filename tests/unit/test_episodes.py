from dataclasses import replace
from datetime import date

import pytest

from trial_summary.config import DEFAULT_CONFIG, GroupingStrategy
from trial_summary.models import EventBatch, GroupKey, RawEvent
from trial_summary.reconciliation.episodes import (
    EpisodeReconciler,
    episode_group_key,
    is_culture_positive,
    normalize_episode_identifier,
    pcr_rank,
)


def make_event(participant_id, day, result="Negative", identifier=None, row=0, **extra):
    return RawEvent(
        participant_id=participant_id,
        event_date=day,
        culture_result_raw=result,
        sample_identifier=identifier or f"{participant_id}-row{row}",
        site_fallback="Mirpur",
        row_index=row,
        **extra,
    )


@pytest.mark.parametrize(
    "raw, expected",
    [("E007", "E007"), ("E007 (Day-2)", "E007"), ("E007, Day-3", "E007"), ("E007 Day-2", "E007"), ("E007 day 4", "E007")],
)
def test_normalize_episode_identifier(raw, expected):
    assert normalize_episode_identifier(raw) == expected


def test_group_key_is_deterministic():
    assert episode_group_key(" R001 ", "E007 (Day-2)") == GroupKey("R001", "E007")
    assert hash(episode_group_key("R001", "E007")) == hash(GroupKey("R001", "E007"))


@pytest.mark.parametrize(
    "raw, expected",
    [("Positive", True), ("pos", True), ("1", True), ("Negative", False), ("", False), ("0", False)],
)
def test_culture_positive_predicate(raw, expected):
    assert is_culture_positive(raw) is expected


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("Positive", 2),
        ("Detected", 2),
        ("1", 2),
        ("TRUE", 2),
        ("Not Detected", 1),
        ("Undetected", 1),
        ("Non-detected", 1),
        ("No detection", 1),
        ("not-detected", 1),
        ("Negative", 1),
        ("Inconclusive", 1),
        ("", 0),
        ("Pending", 0),
        ("n/a", 0),
        ("null", 0),
        ("-", 0),
    ],
)
def test_pcr_rank(raw, expected):
    assert pcr_rank(raw) == expected


class TestIdentifierStrategy:
    def test_day_suffixed_samples_merge_into_one_episode(self):
        events = [
            make_event("R001", date(2024, 1, 16), "Positive", "E007 (Day-2)", row=2, strain="S. sonnei"),
            make_event("R001", date(2024, 1, 15), "Negative", "E007", row=1, pcr_result_raw="Not detected"),
        ]
        (episode,) = EpisodeReconciler().reconcile(EventBatch(events, has_episode_identifiers=True))

        assert episode.key == GroupKey("R001", "E007")
        assert episode.culture_positive is True
        assert episode.culture_result == "Positive"
        assert episode.event_date == date(2024, 1, 15)
        assert episode.strain == "S. sonnei"
        assert episode.pcr_result == "Not detected"
        assert episode.pcr_rank == 1
        assert len(episode.samples) == 2

    def test_identifier_groups_ignore_date_gap(self):
        events = [
            make_event("R001", date(2024, 1, 1), identifier="E1", row=1),
            make_event("R001", date(2024, 3, 1), identifier="E1, Day-2", row=2),
            make_event("R001", date(2024, 1, 2), identifier="E2", row=3),
        ]
        episodes = EpisodeReconciler().reconcile(EventBatch(events, has_episode_identifiers=True))
        assert [episode.key.normalized_identifier for episode in episodes] == ["E1", "E2"]
        assert all(episode.participant_episode_count == 2 for episode in episodes)

    def test_synthetic_identifiers_never_merge(self):
        events = [make_event("R001", date(2024, 1, 1), row=1), make_event("R001", date(2024, 1, 1), row=2)]
        config = replace(DEFAULT_CONFIG, grouping=GroupingStrategy.IDENTIFIER)
        assert len(EpisodeReconciler(config).reconcile(EventBatch(events))) == 2


class TestTemporalStrategy:
    def test_samples_within_three_days_merge(self):
        events = [
            make_event("R002", date(2024, 1, 1), row=1),
            make_event("R002", date(2024, 1, 4), "Positive", row=2),
            make_event("R002", date(2024, 1, 8), row=3),
        ]
        episodes = EpisodeReconciler().reconcile(EventBatch(events))
        assert [len(episode.samples) for episode in episodes] == [2, 1]
        assert episodes[0].culture_positive is True
        assert episodes[1].culture_positive is False

    def test_gap_is_measured_from_previous_sample(self):
        events = [make_event("R002", date(2024, 1, day), row=day) for day in (1, 3, 5, 7)]
        (episode,) = EpisodeReconciler().reconcile(EventBatch(events))
        assert episode.event_date == date(2024, 1, 1)
        assert episode.stool_count == 4

    def test_swab_samples_allow_ten_day_gap(self):
        events = [
            make_event("R003", date(2024, 1, 1), row=1),
            make_event("R003", date(2024, 1, 11), row=2, is_swab=True),
            make_event("R003", date(2024, 1, 22), row=3, is_swab=True),
        ]
        episodes = EpisodeReconciler().reconcile(EventBatch(events))
        assert [(episode.stool_count, episode.swab_count) for episode in episodes] == [(1, 1), (0, 1)]

    def test_participants_are_grouped_independently(self):
        events = [make_event("R005", date(2024, 1, 1), row=1), make_event("R004", date(2024, 1, 2), row=2)]
        episodes = EpisodeReconciler().reconcile(EventBatch(events))
        assert [episode.participant_id for episode in episodes] == ["R004", "R005"]

    def test_every_sample_belongs_to_exactly_one_episode(self):
        events = [make_event("R006", date(2024, 1, day), row=day) for day in (1, 2, 9, 10, 30)]
        episodes = EpisodeReconciler().reconcile(EventBatch(events))
        rows = sorted(sample.row_index for episode in episodes for sample in episode.samples)
        assert rows == [1, 2, 9, 10, 30]
        assert len({episode.key for episode in episodes}) == len(episodes) == 3


def test_best_pcr_and_positive_strain_are_preferred():
    events = [
        make_event("R007", date(2024, 1, 1), "Negative", row=1, strain="S. flexneri", pcr_result_raw="Pending"),
        make_event("R007", date(2024, 1, 2), "Positive", row=2, strain="S. sonnei", pcr_result_raw="Negative"),
        make_event("R007", date(2024, 1, 3), "Negative", row=3, pcr_result_raw="Positive"),
    ]
    (episode,) = EpisodeReconciler().reconcile(EventBatch(events))
    assert episode.strain == "S. sonnei"
    assert episode.pcr_result == "Positive"
    assert episode.pcr_positive is True
