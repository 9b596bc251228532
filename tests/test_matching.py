"""
Tests for match patterns and slot classification.
"""

from court_booker.matching import build_match_data, classify_slot
from court_booker.models import SlotCandidate, SlotStatus, UnavailableIndicator
from court_booker.time_range import parse_time_range


def _match(text: str):
    return build_match_data(parse_time_range(text))


def test_match_data_labels():
    nine = _match("9-11p")
    assert nine.label == "9:00 PM"
    assert nine.display_hour == 9
    assert nine.am_pm == "PM"

    noon = _match("12-2p")
    assert noon.label == "12:00 PM"

    midnight = build_match_data(parse_time_range("12-2a"))
    assert midnight.label == "12:00 AM"
    assert midnight.hour24 == 0


def test_url_patterns():
    match = _match("9-11p")

    assert match.matches_url("/Reserve?start=Tue%20Feb%2024%202026%209:00%20PM&court=1")
    assert match.matches_url("/Reserve?start=2/24/2026+9:00+PM")
    assert match.matches_url("/Reserve?start=Tue%20Feb%2024%202026%2021:00:00%20GMT-0800")
    assert not match.matches_url("/Reserve?start=Tue%20Feb%2024%202026%2019:00%20PM")
    assert not match.matches_url("/Reserve?start=Tue%20Feb%2024%202026%2010:00%20PM")


def test_24_hour_pattern_ignores_display_encoded_times():
    morning = _match("9-11a")

    assert not morning.matches_url("/Reserve?start=2026%209:00%20PM")
    assert morning.matches_url("/Reserve?start=2026%2009:00:00")


def test_start_pattern_rejects_end_of_range():
    ten = _match("10-11p")
    nine = _match("9-11p")
    label = "Fmt Procourt at 9:00 PM to 10:00 PM"

    assert nine.matches_start(label)
    assert not ten.matches_start(label)
    assert ten.matches_start("10:00 PM to 11:00 PM")


def test_start_pattern_requires_whole_time():
    one = _match("1-3p")

    assert not one.matches_start("Reserve 11:00 PM")
    assert one.matches_start("Reserve 1:00 PM")


def test_exact_pattern_matches_whole_field():
    match = _match("9-11p")

    assert match.matches_exact(" 9:00 PM ")
    assert not match.matches_exact("9:00 PM - 10:00 PM")
    assert not match.matches_exact("")


def test_indicator_parent_label_classifies_start_hour_only():
    indicators = [UnavailableIndicator(parent_label="Fmt Procourt at 9:00 PM to 10:00 PM")]

    nine = classify_slot([], indicators, _match("9-11p"))
    ten = classify_slot([], indicators, _match("10-11p"))

    assert nine.status is SlotStatus.UNAVAILABLE
    assert nine.channel == "parent_label"
    assert ten.status is SlotStatus.UNKNOWN


def test_indicator_compact_time_channels():
    own = classify_slot([], [UnavailableIndicator(compact_time="9:00 PM")], _match("9-11p"))
    parent = classify_slot([], [UnavailableIndicator(parent_compact_time="9:00 PM")], _match("9-11p"))

    assert own.channel == "compact_time"
    assert parent.channel == "parent_compact_time"


def test_unavailable_wins_over_available():
    candidate = SlotCandidate(ref=0, label="Reserve 9:00 PM")
    indicator = UnavailableIndicator(compact_time="9:00 PM")

    verdict = classify_slot([candidate], [indicator], _match("9-11p"))

    assert verdict.status is SlotStatus.UNAVAILABLE
    assert verdict.candidate is None


def test_available_returns_matching_candidate():
    candidates = [
        SlotCandidate(ref=0, label="Reserve 8:00 PM"),
        SlotCandidate(ref=1, reference="/Reserve?start=Tue%20Feb%2024%202026%209:00%20PM"),
    ]
    indicators = [UnavailableIndicator(compact_time="8:00 PM")]

    verdict = classify_slot(candidates, indicators, _match("9-11p"))

    assert verdict.status is SlotStatus.AVAILABLE
    assert verdict.candidate.ref == 1
    assert verdict.channel == "reference"


def test_candidate_channels_in_order():
    parent = SlotCandidate(ref=0, parent_compact_time="9:00 PM")
    text = SlotCandidate(ref=1, text="9:00 PM")
    parent_label = SlotCandidate(ref=2, parent_label="Court 1 at 9:00 PM to 10:00 PM")

    assert classify_slot([parent], [], _match("9-11p")).channel == "parent_compact_time"
    assert classify_slot([text], [], _match("9-11p")).channel == "text"
    assert classify_slot([parent_label], [], _match("9-11p")).channel == "label"


def test_candidate_end_time_does_not_count_as_available():
    candidate = SlotCandidate(ref=0, label="Reserve 9:00 PM to 10:00 PM")

    verdict = classify_slot([candidate], [], _match("10-11p"))

    assert verdict.status is SlotStatus.UNKNOWN


def test_unknown_when_nothing_matches():
    candidates = [SlotCandidate(ref=0, label="Reserve 6:00 PM", text="Reserve")]
    indicators = [UnavailableIndicator(compact_time="7:00 PM")]

    verdict = classify_slot(candidates, indicators, _match("9-11p"))

    assert verdict.status is SlotStatus.UNKNOWN
    assert verdict.candidate is None
    assert verdict.channel is None
