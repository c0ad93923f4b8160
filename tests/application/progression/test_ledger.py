import pytest

from ritmo.application.config import EngineConfig
from ritmo.application.events import EventDispatcher
from ritmo.application.progression.ledger import ProgressionLedger, round_half_up
from ritmo.domain.errors import InvalidXpAmount
from ritmo.domain.events import LevelUp
from ritmo.domain.progression.models import LevelBand


@pytest.fixture
def ledger(dispatcher):
    return ProgressionLedger(config=EngineConfig(), dispatcher=dispatcher)


def test_scenario_e_level_up_fires_once(dispatcher):
    ledger = ProgressionLedger(xp=95, dispatcher=dispatcher)
    assert ledger.state().level == 0

    state = ledger.award_xp(10, "quiz")

    assert state.xp == 105
    assert state.level == 1
    assert state.level_title == "Beginner"
    level_ups = [e for e in dispatcher.published if isinstance(e, LevelUp)]
    assert level_ups == [LevelUp(new_level=1, previous_level=0, title="Beginner")]


def test_no_event_without_level_change(ledger, dispatcher):
    ledger.award_xp(10)
    ledger.award_xp(0)
    assert dispatcher.published == []


def test_jumping_several_levels_fires_one_event(ledger, dispatcher):
    ledger.award_xp(600)
    assert ledger.state().level == 5
    assert len(dispatcher.published) == 1
    assert dispatcher.published[0].new_level == 5


def test_xp_is_the_sum_of_awards(ledger):
    amounts = [3, 0, 17, 250, 1, 44]
    seen = []
    for amount in amounts:
        seen.append(ledger.award_xp(amount).xp)
    assert seen == sorted(seen)
    assert ledger.xp == sum(amounts)


def test_award_order_does_not_change_total():
    a = ProgressionLedger()
    b = ProgressionLedger()
    for amount in [5, 90, 12]:
        a.award_xp(amount)
    for amount in [12, 5, 90]:
        b.award_xp(amount)
    assert a.state() == b.state()


@pytest.mark.parametrize("amount", [-1, 2.5, "10", True, None])
def test_invalid_amounts_are_rejected(ledger, amount):
    with pytest.raises(InvalidXpAmount):
        ledger.award_xp(amount)
    assert ledger.xp == 0


def test_level_matches_unique_band_for_every_xp(ledger):
    table = EngineConfig().level_table
    for xp in list(range(0, 3000)) + [10**6, 10**9]:
        level = ledger.level_for(xp)
        assert table[level].contains(xp)
        assert sum(band.contains(xp) for band in table) == 1


def test_progress_to_next_level():
    ledger = ProgressionLedger(xp=125)
    state = ledger.state()
    assert state.level == 1
    assert state.xp_into_level == 25
    assert state.xp_to_next_level == 25
    assert state.progress == 0.5


def test_top_band_has_no_next_level():
    table = (LevelBand(0, 10, "Low"), LevelBand(10, None, "Top"))
    state = ProgressionLedger(xp=500, config=EngineConfig(level_table=table)).state()
    assert state.level == 1
    assert state.xp_to_next_level is None
    assert state.progress == 1.0


@pytest.mark.parametrize(
    "kind,difficulty,correct,expected",
    [
        ("flashcard", "beginner", True, 5),
        ("quiz_question", "advanced", True, 20),
        ("quiz_question", "intermediate", False, 4),  # 3.75
        ("flashcard", "beginner", False, 1),  # 1.25
        ("lesson", "intermediate", False, 8),  # 7.5 rounds up
        ("review", "intermediate", True, 8),  # 7.5 rounds up
    ],
)
def test_xp_reward(ledger, kind, difficulty, correct, expected):
    assert ledger.xp_reward(kind, difficulty, correct) == expected


def test_xp_reward_unknown_inputs(ledger):
    with pytest.raises(ValueError, match="activity kind"):
        ledger.xp_reward("karaoke", "beginner", True)
    with pytest.raises(ValueError, match="difficulty"):
        ledger.xp_reward("flashcard", "nightmare", True)


def test_zero_partial_credit_gives_nothing_for_wrong_answers():
    ledger = ProgressionLedger(config=EngineConfig(partial_credit_factor=0.0))
    assert ledger.xp_reward("lesson", "advanced", False) == 0


def test_round_half_up():
    assert round_half_up(0.5) == 1
    assert round_half_up(2.5) == 3
    assert round_half_up(2.49) == 2
