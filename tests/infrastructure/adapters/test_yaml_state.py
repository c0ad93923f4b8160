from datetime import datetime, timedelta, timezone

import pytest
import yaml

from ritmo.domain.progression.models import StreakState
from ritmo.domain.review.models import Item
from ritmo.domain.state import LearnerState
from ritmo.infrastructure.adapters.yaml_state import (
    StateFileError,
    YamlLearnerStateRepository,
)

UTC = timezone.utc
D0 = datetime(2024, 3, 10, 9, 30, tzinfo=UTC)


@pytest.fixture
def state():
    return LearnerState(
        learner_id="giulia",
        items={
            "ciao": Item(
                id="ciao",
                next_review_at=D0 + timedelta(days=3),
                ease_factor=2.6,
                consecutive_correct=1,
                level=3,
                last_reviewed_at=D0,
                review_count=1,
                correct_count=1,
                recall_score=0.8,
                applied_event_ids=("evt_1",),
            ),
            "arrivederci": Item(id="arrivederci", next_review_at=D0),
        },
        xp=15,
        streak=StreakState(current_streak=1, longest_streak=4, last_activity_at=D0),
        total_reviews=1,
        correct_reviews=1,
        achievements={"first_question": D0},
    )


def test_save_then_load_preserves_state(tmp_path, state):
    repo = YamlLearnerStateRepository(tmp_path / "state.yaml")
    repo.save(state)

    loaded = repo.load()

    assert loaded == state
    assert loaded.items["ciao"].next_review_at.tzinfo is not None


def test_saved_file_is_readable_yaml(tmp_path, state):
    path = tmp_path / "nested" / "state.yaml"
    YamlLearnerStateRepository(path).save(state)

    data = yaml.safe_load(path.read_text())
    assert data["version"] == 1
    assert data["learner_id"] == "giulia"
    assert [i["id"] for i in data["items"]] == ["arrivederci", "ciao"]
    assert data["streak"]["last_activity_at"] == D0.isoformat()


def test_save_leaves_no_temp_files(tmp_path, state):
    repo = YamlLearnerStateRepository(tmp_path / "state.yaml")
    repo.save(state)
    repo.save(state)
    assert [p.name for p in tmp_path.iterdir()] == ["state.yaml"]


def test_exists(tmp_path, state):
    repo = YamlLearnerStateRepository(tmp_path / "state.yaml")
    assert not repo.exists()
    repo.save(state)
    assert repo.exists()


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        YamlLearnerStateRepository(tmp_path / "missing.yaml").load()


def test_minimal_file_gets_defaults(tmp_path):
    path = tmp_path / "state.yaml"
    path.write_text(
        "learner_id: marco\n"
        "items:\n"
        "  - id: grazie\n"
        "    next_review_at: '2024-03-10T09:30:00+00:00'\n"
    )
    state = YamlLearnerStateRepository(path).load()

    assert state.xp == 0
    assert state.streak == StreakState()
    item = state.items["grazie"]
    assert item.ease_factor == 2.5
    assert item.next_review_at == D0


@pytest.mark.parametrize(
    "content",
    [
        "items: [unclosed\n",
        "- just\n- a list\n",
        "version: 99\n",
        "items:\n  - id: x\n",
        "items:\n  - id: x\n    next_review_at: not-a-date\n",
        "achievements:\n  first_question: null\n",
        "achievements: [first_question]\n",
    ],
)
def test_malformed_files_raise_state_file_error(tmp_path, content):
    path = tmp_path / "state.yaml"
    path.write_text(content)
    with pytest.raises(StateFileError):
        YamlLearnerStateRepository(path).load()
