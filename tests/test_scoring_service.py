import pandas as pd
import pytest

from bridging_scorer.config import Settings
from bridging_scorer.exceptions import InvalidRatingError
from bridging_scorer.models import DisputeOutcome, LabelAction, NoteStatus, PendingDispute
from bridging_scorer.scoring.scorer import BridgingScorer
from bridging_scorer.scoring_service import ScoringService

from conftest import bloc_ratings, to_frame


@pytest.fixture
def service():
    return ScoringService(Settings(random_seed=42))


def test_run_scoring(service):
    ratings = bloc_ratings()
    result = service.run_scoring(ratings)

    assert result["success"]
    assert result["notes_scored"] == 15
    assert result["notes_fitted"] == 15
    assert result["ratings_received"] == len(ratings)
    assert result["ratings_used"] == len(ratings)
    assert sum(result["status_counts"].values()) == 15
    # no stored statuses, so every note is new
    assert len(result["transitions"]) == 15
    assert len(result["label_operations"]) == 15

    last_run = service.last_run
    assert last_run.success
    assert last_run.notes_scored == 15
    assert last_run.completed_at is not None
    assert last_run.config_snapshot["epochs"] == 300


def test_transitions_against_stored_statuses(service):
    first = service.run_scoring(bloc_ratings())
    stored = {s.note_id: s.status for s in first["scores"]}
    stored["bridge-0"] = NoteStatus.CURRENTLY_RATED_NOT_HELPFUL

    second = service.run_scoring(bloc_ratings(), previous_statuses=stored)
    assert [t.note_id for t in second["transitions"]] == ["bridge-0"]
    operation = second["label_operations"][0]
    assert operation.action == LabelAction.PUBLISH
    assert operation.status == NoteStatus.CURRENTLY_RATED_HELPFUL


def test_frame_input(service):
    result = service.run_scoring(to_frame(bloc_ratings()))
    assert result["notes_scored"] == 15


def test_label_operations_respect_setting():
    service = ScoringService(Settings(random_seed=1, max_label_ops_per_run=2))
    result = service.run_scoring(bloc_ratings())
    assert len(result["transitions"]) == 15
    assert len(result["label_operations"]) == 2


def test_failed_run_is_recorded(service):
    frame = pd.DataFrame({"noteId": ["n1"], "raterDid": ["r1"], "helpfulness": [3.0]})
    with pytest.raises(InvalidRatingError):
        service.run_scoring(frame)
    assert not service.last_run.success
    assert "helpfulness" in service.last_run.error_message


def test_empty_ratings(service):
    result = service.run_scoring([])
    assert result["success"]
    assert result["scores"] == []
    assert result["notes_fitted"] == 0


def test_disputes_are_resolved_against_new_statuses(service):
    disputes = [
        PendingDispute(dispute_id="x1", dispute_note_id="bridge-0", target_note_id="left-0"),
        PendingDispute(dispute_id="x2", dispute_note_id="junk-0", target_note_id="right-0"),
        PendingDispute(dispute_id="x3", dispute_note_id="left-0", target_note_id="right-1"),
    ]
    result = service.run_scoring(bloc_ratings(), pending_disputes=disputes)

    resolutions = {r.dispute_id: r for r in result["dispute_resolutions"]}
    assert set(resolutions) == {"x1", "x2"}
    assert resolutions["x1"].outcome == DisputeOutcome.APPROVED
    assert resolutions["x1"].negate_target
    assert resolutions["x1"].target_note_id == "left-0"
    assert resolutions["x2"].outcome == DisputeOutcome.REJECTED
    assert service.last_run.disputes_resolved == 2


def test_no_disputes_by_default(service):
    assert service.run_scoring(bloc_ratings())["dispute_resolutions"] == []


def test_last_run_is_replaced_only_when_a_run_finishes(service, monkeypatch):
    service.run_scoring(bloc_ratings())
    finished = service.last_run

    seen_during_run = []
    original_score = BridgingScorer.score

    def score(self, ratings):
        seen_during_run.append(service.last_run)
        return original_score(self, ratings)

    monkeypatch.setattr(BridgingScorer, "score", score)
    service.run_scoring(bloc_ratings())

    assert len(seen_during_run) == 1
    assert seen_during_run[0] is finished
    assert service.last_run is not finished
    assert service.last_run.completed_at is not None
