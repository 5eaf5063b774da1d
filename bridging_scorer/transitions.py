"""
Status transitions between scoring runs.

The scorer is stateless, so it cannot know which notes changed status. The
caller passes the statuses it stored after the previous run and gets back
the transitions plus the label operations to apply, and the open disputes
the new statuses settle. Nothing here talks to the labeler.
"""

from typing import Iterable, List, Mapping, Optional

from bridging_scorer.models import (
    DisputeOutcome, DisputeResolution, LabelAction, LabelOperation, NoteScore,
    NoteStatus, PendingDispute, StatusTransition
)
from bridging_scorer.scoring import constants as c


def find_status_transitions(
    scores: Iterable[NoteScore],
    previous_statuses: Optional[Mapping[str, NoteStatus]] = None,
) -> List[StatusTransition]:
    """Return the notes whose new status differs from the stored one.

    A note with no stored status counts as a transition from None.
    """
    previous_statuses = previous_statuses or {}
    transitions = []
    for score in scores:
        old_status = previous_statuses.get(score.note_id)
        if old_status is not None:
            old_status = NoteStatus(old_status)
        if old_status != score.status:
            transitions.append(
                StatusTransition(
                    note_id=score.note_id,
                    old_status=old_status,
                    new_status=score.status,
                )
            )
    return transitions


def plan_label_actions(
    transitions: Iterable[StatusTransition],
    max_ops: int = c.MAX_LABEL_OPS_PER_RUN,
) -> List[LabelOperation]:
    """Map transitions to label operations, at most `max_ops` per run.

    Notes moving to CRNH have their label negated; notes moving to CRH or
    NMR get their label published or updated.
    """
    operations = []
    for transition in transitions:
        if len(operations) >= max_ops:
            break
        if transition.new_status == NoteStatus.CURRENTLY_RATED_NOT_HELPFUL:
            action = LabelAction.NEGATE
        else:
            action = LabelAction.PUBLISH
        operations.append(
            LabelOperation(
                note_id=transition.note_id,
                action=action,
                status=transition.new_status,
            )
        )
    return operations


def resolve_disputes(
    scores: Iterable[NoteScore],
    pending_disputes: Iterable[PendingDispute],
) -> List[DisputeResolution]:
    """Close the pending disputes whose dispute note has a settled status.

    A dispute note at CRH approves the dispute and the target note's label
    should be negated. A dispute note at CRNH rejects it. Disputes whose note
    is NMR or was not scored stay pending and are not returned.
    """
    statuses = {score.note_id: score.status for score in scores}
    resolutions = []
    for dispute in pending_disputes:
        status = statuses.get(dispute.dispute_note_id)
        if status == NoteStatus.CURRENTLY_RATED_HELPFUL:
            outcome = DisputeOutcome.APPROVED
        elif status == NoteStatus.CURRENTLY_RATED_NOT_HELPFUL:
            outcome = DisputeOutcome.REJECTED
        else:
            continue
        resolutions.append(
            DisputeResolution(
                dispute_id=dispute.dispute_id,
                dispute_note_id=dispute.dispute_note_id,
                target_note_id=dispute.target_note_id,
                outcome=outcome,
                negate_target=outcome == DisputeOutcome.APPROVED,
            )
        )
    return resolutions
