from typing import List

import pandas as pd

from bridging_scorer.models import Rating


def rating(note_id: str, rater_did: str, helpfulness: float) -> Rating:
    return Rating(note_id=note_id, rater_did=rater_did, helpfulness=helpfulness)


def bloc_ratings(
    raters_per_bloc: int = 10,
    partisan_notes_per_side: int = 5,
    unhelpful_notes: int = 4,
    bridging_notes: int = 1,
) -> List[Rating]:
    """
    Two rater blocs with opposite viewpoints.

    - left-i: helpful to bloc A, not helpful to bloc B
    - right-i: helpful to bloc B, not helpful to bloc A
    - junk-i: not helpful to everyone
    - bridge-i: helpful to everyone

    Every rater rates every note, so all notes and raters clear the
    eligibility thresholds.
    """
    bloc_a = [f"did:plc:a{i}" for i in range(raters_per_bloc)]
    bloc_b = [f"did:plc:b{i}" for i in range(raters_per_bloc)]
    ratings = []
    for i in range(partisan_notes_per_side):
        for r in bloc_a:
            ratings.append(rating(f"left-{i}", r, 1.0))
            ratings.append(rating(f"right-{i}", r, 0.0))
        for r in bloc_b:
            ratings.append(rating(f"left-{i}", r, 0.0))
            ratings.append(rating(f"right-{i}", r, 1.0))
    for i in range(unhelpful_notes):
        for r in bloc_a + bloc_b:
            ratings.append(rating(f"junk-{i}", r, 0.0))
    for i in range(bridging_notes):
        for r in bloc_a + bloc_b:
            ratings.append(rating(f"bridge-{i}", r, 1.0))
    return ratings


def to_frame(ratings: List[Rating]) -> pd.DataFrame:
    return pd.DataFrame(
        [{"noteId": r.note_id, "raterDid": r.rater_did, "helpfulness": r.helpfulness} for r in ratings]
    )
