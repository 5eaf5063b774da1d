"""Exceptions raised by the bridging scorer."""


class ScoringError(Exception):
    """Base class for scoring failures."""


class InvalidRatingError(ScoringError, ValueError):
    """Raised when a ratings frame is missing columns or holds bad values."""


class NonFiniteScoreError(ScoringError):
    """Raised when fitting produces NaN or infinite note parameters."""

    def __init__(self, note_ids):
        self.note_ids = list(note_ids)
        super().__init__(
            f"Non-finite parameters for {len(self.note_ids)} note(s): "
            f"{', '.join(map(str, self.note_ids[:10]))}"
        )
