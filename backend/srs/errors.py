"""Errors raised by the scheduling core and its storage collaborator."""


class SRSError(Exception):
    """Base class for scheduling errors surfaced to callers."""


class InvalidRating(SRSError, ValueError):
    """The rating is not one of 1=Again, 2=Hard, 3=Good, 4=Easy."""

    def __init__(self, rating: object) -> None:
        super().__init__(f"Rating must be 1, 2, 3 or 4, got {rating!r}")
        self.rating = rating


class InvalidCardState(SRSError, ValueError):
    """The card state handed to the scheduler breaks its preconditions."""


class CardNotFound(SRSError, LookupError):
    def __init__(self, card_id: int, learner_id: int) -> None:
        super().__init__(f"Card {card_id} not found for learner {learner_id}")
        self.card_id = card_id
        self.learner_id = learner_id


class VersionConflict(SRSError):
    """The card changed underneath us; reload it and run the transition again."""

    def __init__(self, card_id: int, expected_version: int) -> None:
        super().__init__(f"Card {card_id} is no longer at version {expected_version}")
        self.card_id = card_id
        self.expected_version = expected_version


class QuotaConfigMissing(SRSError):
    """The learner has no daily limits configured. Callers fall back to defaults."""

    def __init__(self, learner_id: int) -> None:
        super().__init__(f"No quota configuration for learner {learner_id}")
        self.learner_id = learner_id
