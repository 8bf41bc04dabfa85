from enum import Enum


class RegistrationMode(str, Enum):
    FREE = "FREE"
    PAID = "PAID"
    GOAL = "GOAL"


class TournamentStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    IN_PROGRESS = "IN_PROGRESS"
    FINISHED = "FINISHED"


class BracketStatus(str, Enum):
    NOT_GENERATED = "NOT_GENERATED"
    GENERATED = "GENERATED"


class TeamStatus(str, Enum):
    APPLIED = "APPLIED"
    IN_GOAL = "IN_GOAL"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    ELIMINATED = "ELIMINATED"


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class MatchSlot(str, Enum):
    A = "A"
    B = "B"


class MatchState(str, Enum):
    EMPTY = "EMPTY"
    HALF_READY = "HALF_READY"
    READY = "READY"
    DECIDED = "DECIDED"
