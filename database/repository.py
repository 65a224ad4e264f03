import contextlib
import logging

from sqlalchemy.orm import Session

from database.repositories import (
    UserRepository,
    OpportunityRepository,
    ApplicationRepository,
    ApprovalRepository,
    InterviewRepository,
    OfferRepository,
    FeedbackRepository,
    NotificationRepository,
)

logger = logging.getLogger(__name__)


class PlacementRepository:
    """
    Facade over the per-aggregate repositories sharing one Session.

    Services take this object explicitly; the unit of work that created it owns
    commit and rollback.
    """

    def __init__(self, db: Session):
        self.db = db
        self.users = UserRepository(db)
        self.opportunities = OpportunityRepository(db)
        self.applications = ApplicationRepository(db)
        self.approvals = ApprovalRepository(db)
        self.interviews = InterviewRepository(db)
        self.offers = OfferRepository(db)
        self.feedback = FeedbackRepository(db)
        self.notifications = NotificationRepository(db)

    @contextlib.contextmanager
    def savepoint(self):
        """Run a block in a SAVEPOINT; an exception rolls back only that block."""
        with self.db.begin_nested():
            yield self

    def flush(self):
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
