import logging
import random
from typing import List, Optional, Tuple

from fastapi import Depends
from sqlalchemy.orm import Session

from ..auth.credentials import (
    Caller,
    authorize_session,
    is_session_admin,
    load_session,
    resolve_participant,
)
from ..config.loader import get_idea_limits
from ..database import get_db
from ..errors import (
    ClusterNotFound,
    IdeaNotFound,
    InvalidIdea,
    NotAuthorized,
    PhaseNotCollect,
)
from ..models.idea import Cluster, Idea
from ..models.session import SessionPhase
from ..services.change_feed import ChangeFeed, change_feed
from ..utils.locks import KeyedLocks

logger = logging.getLogger("ideaboard.ideas")

# Canvas auto-layout: a grid of 180x140 cards, 5 per row, 20px apart, 40px in.
GRID_COLUMNS = 5
CARD_WIDTH = 180
CARD_HEIGHT = 140
CARD_GAP = 20
GRID_ORIGIN = 40

POST_IT_COLORS = (
    "#fef9c3",  # yellow
    "#ffe0de",  # coral
    "#d2f7ea",  # teal
    "#ede5ff",  # purple
    "#dbeafe",  # blue
    "#fce7f3",  # pink
)

# Count-then-insert must not interleave within a session.
layout_locks = KeyedLocks()


def grid_position(index: int) -> Tuple[int, int]:
    """Canvas position of the ``index``-th idea of a session (0-based)."""
    col = index % GRID_COLUMNS
    row = index // GRID_COLUMNS
    return (
        GRID_ORIGIN + col * (CARD_WIDTH + CARD_GAP),
        GRID_ORIGIN + row * (CARD_HEIGHT + CARD_GAP),
    )


def normalize_idea_text(text: Optional[str]) -> str:
    content = (text or "").strip()
    if not content:
        raise InvalidIdea("Idea text cannot be empty.")
    limit = get_idea_limits()["text_character_limit"]
    if len(content) > limit:
        raise InvalidIdea(f"Idea text exceeds the {limit} character limit.")
    return content


class IdeasManager:
    """Post-its on a session canvas."""

    def __init__(
        self,
        db: Session,
        feed: Optional[ChangeFeed] = None,
        rng: Optional[random.Random] = None,
    ):
        self.db = db
        self.feed = feed or change_feed
        self.rng = rng or random

    def _publish(self, session_id: str, event_type: str, idea_id: str) -> None:
        self.feed.publish("ideas", session_id, {"type": event_type, "idea_id": idea_id})

    def get_idea(self, idea_id: str) -> Optional[Idea]:
        return self.db.query(Idea).filter(Idea.idea_id == idea_id).first()

    def by_session(self, session_id: str) -> List[Idea]:
        return (
            self.db.query(Idea)
            .filter(Idea.session_id == session_id)
            .order_by(Idea.created_at, Idea.idea_id)
            .all()
        )

    def _editable_idea(self, caller: Caller, idea_id: str) -> Idea:
        """Load the idea, then require owner or co-admin rights on its session."""
        idea = self.get_idea(idea_id)
        if idea is None:
            raise IdeaNotFound()
        authorize_session(self.db, caller, idea.session_id)
        return idea

    def create_idea(self, caller: Caller, session_id: str, text: str) -> Idea:
        """
        Add an idea to the canvas.

        Owners and co-admins may add ideas in any phase and are not recorded as
        authors. Anyone else must present a participant token of this session,
        and only while the session is collecting.
        """
        session = load_session(self.db, session_id)
        participant_id = None
        if not is_session_admin(self.db, caller, session):
            if not caller.participant_token:
                raise NotAuthorized()
            participant = resolve_participant(self.db, caller, session_id)
            if session.phase != SessionPhase.COLLECT.value:
                raise PhaseNotCollect()
            participant_id = participant.participant_id

        content = normalize_idea_text(text)

        with layout_locks.hold(session_id):
            index = self.db.query(Idea).filter(Idea.session_id == session_id).count()
            position_x, position_y = grid_position(index)
            idea = Idea(
                session_id=session_id,
                participant_id=participant_id,
                text=content,
                position_x=position_x,
                position_y=position_y,
                color=self.rng.choice(POST_IT_COLORS),
            )
            self.db.add(idea)
            self.db.commit()
        self.db.refresh(idea)
        logger.info(
            "Added idea %s to session %s at (%s, %s)",
            idea.idea_id,
            session_id,
            position_x,
            position_y,
        )
        self._publish(session_id, "created", idea.idea_id)
        return idea

    def update_text(self, caller: Caller, idea_id: str, text: str) -> Idea:
        idea = self._editable_idea(caller, idea_id)
        idea.text = normalize_idea_text(text)
        self.db.commit()
        self.db.refresh(idea)
        self._publish(idea.session_id, "updated", idea_id)
        return idea

    def move(
        self, caller: Caller, idea_id: str, position_x: float, position_y: float
    ) -> Idea:
        idea = self._editable_idea(caller, idea_id)
        idea.position_x = position_x
        idea.position_y = position_y
        self.db.commit()
        self.db.refresh(idea)
        self._publish(idea.session_id, "moved", idea_id)
        return idea

    def set_cluster(
        self, caller: Caller, idea_id: str, cluster_id: Optional[str]
    ) -> Idea:
        """Assign the idea to a cluster of the same session, or clear it with None."""
        idea = self._editable_idea(caller, idea_id)
        if cluster_id is not None:
            cluster = (
                self.db.query(Cluster)
                .filter(
                    Cluster.cluster_id == cluster_id,
                    Cluster.session_id == idea.session_id,
                )
                .first()
            )
            if cluster is None:
                raise ClusterNotFound()
        idea.cluster_id = cluster_id
        self.db.commit()
        self.db.refresh(idea)
        self._publish(idea.session_id, "clustered", idea_id)
        return idea

    def remove(self, caller: Caller, idea_id: str) -> bool:
        """Delete an idea. An idea that is already gone is not an error."""
        idea = self.get_idea(idea_id)
        if idea is None:
            return False
        authorize_session(self.db, caller, idea.session_id)
        session_id = idea.session_id
        self.db.delete(idea)
        self.db.commit()
        logger.info("Removed idea %s from session %s", idea_id, session_id)
        self._publish(session_id, "removed", idea_id)
        return True


def get_ideas_manager(db: Session = Depends(get_db)) -> IdeasManager:
    """Dependency provider for IdeasManager."""
    return IdeasManager(db=db)
