"""
Edition Workflow State Machine.

States:
    draft → review_requested → ready → published → unpublished

Guards:
    request review   the edition is the guide's latest
    approve          the acting user is not the edition's author
    publish          no other edition of this version or later is published
    unpublish        the guide has a published edition and no unpublished one

Publishing and unpublishing call the publishing API inside the same
database transaction as the state change; if the API call raises, the
state change is rolled back and the error is re-raised.

Usage:
    machine = EditionStateMachine(edition, acting_user=request.user)
    machine.request_review()
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set

from django.db import transaction
from django.utils import timezone

from apps.core.exceptions import WorkflowGuardError
from .models import Edition, Guide

logger = logging.getLogger(__name__)


class EditionState(Enum):
    """Valid workflow states for an edition."""
    DRAFT = Edition.STATE_DRAFT
    REVIEW_REQUESTED = Edition.STATE_REVIEW_REQUESTED
    READY = Edition.STATE_READY
    PUBLISHED = Edition.STATE_PUBLISHED
    UNPUBLISHED = Edition.STATE_UNPUBLISHED

    @classmethod
    def from_string(cls, value: str) -> 'EditionState':
        for state in cls:
            if state.value == value:
                return state
        raise ValueError(f"Unknown state: {value}")

    @property
    def is_terminal(self) -> bool:
        return self is EditionState.UNPUBLISHED


VALID_TRANSITIONS: Dict[EditionState, Set[EditionState]] = {
    EditionState.DRAFT: {EditionState.REVIEW_REQUESTED},
    EditionState.REVIEW_REQUESTED: {EditionState.READY},
    EditionState.READY: {EditionState.PUBLISHED},
    EditionState.PUBLISHED: {EditionState.UNPUBLISHED},
    EditionState.UNPUBLISHED: set(),  # Terminal state
}


@dataclass
class StateTransition:
    """Record of a state transition."""
    from_state: EditionState
    to_state: EditionState
    timestamp: datetime
    acting_user_id: Optional[Any] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


class EditionStateMachine:
    """
    Enforces the approval workflow for one edition.
    """

    def __init__(self, edition: Edition, acting_user=None, publishing_api=None):
        self.edition = edition
        self.acting_user = acting_user
        self.publishing_api = publishing_api
        self._history: List[StateTransition] = []

    @property
    def current_state(self) -> EditionState:
        return EditionState.from_string(self.edition.state)

    @property
    def guide(self) -> Guide:
        return self.edition.guide

    @property
    def history(self) -> List[StateTransition]:
        return self._history.copy()

    def can_transition_to(self, target: EditionState) -> bool:
        """Check the transition table and the target's guard."""
        if target not in VALID_TRANSITIONS.get(self.current_state, set()):
            return False
        try:
            self._check_guard(target)
        except WorkflowGuardError:
            return False
        return True

    def get_valid_transitions(self) -> Set[EditionState]:
        return {state for state in VALID_TRANSITIONS.get(self.current_state, set()) if self.can_transition_to(state)}

    # -------------------------------------------------------------------------
    # Actions
    # -------------------------------------------------------------------------

    def request_review(self) -> Edition:
        return self.transition_to(EditionState.REVIEW_REQUESTED)

    def approve(self) -> Edition:
        return self.transition_to(EditionState.READY)

    def publish(self) -> Edition:
        return self.transition_to(EditionState.PUBLISHED)

    def unpublish(self) -> Edition:
        return self.transition_to(EditionState.UNPUBLISHED)

    def transition_to(self, target, metadata: Optional[Dict[str, Any]] = None) -> Edition:
        """
        Move the edition to `target`.

        Raises:
            WorkflowGuardError: the transition is not in the table or its guard fails
            ExternalServiceError: the publishing API rejected the change (rolled back)
        """
        if isinstance(target, str):
            target = EditionState.from_string(target)

        current = self.current_state

        if target not in VALID_TRANSITIONS.get(current, set()):
            raise WorkflowGuardError(
                f"Cannot move an edition from {current.value} to {target.value}",
                guard='valid_transition',
            )

        try:
            with transaction.atomic():
                # One workflow change per guide at a time
                Guide.objects.lock(self.edition.guide_id)

                self._check_guard(target)

                self.edition.state = target.value
                self.edition.save(update_fields=['state', 'updated_at'])

                self._synchronize(target)

        except Exception as e:
            self.edition.state = current.value
            self._history.append(StateTransition(
                from_state=current,
                to_state=target,
                timestamp=timezone.now(),
                acting_user_id=self._acting_user_id,
                success=False,
                error=str(e),
                metadata=metadata or {},
            ))
            logger.warning(
                f"Edition {self.edition.id} transition failed: "
                f"{current.value} → {target.value}: {e}"
            )
            raise

        self._history.append(StateTransition(
            from_state=current,
            to_state=target,
            timestamp=timezone.now(),
            acting_user_id=self._acting_user_id,
            metadata=metadata or {},
        ))
        logger.info(
            f"Edition {self.edition.id} (guide {self.edition.guide_id} v{self.edition.version}) "
            f"transitioned: {current.value} → {target.value} by user {self._acting_user_id}"
        )
        return self.edition

    # -------------------------------------------------------------------------
    # Guards
    # -------------------------------------------------------------------------

    @property
    def _acting_user_id(self):
        return getattr(self.acting_user, 'pk', None)

    def _check_guard(self, target: EditionState):
        edition = self.edition

        if target is EditionState.REVIEW_REQUESTED:
            if not edition.is_latest_edition():
                raise WorkflowGuardError(
                    "Only the latest edition can be sent for review",
                    guard='latest_edition',
                )

        elif target is EditionState.READY:
            if edition.author_id is not None and edition.author_id == self._acting_user_id:
                raise WorkflowGuardError(
                    "You can't approve your own edition",
                    guard='no_self_approval',
                )

        elif target is EditionState.PUBLISHED:
            already_published = (
                edition.guide.editions.published()
                .filter(version__gte=edition.version)
                .exclude(pk=edition.pk)
            )
            if already_published.exists():
                raise WorkflowGuardError(
                    "This version of the guide has already been published",
                    guard='not_already_published',
                )

        elif target is EditionState.UNPUBLISHED:
            if not edition.guide.can_be_unpublished():
                raise WorkflowGuardError(
                    "This guide can't be unpublished",
                    guard='can_be_unpublished',
                )

    # -------------------------------------------------------------------------
    # Publishing API
    # -------------------------------------------------------------------------

    def _synchronize(self, target: EditionState):
        if target not in (EditionState.PUBLISHED, EditionState.UNPUBLISHED):
            return

        from apps.publishing.publishers import GuidePublisher

        publisher = GuidePublisher(self.guide, self.edition, publishing_api=self.publishing_api)
        if target is EditionState.PUBLISHED:
            publisher.process()
            publisher.publish(self.edition.update_type)
        else:
            publisher.unpublish()
