"""Attendee join-request state machine."""

from streamhub.schemas import RequestToJoinStatus


class AttendeeStateMachine:
    """State machine for an attendee's request-to-join status.

    State flow with triggers:
    - (none) -> PENDING (request to join a private/protected stream)
    - (none) -> APPROVED (direct join, organizer registration)
    - PENDING -> APPROVED (organizer approves, or the stream becomes public) | DISAPPROVED
    - DISAPPROVED -> PENDING (requests again) | APPROVED (organizer reconsiders or direct
      join) | DISAPPROVED (organizer confirms the refusal)
    - APPROVED -> PENDING (stopped attending, then requests again)

    Attendance is a separate flag: marking not attending clears `is_attending` and leaves
    the status APPROVED, so the member may come back without a new approval.
    """

    INITIAL_STATES: set[RequestToJoinStatus] = {
        RequestToJoinStatus.PENDING,
        RequestToJoinStatus.APPROVED,
    }

    TRANSITIONS: dict[RequestToJoinStatus, set[RequestToJoinStatus]] = {
        RequestToJoinStatus.PENDING: {
            RequestToJoinStatus.APPROVED,
            RequestToJoinStatus.DISAPPROVED,
        },
        RequestToJoinStatus.APPROVED: {
            RequestToJoinStatus.PENDING,
        },
        RequestToJoinStatus.DISAPPROVED: {
            RequestToJoinStatus.PENDING,
            RequestToJoinStatus.APPROVED,
            RequestToJoinStatus.DISAPPROVED,
        },
    }

    # States in which an organizer decision may be applied
    DECIDABLE_STATES: set[RequestToJoinStatus] = {
        RequestToJoinStatus.PENDING,
        RequestToJoinStatus.DISAPPROVED,
    }

    @classmethod
    def can_transition(cls, current: RequestToJoinStatus, new: RequestToJoinStatus) -> bool:
        return new in cls.TRANSITIONS.get(current, set())

    @classmethod
    def can_start_in(cls, state: RequestToJoinStatus) -> bool:
        return state in cls.INITIAL_STATES

    @classmethod
    def is_decidable(cls, state: RequestToJoinStatus) -> bool:
        """Check whether the organizer may still approve or disapprove.

        Args:
            state: Current request-to-join status

        Returns:
            True for PENDING and DISAPPROVED requests
        """
        return state in cls.DECIDABLE_STATES

    @classmethod
    def get_valid_transitions(cls, state: RequestToJoinStatus) -> set[RequestToJoinStatus]:
        return cls.TRANSITIONS.get(state, set())

    @classmethod
    def get_valid_sources(cls, target: RequestToJoinStatus) -> set[RequestToJoinStatus]:
        return {state for state, targets in cls.TRANSITIONS.items() if target in targets}
