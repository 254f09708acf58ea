"""Progress channel naming, subscription tokens, and the pipeline transition log."""

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer
from pydantic import BaseModel

from podcast_pipeline.domain.models import PipelineState, ProgressTopic, Transition
from podcast_pipeline.exceptions import (
    InvalidSubscriptionTokenError,
    InvalidTransitionError,
)

ALL_TOPICS: tuple[ProgressTopic, ...] = (
    ProgressTopic.TRANSCRIPTION_START,
    ProgressTopic.TRANSCRIPTION_DONE,
    ProgressTopic.GENERATION_START,
    ProgressTopic.GENERATION_DONE,
)

CHANNEL_PREFIX = "run:"


def channel_for(run_id: str) -> str:
    """Returns the progress channel of a run."""
    return f"{CHANNEL_PREFIX}{run_id}"


class SubscriptionGrant(BaseModel, frozen=True):
    """What a verified subscription token allows its bearer to read."""

    channel: str
    topics: tuple[ProgressTopic, ...]


class SubscriptionTokenIssuer:
    """Issues and verifies short-lived tokens scoped to one run channel."""

    def __init__(self, secret: str, ttl_seconds: int):
        self._serializer = URLSafeTimedSerializer(
            secret_key=secret, salt="progress-subscription"
        )
        self._ttl_seconds = ttl_seconds

    @property
    def ttl_seconds(self) -> int:
        return self._ttl_seconds

    def issue(self, run_id: str) -> str:
        """
        Issues a token for one run's channel and the four progress topics.

        Ownership of the run must be checked by the caller before issuing.

        Args:
            run_id: The run whose channel the token grants.

        Returns:
            The signed token.
        """
        return self._serializer.dumps(
            {
                "channel": channel_for(run_id),
                "topics": [topic.value for topic in ALL_TOPICS],
            }
        )

    def verify(self, token: str) -> SubscriptionGrant:
        """
        Checks a token's signature, age and scope.

        Args:
            token: Token previously returned by issue().

        Returns:
            The channel and topics the token grants.

        Raises:
            InvalidSubscriptionTokenError: If the token is expired, tampered
                with, or scoped to anything other than one run channel and
                the fixed topics.
        """
        try:
            data = self._serializer.loads(token, max_age=self._ttl_seconds)
        except SignatureExpired as e:
            raise InvalidSubscriptionTokenError("expired") from e
        except BadSignature as e:
            raise InvalidSubscriptionTokenError("bad signature") from e

        if not isinstance(data, dict):
            raise InvalidSubscriptionTokenError("malformed payload")

        channel = data.get("channel")
        if not isinstance(channel, str) or not channel.startswith(CHANNEL_PREFIX):
            raise InvalidSubscriptionTokenError("channel out of scope")

        try:
            topics = tuple(ProgressTopic(topic) for topic in data.get("topics", []))
        except ValueError as e:
            raise InvalidSubscriptionTokenError("topic out of scope") from e
        if not topics:
            raise InvalidSubscriptionTokenError("no topics granted")

        return SubscriptionGrant(channel=channel, topics=topics)


_ALLOWED: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.CREATED: frozenset({PipelineState.TRANSCRIPTION_RUNNING}),
    PipelineState.TRANSCRIPTION_RUNNING: frozenset({PipelineState.TRANSCRIPTION_DONE}),
    PipelineState.TRANSCRIPTION_DONE: frozenset({PipelineState.GENERATION_RUNNING}),
    PipelineState.GENERATION_RUNNING: frozenset({PipelineState.GENERATION_DONE}),
    PipelineState.GENERATION_DONE: frozenset({PipelineState.PERSISTED}),
    PipelineState.PERSISTED: frozenset({PipelineState.COMPLETED}),
    PipelineState.COMPLETED: frozenset(),
    PipelineState.FAILED: frozenset(),
}


class TransitionLog:
    """
    Validates state-machine transitions and numbers them in causal order.

    Failed is reachable from every non-terminal state. The sequence number
    is the logical timestamp carried in progress payloads.
    """

    def __init__(self):
        self._state = PipelineState.CREATED
        self._entries: list[Transition] = []

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def entries(self) -> list[Transition]:
        return list(self._entries)

    def advance(
        self, target: PipelineState, topic: ProgressTopic | None = None
    ) -> Transition:
        """
        Moves to a new state.

        Args:
            target: The next state.
            topic: Progress topic published for this transition, if any.

        Returns:
            The recorded transition.

        Raises:
            InvalidTransitionError: If the move is not allowed from the current state.
        """
        allowed = _ALLOWED[self._state]
        is_terminal = not allowed
        if target not in allowed and not (
            target == PipelineState.FAILED and not is_terminal
        ):
            raise InvalidTransitionError(self._state.value, target.value)

        transition = Transition(
            sequence=len(self._entries) + 1,
            source=self._state,
            target=target,
            topic=topic,
        )
        self._entries.append(transition)
        self._state = target
        return transition

    def sequence_of(self, topic: ProgressTopic) -> int | None:
        """Returns the logical timestamp at which a topic was emitted."""
        for entry in self._entries:
            if entry.topic == topic:
                return entry.sequence
        return None
