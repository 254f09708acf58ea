"""Run-related API endpoints."""

import uuid
from collections.abc import Iterable, Iterator
from datetime import datetime, timezone
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException
from fastapi.responses import StreamingResponse

from podcast_pipeline.dependencies import (
    get_max_stream_seconds,
    get_progress_subscriber,
    get_run_store,
    get_token_issuer,
    get_trigger_publisher,
    get_trigger_routing_key,
)
from podcast_pipeline.domain.models import ProgressEvent, Run, TriggerMessage
from podcast_pipeline.domain.progress import (
    ALL_TOPICS,
    SubscriptionTokenIssuer,
    channel_for,
)
from podcast_pipeline.exceptions import (
    EventPublishError,
    InvalidSubscriptionTokenError,
    RunAlreadyExistsError,
    RunNotFoundError,
    RunPersistenceError,
)
from podcast_pipeline.infrastructure.interfaces import (
    EventPublisher,
    ProgressSubscriber,
    RunStore,
)
from podcast_pipeline.logging import setup_logging
from podcast_pipeline.response_models import (
    CreateRunRequest,
    RealtimeTokenResponse,
    RunCreatedResponse,
    RunDetailResponse,
)

logger = setup_logging()

router = APIRouter(tags=["runs"])

RunStoreDep = Annotated[RunStore, Depends(get_run_store)]
PublisherDep = Annotated[EventPublisher, Depends(get_trigger_publisher)]
RoutingKeyDep = Annotated[str, Depends(get_trigger_routing_key)]
TokenIssuerDep = Annotated[SubscriptionTokenIssuer, Depends(get_token_issuer)]
SubscriberDep = Annotated[ProgressSubscriber, Depends(get_progress_subscriber)]
MaxStreamDep = Annotated[float, Depends(get_max_stream_seconds)]


@router.post("/runs", response_model=RunCreatedResponse, status_code=202)
def create_run(
    request: CreateRunRequest,
    store: RunStoreDep,
    publisher: PublisherDep,
    routing_key: RoutingKeyDep,
) -> RunCreatedResponse:
    """
    Creates a run for uploaded audio and publishes its trigger event.
    """
    run_id = request.run_id or str(uuid.uuid4())
    now = datetime.now(timezone.utc)

    logger.info(
        "Received run request",
        extra={"run_id": run_id, "input_ref": request.input_ref},
    )

    try:
        store.insert(
            Run(
                run_id=run_id,
                input_ref=request.input_ref,
                owner_id=request.owner_id,
                created_at=now,
                updated_at=now,
            )
        )
    except RunAlreadyExistsError:
        raise HTTPException(status_code=409, detail="Run already exists")
    except RunPersistenceError:
        raise HTTPException(status_code=500, detail="Run creation failed")

    try:
        publisher.publish(
            routing_key=routing_key,
            payload=TriggerMessage(
                run_id=run_id, input_ref=request.input_ref
            ).model_dump(),
        )
    except EventPublishError:
        raise HTTPException(status_code=500, detail="Event publish failed")

    return RunCreatedResponse(message="Run created, processing started", run_id=run_id)


@router.get("/runs/{run_id}", response_model=RunDetailResponse)
def get_run(
    run_id: str,
    x_user_id: Annotated[str, Header()],
    store: RunStoreDep,
) -> RunDetailResponse:
    """Returns the persisted state of a run to its owner."""
    try:
        run = store.get(run_id)
    except RunNotFoundError:
        raise HTTPException(status_code=404, detail="Run not found")
    except RunPersistenceError:
        raise HTTPException(status_code=500, detail="Internal server error")

    if run.owner_id != x_user_id:
        logger.warning(
            "Run read refused, caller does not own run", extra={"run_id": run_id}
        )
        raise HTTPException(status_code=403, detail="Forbidden")

    return RunDetailResponse.from_run(run)


@router.post("/runs/{run_id}/realtime-token", response_model=RealtimeTokenResponse)
def issue_realtime_token(
    run_id: str,
    x_user_id: Annotated[str, Header()],
    store: RunStoreDep,
    issuer: TokenIssuerDep,
) -> RealtimeTokenResponse:
    """Issues a progress subscription token to the owner of a run."""
    try:
        run = store.get(run_id)
    except RunNotFoundError:
        raise HTTPException(status_code=404, detail="Run not found")
    except RunPersistenceError:
        raise HTTPException(status_code=500, detail="Internal server error")

    if run.owner_id != x_user_id:
        logger.warning(
            "Realtime token refused, caller does not own run",
            extra={"run_id": run_id},
        )
        raise HTTPException(status_code=403, detail="Forbidden")

    return RealtimeTokenResponse(
        token=issuer.issue(run_id),
        channel=channel_for(run_id),
        topics=list(ALL_TOPICS),
        expires_in=issuer.ttl_seconds,
    )


def _as_sse(events: Iterable[ProgressEvent]) -> Iterator[str]:
    """Frames progress events as Server-Sent Events."""
    for event in events:
        yield f"event: {event.topic.value}\ndata: {event.model_dump_json()}\n\n"


@router.get("/realtime/stream")
def stream_progress(
    token: str,
    issuer: TokenIssuerDep,
    subscriber: SubscriberDep,
    max_seconds: MaxStreamDep,
) -> StreamingResponse:
    """Streams the progress events a subscription token grants."""
    try:
        grant = issuer.verify(token)
    except InvalidSubscriptionTokenError as e:
        logger.warning("Rejected subscription token", extra={"reason": e.reason})
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    events = subscriber.subscribe(grant.channel, grant.topics, max_seconds)
    return StreamingResponse(_as_sse(events), media_type="text/event-stream")
