"""Custom exceptions for the podcast pipeline."""


class NonRetryableError(Exception):
    """Marker for failures that the step executor must not retry."""


class TransientStepError(Exception):
    """Raised by provider adapters for failures worth retrying (network, rate limit)."""

    def __init__(self, message: str, cause: Exception | None = None):
        self.cause = cause
        super().__init__(message)


class TranscriptionError(TransientStepError):
    """Raised when audio transcription fails."""

    def __init__(self, input_ref: str, cause: Exception | None = None):
        self.input_ref = input_ref
        detail = f": {cause}" if cause else ""
        super().__init__(f"Failed to transcribe audio '{input_ref}'{detail}", cause)


class LLMServiceError(TransientStepError):
    """Raised when the LLM service call fails."""


class ResponseValidationError(Exception):
    """Raised when a structured model response is empty or fails schema validation."""

    def __init__(self, schema_name: str, reason: str, cause: Exception | None = None):
        self.schema_name = schema_name
        self.reason = reason
        self.cause = cause
        super().__init__(f"Invalid '{schema_name}' response: {reason}")


class IsolatedTaskError(Exception):
    """Raised by a generation task whose failure must not abort the run."""

    def __init__(self, task: str, message: str, cause: Exception | None = None):
        self.task = task
        self.cause = cause
        super().__init__(message)


class MissingChaptersError(IsolatedTaskError, NonRetryableError):
    """Raised when a task needs chapter boundaries and the transcript has none."""

    def __init__(self, task: str):
        super().__init__(
            task, "No chapters available in transcript. Cannot generate timestamps."
        )


class StepFailedError(Exception):
    """Raised when a durable step exhausted its attempts or replays a recorded failure."""

    def __init__(
        self,
        step_id: str,
        message: str,
        attempts: int,
        error_type: str,
        replayed: bool = False,
    ):
        self.step_id = step_id
        self.message = message
        self.attempts = attempts
        self.error_type = error_type
        self.replayed = replayed
        super().__init__(
            f"Step '{step_id}' failed after {attempts} attempt(s) ({error_type}): {message}"
        )


class FatalPipelineError(Exception):
    """Raised when a failure aborts the whole run."""

    def __init__(self, run_id: str, step: str, message: str):
        self.run_id = run_id
        self.step = step
        self.message = message
        super().__init__(f"Run '{run_id}' failed at step '{step}': {message}")


class InvalidTransitionError(Exception):
    """Raised when the orchestrator attempts an illegal state transition."""

    def __init__(self, current: str, target: str):
        self.current = current
        self.target = target
        super().__init__(f"Illegal pipeline transition {current} -> {target}")


class RunNotFoundError(NonRetryableError):
    """Raised when a run does not exist."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run '{run_id}' not found")


class RunTerminalError(NonRetryableError):
    """Raised when a write targets a run that is already completed or failed."""

    def __init__(self, run_id: str, status: str):
        self.run_id = run_id
        self.status = status
        super().__init__(f"Run '{run_id}' is terminal ({status}) and cannot be modified")


class RunAlreadyExistsError(Exception):
    """Raised when inserting a run whose id is already taken."""

    def __init__(self, run_id: str):
        self.run_id = run_id
        super().__init__(f"Run '{run_id}' already exists")


class RunPersistenceError(Exception):
    """Raised when reading or writing a run record fails."""

    def __init__(self, run_id: str, operation: str, cause: Exception | None = None):
        self.run_id = run_id
        self.operation = operation
        self.cause = cause
        super().__init__(f"Run {operation} failed for '{run_id}'")


class CheckpointStoreError(Exception):
    """Raised when checkpoint operations fail."""

    def __init__(self, key: str, operation: str, cause: Exception | None = None):
        self.key = key
        self.operation = operation
        self.cause = cause
        super().__init__(f"Checkpoint {operation} failed for key '{key}'")


class EventPublishError(Exception):
    """Raised when publishing an event fails."""

    def __init__(self, routing_key: str, cause: Exception | None = None):
        self.routing_key = routing_key
        self.cause = cause
        super().__init__(f"Failed to publish event with routing key '{routing_key}'")


class InvalidSubscriptionTokenError(Exception):
    """Raised when a progress subscription token is tampered, expired, or out of scope."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Invalid subscription token: {reason}")
