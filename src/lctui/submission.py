"""Run and submit attempts: preconditions, payload, and the poll-until-terminal protocol."""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from lctui.client import LeetCodeClient
from lctui.dispatch import JudgeFinished, Sender
from lctui.exceptions import AuthenticationRequiredError, LeetCodeError, SolutionNotFoundError
from lctui.extract import extract_solution
from lctui.models import Config, ProblemDetail, Verdict
from lctui.storage import Storage

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 1.0


class AttemptKind(Enum):
    RUN = "run"
    SUBMIT = "submit"


class JobState(Enum):
    IDLE = "idle"
    SUBMITTED = "submitted"
    POLLING = "polling"
    COMPLETED = "completed"
    FAILED = "failed"


_TRANSITIONS = {
    JobState.IDLE: {JobState.SUBMITTED, JobState.FAILED},
    JobState.SUBMITTED: {JobState.POLLING, JobState.FAILED},
    JobState.POLLING: {JobState.COMPLETED, JobState.FAILED},
    JobState.COMPLETED: set(),
    JobState.FAILED: set(),
}


@dataclass
class JudgePayload:
    """Everything a run or submit request needs, captured before dispatch."""

    kind: AttemptKind
    slug: str
    question_id: str
    lang: str
    code: str
    data_input: Optional[str] = None


@dataclass
class JudgeJob:
    """State of one attempt. Transitions only move forward."""

    kind: AttemptKind
    state: JobState = JobState.IDLE
    job_id: Optional[str] = None
    verdict: Optional[Verdict] = None
    error: Optional[str] = None
    polls: int = 0

    def _advance(self, state: JobState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Invalid job transition {self.state.value} -> {state.value}")
        logger.debug("Job %s: %s -> %s", self.job_id, self.state.value, state.value)
        self.state = state

    def mark_submitted(self, job_id: str) -> None:
        self._advance(JobState.SUBMITTED)
        self.job_id = job_id

    def mark_polling(self) -> None:
        self._advance(JobState.POLLING)

    def complete(self, verdict: Verdict) -> None:
        self._advance(JobState.COMPLETED)
        self.verdict = verdict

    def fail(self, error: str) -> None:
        self._advance(JobState.FAILED)
        self.error = error

    @property
    def finished(self) -> bool:
        return self.state in (JobState.COMPLETED, JobState.FAILED)


def sample_input(detail: ProblemDetail) -> str:
    """Input for a Run: example cases, else the sample case, else nothing."""
    if detail.example_testcase_list:
        return "\n".join(detail.example_testcase_list)
    if detail.sample_test_case:
        return detail.sample_test_case
    return ""


def read_solution(storage: Storage, config: Config, detail: ProblemDetail) -> str:
    path = storage.solution_path(config, detail)
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise SolutionNotFoundError(path, getattr(e, "strerror", None) or str(e)) from e
    return extract_solution(content, config.language)


def prepare_attempt(
    kind: AttemptKind,
    config: Optional[Config],
    detail: ProblemDetail,
    storage: Storage,
) -> JudgePayload:
    """Check preconditions and build the payload. Issues no network calls.

    Raises AuthenticationRequiredError without credentials and
    SolutionNotFoundError when the solution file can't be read.
    """
    if config is None or not config.is_authenticated():
        raise AuthenticationRequiredError()

    code = read_solution(storage, config, detail)
    return JudgePayload(
        kind=kind,
        slug=detail.slug,
        question_id=detail.question_id,
        lang=config.language.lang_slug,
        code=code,
        data_input=sample_input(detail) if kind is AttemptKind.RUN else None,
    )


async def run_attempt(
    client: LeetCodeClient,
    payload: JudgePayload,
    attempt_id: int,
    send: Sender,
    poll_interval: float = POLL_INTERVAL_SECONDS,
) -> JudgeJob:
    """Drive one attempt to a terminal state and send exactly one JudgeFinished."""
    job = JudgeJob(kind=payload.kind)
    try:
        if payload.kind is AttemptKind.RUN:
            job_id = await client.run_code(
                payload.slug, payload.question_id, payload.lang, payload.code, payload.data_input or ""
            )
        else:
            job_id = await client.submit_code(payload.slug, payload.question_id, payload.lang, payload.code)
        job.mark_submitted(job_id)
        job.mark_polling()

        while True:
            data = await client.check(job_id)
            job.polls += 1
            state = data.get("state")
            if state == "SUCCESS":
                try:
                    verdict = Verdict.from_check(data)
                except (TypeError, ValueError) as e:
                    job.fail(f"Malformed judge result: {e}")
                    break
                job.complete(verdict)
                break
            if state == "FAILURE":
                job.fail(f"Judge failed: {data.get('status_msg') or 'unknown error'}")
                break
            # PENDING and STARTED keep polling
            await asyncio.sleep(poll_interval)
    except LeetCodeError as e:
        job.fail(e.message)

    logger.info(
        "%s attempt %d finished: %s after %d polls",
        payload.kind.value,
        attempt_id,
        job.verdict.status_msg if job.verdict else job.error,
        job.polls,
    )
    send(JudgeFinished(attempt_id=attempt_id, job=job))
    return job
