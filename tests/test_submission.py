"""Tests for the run/submit pipeline."""

import asyncio
import dataclasses

import pytest

from lctui.dispatch import JudgeFinished
from lctui.exceptions import (
    AuthenticationRequiredError,
    SolutionNotFoundError,
    SubmissionError,
    TransportError,
)
from lctui.scaffold import scaffold_problem
from lctui.submission import (
    AttemptKind,
    JobState,
    JudgeJob,
    JudgePayload,
    prepare_attempt,
    run_attempt,
    sample_input,
)

ACCEPTED = {
    "state": "SUCCESS",
    "status_code": 10,
    "status_msg": "Accepted",
    "run_success": True,
    "total_correct": 63,
    "total_testcases": 63,
}


@pytest.fixture
def payload() -> JudgePayload:
    return JudgePayload(
        kind=AttemptKind.SUBMIT,
        slug="two-sum",
        question_id="1",
        lang="rust",
        code="impl Solution {}",
    )


def run(client, payload, messages):
    return asyncio.run(run_attempt(client, payload, 7, messages.append, poll_interval=0))


class TestJudgeJob:
    """Tests for the attempt state machine."""

    def test_forward_transitions(self):
        job = JudgeJob(kind=AttemptKind.RUN)
        job.mark_submitted("abc")
        job.mark_polling()
        job.fail("boom")
        assert job.state is JobState.FAILED
        assert job.finished
        assert job.job_id == "abc"

    def test_transitions_never_reverse(self):
        job = JudgeJob(kind=AttemptKind.RUN)
        job.mark_submitted("abc")
        job.mark_polling()
        job.fail("boom")
        with pytest.raises(ValueError):
            job.mark_polling()

    def test_cannot_poll_before_submitting(self):
        job = JudgeJob(kind=AttemptKind.SUBMIT)
        with pytest.raises(ValueError):
            job.mark_polling()


class TestSampleInput:
    """Tests for choosing Run input."""

    def test_prefers_example_cases(self, sample_detail):
        assert sample_input(sample_detail) == "[2,7,11,15]\n9\n[3,2,4]\n6"

    def test_falls_back_to_sample_case(self, sample_detail):
        detail = dataclasses.replace(sample_detail, example_testcase_list=[])
        assert sample_input(detail) == "[2,7,11,15]\n9"

    def test_empty_when_nothing_available(self, sample_detail):
        detail = dataclasses.replace(sample_detail, example_testcase_list=[], sample_test_case=None)
        assert sample_input(detail) == ""


class TestPrepareAttempt:
    """Tests for the synchronous preconditions."""

    def test_requires_credentials(self, tmp_storage, anonymous_config, sample_detail):
        """Test a Run without credentials fails before touching anything."""
        scaffold_problem(tmp_storage, anonymous_config, sample_detail)
        with pytest.raises(AuthenticationRequiredError):
            prepare_attempt(AttemptKind.RUN, anonymous_config, sample_detail, tmp_storage)

    def test_requires_config(self, tmp_storage, sample_detail):
        with pytest.raises(AuthenticationRequiredError):
            prepare_attempt(AttemptKind.SUBMIT, None, sample_detail, tmp_storage)

    def test_requires_solution_file(self, tmp_storage, sample_config, sample_detail):
        with pytest.raises(SolutionNotFoundError) as exc_info:
            prepare_attempt(AttemptKind.SUBMIT, sample_config, sample_detail, tmp_storage)
        assert "main.rs" in exc_info.value.message
        assert "'o'" in exc_info.value.message

    def test_run_payload(self, tmp_storage, sample_config, sample_detail):
        """Test a Run carries the extracted code and the sample input."""
        scaffold_problem(tmp_storage, sample_config, sample_detail)

        payload = prepare_attempt(AttemptKind.RUN, sample_config, sample_detail, tmp_storage)

        assert payload.slug == "two-sum"
        assert payload.question_id == "1"
        assert payload.lang == "rust"
        assert payload.code == sample_detail.snippet_for(sample_config.language)
        assert payload.data_input == "[2,7,11,15]\n9\n[3,2,4]\n6"

    def test_submit_payload_has_no_input(self, tmp_storage, sample_config, sample_detail):
        scaffold_problem(tmp_storage, sample_config, sample_detail)
        payload = prepare_attempt(AttemptKind.SUBMIT, sample_config, sample_detail, tmp_storage)
        assert payload.data_input is None


class TestRunAttempt:
    """Tests for the poll-until-terminal protocol."""

    def test_three_polls_one_submit_one_message(self, mock_leetcode_client, payload):
        """Test a job that needs three checks."""
        mock_leetcode_client.submit_code.return_value = "123"
        mock_leetcode_client.check.side_effect = [
            {"state": "PENDING"},
            {"state": "STARTED"},
            ACCEPTED,
        ]
        messages = []

        job = run(mock_leetcode_client, payload, messages)

        mock_leetcode_client.submit_code.assert_awaited_once_with("two-sum", "1", "rust", "impl Solution {}")
        mock_leetcode_client.run_code.assert_not_awaited()
        assert mock_leetcode_client.check.await_count == 3
        assert job.polls == 3
        assert job.state is JobState.COMPLETED
        assert job.verdict.accepted
        assert messages == [JudgeFinished(attempt_id=7, job=job)]

    def test_run_sends_sample_input(self, mock_leetcode_client, payload):
        run_payload = dataclasses.replace(payload, kind=AttemptKind.RUN, data_input="[1]\n1")
        mock_leetcode_client.run_code.return_value = "runcode_1"
        mock_leetcode_client.check.return_value = dict(ACCEPTED, correct_answer=True)
        messages = []

        job = run(mock_leetcode_client, run_payload, messages)

        mock_leetcode_client.run_code.assert_awaited_once_with("two-sum", "1", "rust", "impl Solution {}", "[1]\n1")
        mock_leetcode_client.check.assert_awaited_once_with("runcode_1")
        assert job.verdict.accepted

    def test_submit_rejected(self, mock_leetcode_client, payload):
        """Test a rejected submission fails without polling."""
        mock_leetcode_client.submit_code.side_effect = SubmissionError("Failed to submit: HTTP 429")
        messages = []

        job = run(mock_leetcode_client, payload, messages)

        assert job.state is JobState.FAILED
        assert job.error == "Failed to submit: HTTP 429"
        mock_leetcode_client.check.assert_not_awaited()
        assert len(messages) == 1

    def test_transport_error_while_polling(self, mock_leetcode_client, payload):
        mock_leetcode_client.submit_code.return_value = "123"
        mock_leetcode_client.check.side_effect = [{"state": "PENDING"}, TransportError("timed out")]
        messages = []

        job = run(mock_leetcode_client, payload, messages)

        assert job.state is JobState.FAILED
        assert job.error == "timed out"
        assert job.polls == 1
        assert len(messages) == 1

    def test_malformed_verdict_still_finishes(self, mock_leetcode_client, payload):
        """Test an unparseable result fails the job and still reports once."""
        mock_leetcode_client.submit_code.return_value = "123"
        mock_leetcode_client.check.return_value = dict(ACCEPTED, status_code="ten")
        messages = []

        job = run(mock_leetcode_client, payload, messages)

        assert job.state is JobState.FAILED
        assert job.error.startswith("Malformed judge result")
        assert messages == [JudgeFinished(attempt_id=7, job=job)]

    def test_judge_failure_state(self, mock_leetcode_client, payload):
        mock_leetcode_client.submit_code.return_value = "123"
        mock_leetcode_client.check.return_value = {"state": "FAILURE", "status_msg": "Internal Error"}
        messages = []

        job = run(mock_leetcode_client, payload, messages)

        assert job.state is JobState.FAILED
        assert "Internal Error" in job.error
