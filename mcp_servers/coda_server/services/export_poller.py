"""Drive a Coda export job to a terminal state.

Each attempt queries the job status once. Between attempts the poller
suspends on ``sleep`` (``asyncio.sleep`` by default), so concurrent tool
calls keep running and task cancellation lands on the sleep or on the
in-flight query and propagates unchanged.

A transient failure of a status query counts as a non-terminal attempt:
the job may still complete. Budget exhaustion (``max_attempts`` or
``overall_timeout``) raises ``PollTimeoutError`` with the last known job.
"""

import asyncio
import time
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from loguru import logger
from models.export import ExportJob, ExportStatus, PollPolicy
from utils.errors import PollTimeoutError, TransientServiceError

if TYPE_CHECKING:
    from utils.coda_client import CodaClient

Sleep = Callable[[float], Awaitable[None]]
Clock = Callable[[], float]


class ExportPoller:
    def __init__(
        self,
        client: "CodaClient",
        *,
        sleep: Sleep = asyncio.sleep,
        clock: Clock = time.monotonic,
    ):
        self._client = client
        self._sleep = sleep
        self._clock = clock

    async def _query(self, job: ExportJob) -> ExportJob:
        data = await self._client.get_export_status(job)
        status = ExportStatus.parse(data.get("status"))
        return job.advance(
            status,
            content_locator=data.get("downloadLink"),
            failure_reason=data.get("error"),
        )

    async def await_completion(self, job: ExportJob, policy: PollPolicy) -> ExportJob:
        """Poll until ``job`` is COMPLETE or FAILED.

        Raises:
            PollTimeoutError: budget exhausted before a terminal state.
            NotFoundError, InvalidRequestError: the status query was rejected.
        """
        if job.is_terminal:
            return job

        deadline = self._clock() + policy.overall_timeout
        delays = policy.delays()
        attempts = 0

        while True:
            attempts += 1
            try:
                job = await self._query(job)
            except TransientServiceError as exc:
                logger.warning(
                    f"Status query {attempts}/{policy.max_attempts} for export "
                    f"{job.job_id} failed transiently: {exc}"
                )
            else:
                if job.is_terminal:
                    logger.debug(
                        f"Export {job.job_id} {job.status.value} after {attempts} attempt(s)"
                    )
                    return job

            remaining = deadline - self._clock()
            if attempts >= policy.max_attempts or remaining <= 0:
                reason = (
                    f"{attempts} attempts"
                    if attempts >= policy.max_attempts
                    else f"{policy.overall_timeout:g}s"
                )
                raise PollTimeoutError(
                    f"Export did not finish within {reason}",
                    job=job,
                    attempts=attempts,
                )

            await self._sleep(min(next(delays), remaining))
