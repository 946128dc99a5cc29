import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Any, List, Optional, Set

from openai import AsyncOpenAI

logger = logging.getLogger(__name__)

RETRIEVAL_TOOL_TYPES = ("file_search", "retrieval")


def _iso(timestamp: Optional[int]) -> str:
    if timestamp is None:
        return "-"
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).isoformat()


class RunLogger:
    """
    Logs run details and file retrievals for the runs of one streamed request

    Each instance remembers which (thread, run, event) combinations it already
    logged, so create one per request rather than sharing it.
    """

    def __init__(self, client: AsyncOpenAI):
        self.client = client
        self._logged: Set[str] = set()

    async def log_run_details(self, thread_id: str, run_id: str, event: str = "manual_log") -> None:
        """Log status, timing and a step timeline for a run"""
        key = f"{thread_id}:{run_id}:{event}"
        if key in self._logged:
            logger.debug("Run event %s already logged, skipping", key)
            return

        try:
            run = await self.client.beta.threads.runs.retrieve(run_id, thread_id=thread_id)
            steps_page = await self.client.beta.threads.runs.steps.list(run_id, thread_id=thread_id)
            steps = sorted(steps_page.data, key=lambda s: s.created_at)

            logger.info(
                "Run %s (%s) in thread %s: status=%s model=%s created=%s steps=%d",
                run_id, event, thread_id, run.status, run.model, _iso(run.created_at), len(steps)
            )
            if run.completed_at:
                logger.info(
                    "Run %s completed at %s after %ds",
                    run_id, _iso(run.completed_at), run.completed_at - run.created_at
                )
            logger.info("Step type counts: %s", dict(Counter(step.type for step in steps)))

            for line in self._timeline(run, steps):
                logger.info(line)

            await self.log_file_retrievals(thread_id, run_id, steps)
            self._logged.add(key)
        except Exception as e:
            logger.error("Error logging run details for %s: %s", run_id, e)

    def _timeline(self, run: Any, steps: List[Any]) -> List[str]:
        """Render each step as a bar positioned inside the run's duration"""
        if not steps or not run.completed_at:
            return []
        total = max(run.completed_at - run.created_at, 1)
        lines = []
        for index, step in enumerate(steps, start=1):
            start = (step.created_at - run.created_at) / total * 100
            end = ((step.completed_at or step.created_at) - run.created_at) / total * 100
            duration = f"{step.completed_at - step.created_at}s" if step.completed_at else "incomplete"
            bar = "-" * int(end - start)
            lines.append(f"[{start:.1f}% {bar}] Step {index}: {step.type} ({duration})")
        return lines

    async def log_file_retrievals(self, thread_id: str, run_id: str, steps: Optional[List[Any]] = None) -> None:
        """Log the query, sources and output preview of each file search call in a run"""
        try:
            if steps is None:
                steps_page = await self.client.beta.threads.runs.steps.list(run_id, thread_id=thread_id)
                steps = steps_page.data

            retrievals = []
            for step in steps:
                if step.type != "tool_calls":
                    continue
                for call in getattr(step.step_details, "tool_calls", None) or []:
                    if call.type in RETRIEVAL_TOOL_TYPES:
                        retrievals.append(call)

            if not retrievals:
                logger.info("No file retrieval steps found in run %s", run_id)
                return

            logger.info("Run %s made %d file retrievals", run_id, len(retrievals))
            for index, call in enumerate(retrievals, start=1):
                details = getattr(call, call.type, None)
                query = getattr(details, "query", None)
                results = getattr(details, "results", None) or []
                sources = [getattr(r, "file_id", None) or getattr(r, "file_name", "") for r in results]
                preview = str(getattr(call, "output", "") or "")[:100]
                logger.info(
                    "Retrieval %d: query=%r sources=%s output=%s",
                    index, query, ", ".join(sources) or "-", preview or "-"
                )
        except Exception as e:
            logger.error("Error logging file retrievals for %s: %s", run_id, e)
