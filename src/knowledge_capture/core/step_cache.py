"""Memoized step results keyed by (run id, step name)."""

from typing import Optional

from knowledge_capture.core.interfaces import StepCache


class InMemoryStepCache(StepCache):
    """Step cache held in process memory.

    Results survive workflow retries within one process but not a restart;
    use the SQLite-backed cache for that.
    """

    def __init__(self) -> None:
        self._results: dict[tuple[str, str], str] = {}

    async def get(self, run_id: str, step: str) -> Optional[str]:
        return self._results.get((run_id, step))

    async def put(self, run_id: str, step: str, payload: str) -> None:
        self._results[(run_id, step)] = payload

    async def steps(self, run_id: str) -> list[str]:
        """Names of the memoized steps of one run, in completion order."""
        return [step for (run, step) in self._results if run == run_id]
