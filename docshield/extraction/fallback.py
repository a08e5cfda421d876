from collections.abc import Callable, Sequence
from dataclasses import dataclass

from docshield.extraction.models import ExtractionResult
from docshield.logging.logger import Log
from docshield.processor.exceptions import ExtractionError, ServiceUnavailableError


def _always(*_args: object) -> bool:
    return True


@dataclass(frozen=True)
class FallbackStep:
    """One attempt in an extraction fallback chain.

    ``applies`` decides whether the step runs at all, ``run`` performs it and
    ``accept`` decides whether its result is good enough to stop the chain.
    """

    strategy: str
    run: Callable[[], ExtractionResult]
    accept: Callable[[ExtractionResult], bool] = _always
    applies: Callable[[], bool] = _always


class FallbackChain:
    """Runs steps in order and returns the first accepted result."""

    def __init__(self, steps: Sequence[FallbackStep]) -> None:
        self._steps = list(steps)
        self.errors: list[str] = []

    def execute(self) -> ExtractionResult:
        self.errors = []
        for step in self._steps:
            if not step.applies():
                Log.debug(f"Skipping {step.strategy} extraction: not applicable")
                continue

            try:
                result = step.run()
            except ServiceUnavailableError as exc:
                Log.warning(f"{step.strategy} extraction failed: {exc}")
                self.errors.append(f"{step.strategy}: {exc}")
                continue

            if step.accept(result):
                if self.errors:
                    result.metadata["fallback_errors"] = list(self.errors)
                return result

            Log.warning(f"{step.strategy} extraction result rejected")
            self.errors.append(f"{step.strategy}: result rejected")

        raise ExtractionError(
            "All extraction strategies failed: " + "; ".join(self.errors or ["no applicable strategy"])
        )
