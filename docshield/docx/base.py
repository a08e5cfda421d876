from abc import ABC, abstractmethod
from pathlib import Path


class DocumentEditBackend(ABC):
    """Contract for office-document text replacement adapters."""

    @abstractmethod
    def search_and_replace(
        self,
        source: Path,
        searches: list[str],
        replacements: list[str],
        output: Path,
    ) -> int:
        """Replace each literal ``searches[i]`` with ``replacements[i]``.

        Args:
            source: Document to read. Never modified.
            searches: Literal strings to find.
            replacements: Replacement for the search at the same index.
            output: Where the edited document is written.

        Returns:
            Number of occurrences replaced.

        Raises:
            AnonymizationError: if the document cannot be edited.
            OutputWriteError: if the output cannot be written.
        """
