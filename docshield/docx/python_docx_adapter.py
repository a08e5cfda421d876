from pathlib import Path

import docx
from docx.document import Document
from docx.opc.part import Part
from docx.section import _Footer, _Header
from docx.table import Table
from docx.text.hyperlink import Hyperlink
from docx.text.paragraph import Paragraph
from docx.text.run import Run

from docshield.docx.base import DocumentEditBackend
from docshield.processor.exceptions import AnonymizationError, OutputWriteError


def paragraph_runs(paragraph: Paragraph) -> list[Run]:
    """Runs of *paragraph* in document order, including those inside hyperlinks."""
    runs: list[Run] = []
    for item in paragraph.iter_inner_content():
        if isinstance(item, Hyperlink):
            runs.extend(item.runs)
        else:
            runs.append(item)
    return runs


def replace_in_paragraph(paragraph: Paragraph, search: str, replacement: str) -> int:
    """Replace *search* in *paragraph*, keeping run formatting where possible.

    Matches inside a single run are replaced in that run. If any match spans
    several runs, the whole paragraph is rewritten into the first run and the
    others are emptied, so that paragraph takes the first run's formatting.
    """
    runs = paragraph_runs(paragraph)
    original = "".join(run.text for run in runs)
    if not search or search not in original:
        return 0

    total = original.count(search)
    if sum(run.text.count(search) for run in runs) == total:
        for run in runs:
            if search in run.text:
                run.text = run.text.replace(search, replacement)
        return total

    first, *rest = runs
    first.text = original.replace(search, replacement)
    for run in rest:
        run.text = ""
    return total


def replace_in_link_targets(part: Part, pairs: list[tuple[str, str]]) -> int:
    """Rewrite external relationship targets (``mailto:`` and web links) of *part*."""
    count = 0
    for rel in part.rels.values():
        if not rel.is_external:
            continue
        target = rel.target_ref
        for search, replacement in pairs:
            if search and search in target:
                count += target.count(search)
                target = target.replace(search, replacement)
        # python-docx has no public setter for a relationship target
        rel._target = target
    return count


class PythonDocxAdapter(DocumentEditBackend):
    """Edits DOCX text in place with python-docx.

    Covers body paragraphs, hyperlinks and their targets, tables (including
    nested ones), and every header/footer variant that is not linked to the
    previous section.
    """

    def search_and_replace(
        self,
        source: Path,
        searches: list[str],
        replacements: list[str],
        output: Path,
    ) -> int:
        if len(searches) != len(replacements):
            raise ValueError("searches and replacements must have the same length")

        try:
            document = docx.Document(str(source))
        except Exception as exc:
            raise AnonymizationError(f"Failed to open DOCX: {exc}") from exc

        pairs = list(zip(searches, replacements))
        count = sum(self._replace_pairs(p, pairs) for p in self._paragraphs(document))
        parts = [document.part, *(hf.part for hf in self._headers_footers(document))]
        count += sum(replace_in_link_targets(part, pairs) for part in parts)

        try:
            output.parent.mkdir(parents=True, exist_ok=True)
            document.save(str(output))
        except OSError as exc:
            raise OutputWriteError(f"Failed to write anonymized DOCX: {exc}") from exc
        return count

    @staticmethod
    def _replace_pairs(paragraph: Paragraph, pairs: list[tuple[str, str]]) -> int:
        return sum(replace_in_paragraph(paragraph, search, repl) for search, repl in pairs)

    @staticmethod
    def _headers_footers(document: Document) -> list[_Header | _Footer]:
        found: list[_Header | _Footer] = []
        for section in document.sections:
            for header_footer in (
                section.header,
                section.first_page_header,
                section.even_page_header,
                section.footer,
                section.first_page_footer,
                section.even_page_footer,
            ):
                if not header_footer.is_linked_to_previous:
                    found.append(header_footer)
        return found

    def _paragraphs(self, document: Document) -> list[Paragraph]:
        paragraphs = list(document.paragraphs)
        seen_cells: set[object] = set()
        for table in document.tables:
            paragraphs.extend(self._table_paragraphs(table, seen_cells))

        for header_footer in self._headers_footers(document):
            paragraphs.extend(header_footer.paragraphs)
            for table in header_footer.tables:
                paragraphs.extend(self._table_paragraphs(table, seen_cells))
        return paragraphs

    def _table_paragraphs(self, table: Table, seen_cells: set[object]) -> list[Paragraph]:
        paragraphs: list[Paragraph] = []
        for row in table.rows:
            for cell in row.cells:
                # merged cells are yielded once per grid position
                key = cell._tc
                if key in seen_cells:
                    continue
                seen_cells.add(key)
                paragraphs.extend(cell.paragraphs)
                for nested in cell.tables:
                    paragraphs.extend(self._table_paragraphs(nested, seen_cells))
        return paragraphs
