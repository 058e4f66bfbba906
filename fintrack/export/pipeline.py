"""
Export Pipeline

DESIGN DECISION: Renderers are dumb. They turn an ExportContext into
bytes and never crash on empty input. All policy lives here:

1. REFUSE: an export with no transactions is refused before any
   renderer runs (ExportError). An empty statement is never produced.
2. RENDER: the renderer for the requested format runs; anything it
   raises is wrapped in ExportError.
3. NAME: <product-name>-<artifact-kind>_<ISO-date>.<ext>
4. SAVE (optional): written atomically, so a failed export never
   leaves a partial file behind.

Every outcome is audited with the same correlation id.
"""

from enum import Enum
from pathlib import Path
from typing import Callable, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from fintrack.audit.logger import AuditLogger, create_correlation_id, get_logger
from fintrack.errors import ExportError
from fintrack.export.context import ExportContext
from fintrack.export.csv_renderer import render_csv
from fintrack.export.formatting import artifact_filename
from fintrack.export.pdf_renderer import render_pdf
from fintrack.export.xlsx_renderer import render_xlsx
from fintrack.services.storage import atomic_write


logger = get_logger(__name__)


class ExportFormat(str, Enum):
    CSV = "csv"
    XLSX = "xlsx"
    PDF = "pdf"


MIME_TYPES = {
    ExportFormat.CSV: "text/csv",
    ExportFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ExportFormat.PDF: "application/pdf",
}

# Spreadsheets carry the raw transaction list, the PDF is a statement
ARTIFACT_KINDS = {
    ExportFormat.CSV: "Transactions",
    ExportFormat.XLSX: "Transactions",
    ExportFormat.PDF: "Statement",
}

Renderer = Callable[[ExportContext], bytes]

RENDERERS: dict[ExportFormat, Renderer] = {
    ExportFormat.CSV: render_csv,
    ExportFormat.XLSX: render_xlsx,
    ExportFormat.PDF: render_pdf,
}


class ExportArtifact(BaseModel):
    """A rendered export, ready to be downloaded or saved."""
    model_config = ConfigDict(frozen=True)

    filename: str
    format: ExportFormat
    mime_type: str
    content: bytes
    row_count: int

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ExportPipeline:
    """
    Produces export artifacts from an ExportContext.

    Usage:
        pipeline = ExportPipeline(audit_logger)
        artifact = pipeline.export(context, ExportFormat.PDF)
        path = pipeline.save(artifact, settings.export_dir)
    """

    def __init__(
        self,
        audit_logger: Optional[AuditLogger] = None,
        namespace: str = "",
        renderers: Optional[dict[ExportFormat, Renderer]] = None,
    ):
        self._audit_logger = audit_logger
        self._namespace = namespace
        self._renderers = dict(RENDERERS)
        if renderers:
            self._renderers.update(renderers)

    def export(
        self,
        context: ExportContext,
        export_format: ExportFormat,
        correlation_id: Optional[UUID] = None,
    ) -> ExportArtifact:
        """
        Render `context` in the requested format.

        Raises:
            ExportError: No transactions to export, or the renderer failed
        """
        correlation_id = correlation_id or create_correlation_id()
        export_format = ExportFormat(export_format)

        if context.is_empty:
            reason = "No transactions to export for the selected period"
            if self._audit_logger:
                self._audit_logger.log_export_refused(
                    self._namespace, export_format.value, reason,
                    correlation_id=correlation_id,
                )
            raise ExportError(reason)

        renderer = self._renderers[export_format]
        try:
            content = renderer(context)
        except Exception as e:
            logger.error(
                "export_render_failed",
                format=export_format.value,
                error=str(e),
                correlation_id=str(correlation_id),
            )
            if self._audit_logger:
                self._audit_logger.log_export_failed(
                    self._namespace, export_format.value, str(e),
                    correlation_id=correlation_id,
                )
            raise ExportError(f"{export_format.value.upper()} export failed: {e}") from e

        artifact = ExportArtifact(
            filename=artifact_filename(
                context.product_name,
                ARTIFACT_KINDS[export_format],
                context.issued_on,
                export_format.value,
            ),
            format=export_format,
            mime_type=MIME_TYPES[export_format],
            content=content,
            row_count=len(context.transactions),
        )

        if self._audit_logger:
            self._audit_logger.log_export_generated(
                self._namespace,
                export_format.value,
                artifact.filename,
                artifact.row_count,
                correlation_id=correlation_id,
            )
        return artifact

    def save(self, artifact: ExportArtifact, directory: Path) -> Path:
        """
        Write an artifact into `directory` atomically.

        Raises:
            ExportError: If the file cannot be written
        """
        path = Path(directory) / artifact.filename
        try:
            atomic_write(path, artifact.content)
        except OSError as e:
            if self._audit_logger:
                self._audit_logger.log_export_failed(
                    self._namespace, artifact.format.value, str(e),
                )
            raise ExportError(f"Could not write {path}: {e}") from e
        logger.info("export_saved", path=str(path), bytes=artifact.size_bytes)
        return path
