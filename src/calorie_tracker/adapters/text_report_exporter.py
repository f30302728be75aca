"""Writes day reports as paginated plain-text files."""

from dataclasses import dataclass
from pathlib import Path

from calorie_tracker.domain.progress import ExportRequest
from calorie_tracker.services.export import Exporter, paginate, report_lines

PAGE_BREAK = "\f\n"
FOOTER = "Educational demo. Not a substitute for professional medical advice."


@dataclass
class TextReportExporter(Exporter):
    """Exporter that writes ``calorie-report-<date>.txt`` files."""

    output_dir: Path

    def export(self, request: ExportRequest) -> None:
        pages = paginate(report_lines(request))
        content = PAGE_BREAK.join("\n".join(page) + "\n" for page in pages)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(request)
        path.write_text(f"{content}\n{FOOTER}\n", encoding="utf-8")

    def path_for(self, request: ExportRequest) -> Path:
        return self.output_dir / f"calorie-report-{request.date.isoformat()}.txt"
