"""JSON formatter for sloc-guard."""

import json

from ..models import CheckReport
from .base import BaseFormatter


class JsonFormatter(BaseFormatter):
    """Render the report as the JSON document CI integrations consume."""

    def format(self, report: CheckReport) -> str:
        data = report.to_dict()
        if not self.show_suggestions:
            for finding in data["findings"]:
                finding.pop("suggestions", None)
        return json.dumps(data, indent=2)
