"""SARIF 2.1.0 formatter for code-scanning uploads."""

import json

from .. import __version__
from ..models import CheckReport, Finding, Severity
from .base import BaseFormatter

SARIF_SCHEMA = "https://json.schemastore.org/sarif-2.1.0.json"
SARIF_VERSION = "2.1.0"

CONTENT_RULE_ID = "sloc-guard/content"
STRUCTURE_RULE_ID = "sloc-guard/structure"

_RULES = [
    {
        "id": CONTENT_RULE_ID,
        "name": "ContentLimit",
        "shortDescription": {"text": "File exceeds its source-line limit"},
    },
    {
        "id": STRUCTURE_RULE_ID,
        "name": "StructureLimit",
        "shortDescription": {"text": "Directory violates a structure rule"},
    },
]


def _message(finding: Finding) -> str:
    if finding.is_content:
        text = f"{finding.actual} lines exceeds the limit of {finding.limit}"
        if finding.severity is Severity.WARN:
            text = f"{finding.actual} lines is close to the limit of {finding.limit}"
    elif finding.kind in ("files", "dirs", "depth"):
        text = f"{finding.kind}: {finding.actual} (limit {finding.limit})"
    else:
        text = finding.kind.replace("_", " ")
        if finding.detail:
            text += f": {finding.detail}"
    if finding.category.value != "new":
        text += f" [{finding.category.value}]"
    if finding.reason:
        text += f" ({finding.reason})"
    return text


class SarifFormatter(BaseFormatter):
    def format(self, report: CheckReport) -> str:
        results = []
        for finding in report.violations:
            rule_id = CONTENT_RULE_ID if finding.is_content else STRUCTURE_RULE_ID
            results.append(
                {
                    "ruleId": rule_id,
                    "ruleIndex": 0 if finding.is_content else 1,
                    "level": "error" if finding.is_failure else "warning",
                    "message": {"text": _message(finding)},
                    "locations": [
                        {
                            "physicalLocation": {
                                "artifactLocation": {"uri": finding.path, "uriBaseId": "%SRCROOT%"}
                            }
                        }
                    ],
                    "properties": {
                        "kind": finding.kind,
                        "actual": finding.actual,
                        "limit": finding.limit,
                        "category": finding.category.value,
                    },
                }
            )

        document = {
            "$schema": SARIF_SCHEMA,
            "version": SARIF_VERSION,
            "runs": [
                {
                    "tool": {
                        "driver": {
                            "name": "sloc-guard",
                            "version": __version__,
                            "rules": _RULES,
                        }
                    },
                    "results": results,
                }
            ],
        }
        return json.dumps(document, indent=2)
