"""Report formatting and output for herbie_lint findings."""

import json
import sys
from collections import Counter, defaultdict
from typing import List, TextIO

from herbie_lint import __version__
from herbie_lint.core.finding import Finding, Severity

_SARIF_SCHEMA = "https://raw.githubusercontent.com/oasis-tcs/sarif-spec/master/Schemata/sarif-schema-2.1.0.json"

_SARIF_LEVELS = {
    Severity.ERROR: "error",
    Severity.WARNING: "warning",
    Severity.INFO: "note",
    Severity.HINT: "note",
}


class Reporter:
    """Formats and outputs findings in various formats."""

    def __init__(self, output_format: str = "text", show_suggestions: bool = True):
        self.output_format = output_format
        self.show_suggestions = show_suggestions

    def report(self, findings: List[Finding], output: TextIO = sys.stdout) -> int:
        """
        Output findings in the configured format.

        Returns:
            Exit code (0 if no errors, 1 if errors found)
        """
        if self.output_format == "json":
            self._report_json(findings, output)
        elif self.output_format == "sarif":
            self._report_sarif(findings, output)
        else:
            self._report_text(findings, output)

        return 1 if any(f.is_error for f in findings) else 0

    def _report_text(self, findings: List[Finding], output: TextIO):
        if not findings:
            output.write("No numerically unstable expressions found.\n")
            return

        by_file = defaultdict(list)
        for finding in findings:
            by_file[finding.filename].append(finding)

        for filename in sorted(by_file):
            for finding in sorted(by_file[filename], key=lambda f: (f.line, f.col)):
                output.write(self._format_finding_text(finding))
                output.write("\n")

        output.write("\n")
        self._write_summary(findings, output)

    def _format_finding_text(self, finding: Finding) -> str:
        lines = [f"{finding.location}: {finding.severity.value}: {finding.rule_id}"]
        lines.append(f"    {finding.message}")

        if finding.expression:
            lines.append(f"    Expression: {finding.expression}")

        if self.show_suggestions and finding.suggestion:
            lines.append(f"    Try this: {finding.suggestion}")
            if finding.accuracy:
                lines.append(f"    Error: {finding.accuracy}")

        return "\n".join(lines)

    def _write_summary(self, findings: List[Finding], output: TextIO):
        counts = Counter(f.severity for f in findings)

        parts = []
        for severity in (Severity.ERROR, Severity.WARNING, Severity.INFO, Severity.HINT):
            count = counts[severity]
            if count:
                plural = "s" if count > 1 and severity != Severity.INFO else ""
                parts.append(f"{count} {severity.value}{plural}")

        total = len(findings)
        output.write(f"{total} issue{'s' if total != 1 else ''} found ({', '.join(parts)})\n")

    def _report_json(self, findings: List[Finding], output: TextIO):
        data = {
            "findings": [f.to_dict() for f in findings],
            "summary": {
                "total": len(findings),
                "errors": sum(1 for f in findings if f.is_error),
                "warnings": sum(1 for f in findings if f.is_warning),
            },
        }
        json.dump(data, output, indent=2)
        output.write("\n")

    def _report_sarif(self, findings: List[Finding], output: TextIO):
        """
        Report findings in SARIF format.

        Suggestions are emitted as fixes replacing the reported expression.
        """
        results = []
        for finding in findings:
            region = _sarif_region(finding)
            result = {
                "ruleId": finding.rule_id,
                "level": _SARIF_LEVELS.get(finding.severity, "warning"),
                "message": {"text": finding.message},
                "locations": [{
                    "physicalLocation": {
                        "artifactLocation": {"uri": finding.filename},
                        "region": region,
                    }
                }],
            }

            if finding.suggestion:
                fix = {"description": {"text": f"Try this: {finding.suggestion}"}}
                if finding.end_line is not None:
                    fix["artifactChanges"] = [{
                        "artifactLocation": {"uri": finding.filename},
                        "replacements": [{"deletedRegion": region, "insertedContent": {"text": finding.suggestion}}],
                    }]
                result["fixes"] = [fix]

            results.append(result)

        sarif = {
            "$schema": _SARIF_SCHEMA,
            "version": "2.1.0",
            "runs": [{
                "tool": {"driver": {"name": "herbie_lint", "version": __version__}},
                "results": results,
            }],
        }

        json.dump(sarif, output, indent=2)
        output.write("\n")


def _sarif_region(finding: Finding) -> dict:
    # SARIF uses 1-indexed columns
    region = {"startLine": finding.line, "startColumn": finding.col + 1}
    if finding.end_line is not None and finding.end_col is not None:
        region["endLine"] = finding.end_line
        region["endColumn"] = finding.end_col + 1
    return region
