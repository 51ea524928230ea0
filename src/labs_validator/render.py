"""Console output for rejected validations (Rich)."""

from rich.table import Table
from rich.text import Text

TABLE_COLUMNS = ("Type", "ID", "Finding", "Severity")


def finding_rows(findings):
    """Three rows per finding: title, description, message."""
    rows = []
    for finding in findings:
        for text in (finding.title, finding.description, finding.message):
            rows.append([finding.type, finding.id, text, finding.severity])
    return rows


def build_findings_table(findings):
    table = Table(show_lines=True)
    for column in TABLE_COLUMNS:
        table.add_column(column, overflow="fold")
    for row in finding_rows(findings):
        table.add_row(*[Text(cell) for cell in row])
    return table


def print_rejection(console, message, findings):
    """
    Print the rejection header, then the findings table whenever the
    service sent a findings list, even an empty one.
    """
    console.print("There was an error validating your results", markup=False, highlight=False)
    console.print("Error message: '{}'".format(message), markup=False, highlight=False)
    if findings is not None:
        console.print()
        console.print("Outstanding Findings:", markup=False, highlight=False)
        console.print(build_findings_table(findings))
