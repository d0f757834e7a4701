"""
Data quality checks for the master stock sheet.

The sheet is maintained by hand in a spreadsheet, so it drifts: blank
barcodes, labels that don't match the T + 5 digits format, quantities typed
as text, the same barcode listed twice. None of these block a sync (the
catalog builder has a rule for each), but they are reported so whoever owns
the sheet can fix them.
"""

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import pandas as pd

from .barcodes import is_valid_barcode, normalize_barcode
from .catalog import clean_text, resolve_columns

CheckFn = Callable[[pd.DataFrame], list["DataQualityIssue"]]


@dataclass
class DataQualityIssue:
    """A single data quality issue found in the sheet."""

    column: str
    issue_type: str  # e.g., "missing", "invalid_format", "non_numeric", "duplicate"
    severity: str  # "critical", "warning", "info"
    count: int
    percentage: float
    sample_values: list[Any] = field(default_factory=list)
    description: str = ""


@dataclass
class DataQualityReport:
    """Summary of data quality for one sheet load."""

    source_name: str
    total_rows: int
    issues: list[DataQualityIssue] = field(default_factory=list)

    @property
    def critical_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "critical"]

    @property
    def warning_issues(self) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.severity == "warning"]

    @property
    def has_critical_issues(self) -> bool:
        return len(self.critical_issues) > 0

    def by_type(self, issue_type: str) -> list[DataQualityIssue]:
        return [i for i in self.issues if i.issue_type == issue_type]

    def summary(self) -> dict:
        """Return a summary dict for display."""
        return {
            "source": self.source_name,
            "total_rows": self.total_rows,
            "critical": len(self.critical_issues),
            "warnings": len(self.warning_issues),
            "info": len([i for i in self.issues if i.severity == "info"]),
        }


def _issue(
    df: pd.DataFrame,
    column: str,
    issue_type: str,
    severity: str,
    mask: pd.Series,
    description: str,
) -> DataQualityIssue:
    count = int(mask.sum())
    return DataQualityIssue(
        column=column,
        issue_type=issue_type,
        severity=severity,
        count=count,
        percentage=(count / len(df)) * 100 if len(df) else 0.0,
        sample_values=df.loc[mask, column].head(5).tolist(),
        description=description.format(count=count),
    )


def _blank_mask(series: pd.Series) -> pd.Series:
    return series.apply(lambda v: clean_text(v) is None).astype(bool)


class DataQualityChecker:
    """
    Runs a list of checks over a raw DataFrame.

    Extend by adding custom checks via add_check(); each check receives the
    frame and returns the issues it found.
    """

    def __init__(self, source_name: str):
        self.source_name = source_name
        self._checks: list[CheckFn] = []
        self._add_default_checks()

    def _add_default_checks(self):
        self.add_check(self._check_missing_values)

    def add_check(self, check_fn: CheckFn) -> "DataQualityChecker":
        """Add a custom check function. Returns self for chaining."""
        self._checks.append(check_fn)
        return self

    def _check_missing_values(self, df: pd.DataFrame) -> list[DataQualityIssue]:
        """Blank cells per column."""
        issues = []
        for col in df.columns:
            missing = _blank_mask(df[col])
            if missing.any():
                pct = (missing.sum() / len(df)) * 100
                severity = "warning" if pct > 5 else "info"
                issues.append(
                    _issue(df, col, "missing", severity, missing,
                           "{count:,} blank values")
                )
        return issues

    def run(self, df: pd.DataFrame) -> DataQualityReport:
        """Run all checks and return a quality report."""
        all_issues = []
        for check_fn in self._checks:
            all_issues.extend(check_fn(df))

        return DataQualityReport(
            source_name=self.source_name, total_rows=len(df), issues=all_issues
        )


def check_barcodes(df: pd.DataFrame) -> list[DataQualityIssue]:
    """Rows dropped for a blank barcode, and barcodes a scanner can't produce."""
    col = resolve_columns(df.columns).get("barcode")
    if col is None:
        return [
            DataQualityIssue(
                column="Barcode",
                issue_type="missing_column",
                severity="critical",
                count=len(df),
                percentage=100.0 if len(df) else 0.0,
                description="No Barcode column; every row is dropped",
            )
        ]

    issues = []
    blank = _blank_mask(df[col])
    if blank.any():
        issues.append(
            _issue(df, col, "dropped_row", "warning", blank,
                   "{count:,} rows have no barcode and were dropped")
        )

    malformed = ~blank & ~df[col].apply(is_valid_barcode).astype(bool)
    if malformed.any():
        issues.append(
            _issue(df, col, "invalid_format", "warning", malformed,
                   "{count:,} barcodes are not T + 5 digits and can never be scanned")
        )

    keys = df[col].where(~blank).dropna().apply(normalize_barcode)
    duplicated = keys.duplicated(keep=False).reindex(df.index, fill_value=False)
    if duplicated.any():
        issues.append(
            _issue(df, col, "duplicate", "warning", duplicated,
                   "{count:,} rows share a barcode; the last row wins")
        )
    return issues


def check_expected_quantities(df: pd.DataFrame) -> list[DataQualityIssue]:
    """Expected quantities that will be read as 0."""
    col = resolve_columns(df.columns).get("expected_qty")
    if col is None:
        return [
            DataQualityIssue(
                column="ExpectedQty",
                issue_type="missing_column",
                severity="warning",
                count=len(df),
                percentage=100.0 if len(df) else 0.0,
                description="No ExpectedQty column; every item expects 0",
            )
        ]

    numeric = pd.to_numeric(df[col].astype(str).str.strip(), errors="coerce")
    blank = _blank_mask(df[col])
    non_numeric = numeric.isna() & ~blank
    issues = []
    if non_numeric.any():
        issues.append(
            _issue(df, col, "non_numeric", "warning", non_numeric,
                   "{count:,} expected quantities are not numbers")
        )
    negative = numeric < 0
    if negative.any():
        issues.append(
            _issue(df, col, "negative", "warning", negative,
                   "{count:,} expected quantities are negative")
        )
    return issues


def check_master_sheet(df: pd.DataFrame, source_name: str = "Master Stock") -> DataQualityReport:
    """Run every master-sheet check."""
    checker = DataQualityChecker(source_name)
    checker.add_check(check_barcodes)
    checker.add_check(check_expected_quantities)
    return checker.run(df)
