"""Display labels for machine-readable codes.

Unmapped keys pass through verbatim so new backend codes still render.
"""

RULE_CHECK_LABELS: dict[str, str] = {
    "must_include": "Required keywords present",
    "must_not_include": "Forbidden keywords absent",
    "max_chars": "Character limit",
    "max_lines": "Line limit",
    "json_parse": "Parses as JSON",
    "schema": "Required keys / schema",
}

JUDGE_LABELS: dict[str, str] = {
    "MISSING_MUST_COVER": "Required point not covered",
    "RUBRIC_CRITERION_DEFINITION_MISSING": "Rubric criterion definition missing",
    "JUDGE_ATTEMPT_NOT_CREATED": "Judge run could not start",
    "JUDGE_JSON_NOT_FOUND": "Judge output had no JSON",
    "JUDGE_JSON_PARSE_FAIL": "Judge output could not be parsed",
}

ERROR_CODE_LABELS: dict[str, str] = {
    "EVAL_CASE_EXECUTION_ERROR": "Internal error while executing the case",
}

DECISION_REASON_LABELS: dict[str, str] = {
    "PASS_RATE_BELOW_THRESHOLD": "Pass rate below threshold",
    "AVG_SCORE_BELOW_THRESHOLD": "Average score below threshold",
    "ERROR_RATE_ABOVE_THRESHOLD": "Error rate above threshold",
    "COMPARE_REGRESSION_DETECTED": "Regression against the released version",
    "COMPARE_IMPROVEMENT_MINOR": "Improvement over the released version is small",
    "COMPARE_BASELINE_INCOMPLETE": "Baseline comparison data is incomplete",
}

RUN_STATUS_LABELS: dict[str, str] = {
    "QUEUED": "Queued",
    "RUNNING": "Running",
    "COMPLETED": "Completed",
    "FAILED": "Failed",
    "CANCELLED": "Cancelled",
    "UNKNOWN": "Unknown",
}

CASE_STATUS_LABELS: dict[str, str] = {
    "QUEUED": "Queued",
    "RUNNING": "Running",
    "OK": "Done",
    "ERROR": "Error",
    "SKIPPED": "Skipped",
}

RISK_LEVEL_LABELS: dict[str, str] = {
    "LOW": "Low",
    "MEDIUM": "Medium",
    "HIGH": "High",
}

RULE_FAIL_ISSUE_PREFIX = "Top rule failure: "
RULE_WARNING_ISSUE_PREFIX = "Top rule warning: "
ERROR_CODE_ISSUE_PREFIX = "Error code: "
JUDGE_LABEL_ISSUE_PREFIX = "Top judge issue: "

_ISSUE_PREFIX_TABLES: list[tuple[str, dict[str, str]]] = [
    (RULE_FAIL_ISSUE_PREFIX, RULE_CHECK_LABELS),
    (RULE_WARNING_ISSUE_PREFIX, RULE_CHECK_LABELS),
    (JUDGE_LABEL_ISSUE_PREFIX, JUDGE_LABELS),
    (ERROR_CODE_ISSUE_PREFIX, ERROR_CODE_LABELS),
]


def rule_check_label(key: str) -> str:
    return RULE_CHECK_LABELS.get(key, key)


def judge_label(label: str) -> str:
    return JUDGE_LABELS.get(label, label)


def error_code_label(code: str) -> str:
    return ERROR_CODE_LABELS.get(code, code)


def decision_reason_label(code: str) -> str:
    return DECISION_REASON_LABELS.get(code, code)


def run_status_label(status: str) -> str:
    return RUN_STATUS_LABELS.get(status, status)


def case_status_label(status: str) -> str:
    return CASE_STATUS_LABELS.get(status, status)


def risk_level_label(level: str) -> str:
    return RISK_LEVEL_LABELS.get(level, level)


def to_issue_text(issue: str) -> str:
    """Render a top-issue string: reason codes and prefixed keys get their labels."""
    value = issue.strip()
    if not value:
        return value
    if value in DECISION_REASON_LABELS:
        return DECISION_REASON_LABELS[value]
    for prefix, table in _ISSUE_PREFIX_TABLES:
        if value.startswith(prefix):
            raw = value[len(prefix) :].strip()
            return f"{prefix}{table.get(raw, raw)}"
    return value
