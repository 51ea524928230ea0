import json
import logging

from ..errors import ProtocolError


logger = logging.getLogger(__name__)

REPORT_FIELDS = (
    ("SchemaVersion", 0),
    ("ArtifactName", ""),
    ("ArtifactType", ""),
)

RESULT_FIELDS = (
    ("Target", ""),
    ("Class", ""),
)

MISCONFIG_FIELDS = (
    "Type",
    "ID",
    "Title",
    "Message",
    "Description",
    "Severity",
    "Status",
    "PrimaryURL",
    "Resolution",
)


def build_trivy_payload(raw_data):
    """
    Reduce a Trivy JSON report to the fields the labs service checks and
    return it re-serialized as compact JSON bytes.
    """
    try:
        report = json.loads(raw_data)
    except ValueError as exc:
        raise ProtocolError("parsing scanner report json - '{}'".format(exc)) from exc

    if not isinstance(report, dict):
        raise ProtocolError("scanner report must be a JSON object")

    summary = {}
    for key, default in REPORT_FIELDS:
        summary[key] = report.get(key, default)

    raw_results = report.get("Results")
    if raw_results is None:
        summary["Results"] = None
        logger.debug("No results found")
    else:
        if not isinstance(raw_results, list):
            raise ProtocolError("scanner report 'Results' must be a list")
        summary["Results"] = [_summarize_result(r) for r in raw_results]
        logger.debug("We found %d results", len(raw_results))
        if summary["Results"]:
            _log_first_result(summary["Results"][0])

    return json.dumps(summary, separators=(",", ":")).encode("utf-8")


def _summarize_result(result):
    if not isinstance(result, dict):
        raise ProtocolError("scanner report result must be a JSON object")

    out = {}
    for key, default in RESULT_FIELDS:
        out[key] = result.get(key, default)

    out["MisconfSummary"] = result.get("MisconfSummary")

    misconfigs = result.get("Misconfigurations")
    if misconfigs is None:
        out["Misconfigurations"] = None
    else:
        if not isinstance(misconfigs, list):
            raise ProtocolError("scanner report 'Misconfigurations' must be a list")
        out["Misconfigurations"] = [_summarize_misconfig(m) for m in misconfigs]

    return out


def _summarize_misconfig(misconfig):
    if not isinstance(misconfig, dict):
        raise ProtocolError("scanner report misconfiguration must be a JSON object")

    out = {}
    for key in MISCONFIG_FIELDS:
        out[key] = misconfig.get(key, "")
    return out


def _count(summary, key):
    value = summary.get(key)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(int(value))
    return "na"


def _log_first_result(result):
    summary = result.get("MisconfSummary")
    if not isinstance(summary, dict):
        summary = {}

    logger.debug(
        "Successes: %s - Failures: %s - Exceptions: %s",
        _count(summary, "Successes"),
        _count(summary, "Failures"),
        _count(summary, "Exceptions"),
    )

    misconfigs = result.get("Misconfigurations")
    if misconfigs is None:
        logger.debug("No misconfigurations found")
        return

    for mc in misconfigs:
        logger.debug("misconfiguration %s %s: %s (%s)", mc["Type"], mc["ID"], mc["Title"], mc["PrimaryURL"])
