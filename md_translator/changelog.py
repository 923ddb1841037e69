from __future__ import annotations
from typing import Dict, Any, List
import json

def write_json(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(payload, f, ensure_ascii=False, indent=2)

def write_txt(path: str, payload: Dict[str, Any]) -> None:
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_txt(payload))

def build_payload(result, input_path: str, output_path: str, timestamp_utc: str) -> Dict[str, Any]:
    """Run summary for a PipelineResult."""
    return {
        "timestamp_utc": timestamp_utc,
        "input": input_path,
        "output": output_path,
        "status": result.status,
        "is_valid": result.is_valid,
        "complete": result.complete,
        "lines": {"source": result.source_line_count, "final": result.final_line_count},
        "stats": {
            "total_segments": result.stats.total_segments,
            "candidate_segments": result.stats.candidate_segments,
            "done": result.stats.done,
            "degraded": result.stats.degraded,
            "skipped": result.stats.skipped,
            "unfinished": result.stats.unfinished,
            "attempts": result.stats.total_attempts,
            "processing_time_s": round(result.stats.total_time_s, 1),
        },
        "degraded_segments": list(result.per_segment_errors),
        "lint_issues": [
            {"segment": s.original_segment.index + 1, "issues": s.lint_issues}
            for s in result.segments if s.lint_issues
        ],
        "findings": [
            {"rule_id": f.rule_id, "severity": f.severity, "category": f.category, "message": f.message}
            for f in result.findings
        ],
    }

def render_txt(payload: Dict[str, Any]) -> str:
    lines: List[str] = []
    lines.append(f"Translation Run: {payload.get('timestamp_utc')}")
    lines.append("")
    lines.append("Files")
    lines.append(f"- Input:  {payload.get('input')}")
    lines.append(f"- Output: {payload.get('output') or '[not written]'}")
    lines.append("")
    lines.append("Result")
    lines.append(f"- Status: {payload.get('status')}")
    lines.append(f"- Valid:  {payload.get('is_valid')}")
    ln = payload.get("lines", {})
    lines.append(f"- Lines:  {ln.get('source')} -> {ln.get('final')}")
    lines.append("")
    stats = payload.get("stats", {})
    lines.append("Stats")
    for k, v in stats.items():
        lines.append(f"- {k}: {v}")
    lines.append("")
    degraded = payload.get("degraded_segments", []) or []
    if degraded:
        lines.append("Degraded Segments")
        for d in degraded:
            lines.append(f"- {d}")
        lines.append("")
    issues = payload.get("lint_issues", []) or []
    if issues:
        lines.append("Remaining Lint Issues")
        for item in issues:
            lines.append(f"- Segment {item['segment']}:")
            for issue_line in item["issues"].splitlines():
                if issue_line:
                    lines.append(f"    {issue_line}")
        lines.append("")
    findings = payload.get("findings", []) or []
    if findings:
        lines.append("Findings")
        for fnd in findings[:60]:
            lines.append(f"- [{fnd['severity'].upper()}] {fnd['category']} {fnd['rule_id']}: {fnd['message']}")
        if len(findings) > 60:
            lines.append(f"... plus {len(findings)-60} more.")
        lines.append("")
    return "\n".join(lines)
