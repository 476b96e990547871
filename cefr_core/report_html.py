from __future__ import annotations
from html import escape
from typing import Dict, Any, List

from . import config

_REASONS = {
    "top_level": "Reached the top of the ladder",
    "three_incorrect": "Three incorrect answers in a row",
    "max_questions": "Question limit reached",
}


def _row(evt: Dict[str, Any]) -> str:
    mark = "✓" if evt.get("is_correct") else "✗"
    return (
        f"<tr><td>{evt.get('question_number', '')}</td><td>{escape(str(evt.get('question_id', '')))}</td>"
        f"<td>{mark}</td><td>{evt.get('level_before', '')}</td><td>{evt.get('level_after', '')}</td>"
        f"<td>{float(evt.get('time_taken', 0.0) or 0.0):.0f}s</td></tr>"
    )


def render_report_html(report: Dict[str, Any]) -> str:
    res = report.get("result", {}) or {}
    meta = report.get("meta", {}) or {}
    events: List[Dict[str, Any]] = [e for e in (report.get("audit_events") or []) if isinstance(e, dict)]

    progression = " → ".join(str(x) for x in (res.get("level_progression") or []))
    reason = _REASONS.get(str(res.get("completion_reason") or ""), "")

    incomplete_html = ""
    if meta.get("incomplete"):
        incomplete_html = (
            "<div class=\"banner warning\">"
            "Test was finished before the placement rules ended it; the level is provisional."
            "</div>"
        )

    steps = ""
    if events:
        rows = "\n".join(_row(e) for e in events)
        steps = (
            "<h3>Answers</h3>"
            "<table border='1' cellpadding='6' cellspacing='0'>"
            "<thead><tr><th>#</th><th>Question</th><th>Result</th><th>Level before</th><th>Level after</th><th>Time</th></tr></thead>"
            f"<tbody>{rows}</tbody></table>"
        )

    audit_links = ""
    if config.AUDIT_EXPORT_ENABLED:
        test_id = meta.get("testId")
        if test_id:
            tid = escape(str(test_id))
            audit_links = (
                "<p class=\"audit-links\">"
                f"<a href=\"/level-tests/{tid}/audit.json\">Download audit (JSON)</a> · "
                f"<a href=\"/level-tests/{tid}/audit.csv\">Download audit (CSV)</a>"
                "</p>"
            )

    return f"""<!doctype html>
<html lang="en">
<head>
<meta charset="utf-8"/>
<title>Level Test Report</title>
<style>
 body{{font-family:system-ui,-apple-system,Segoe UI,Roboto,Ubuntu,'Helvetica Neue',Arial}}
 .wrap{{max-width:960px;margin:40px auto;padding:0 16px}}
 h1{{margin:0 0 16px}}
 .overall{{font-size:1.1rem;margin:8px 0 16px}}
 .banner{{padding:12px 16px;border-radius:6px;margin:16px 0}}
 .banner.warning{{background:#ffe7d9;border:1px solid #f5a623;color:#7a2d00}}
 table{{border-collapse:collapse;width:100%}}
 th,td{{text-align:left}}
</style>
</head>
<body>
<div class="wrap">
  <h1>Level Test Report</h1>
  <div class="overall"><b>Final level:</b> {escape(str(res.get('final_level', '')))}</div>
  {incomplete_html}
  <ul>
    <li><b>Score</b>: {res.get('score', 0)}% ({res.get('correct_answers', 0)}/{res.get('total_questions', 0)})</li>
    <li><b>Duration</b>: {float(res.get('test_duration', 0.0) or 0.0):.0f}s</li>
    <li><b>Start level</b>: {escape(str(meta.get('startLevel', '')))}</li>
    <li><b>Progression</b>: {progression}</li>
  </ul>
  {f'<p><b>Ended:</b> {reason}</p>' if reason else ''}
  {steps}
  {audit_links}
</div>
</body>
</html>"""


def export_report_html(report: Dict[str, Any], path: str) -> str:
    html = render_report_html(report)
    with open(path, "w", encoding="utf-8") as f:
        f.write(html)
    return path
