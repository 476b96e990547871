"""JSON-file persistence for finished reports and in-progress attempts.

Layout under ``DATA_DIR``::

    reports/<report_id>.json     full report served by /reports/{id}
    reports_index.json           report_id -> small metadata row (history list)
    active/<test_id>.json        one file per unfinished attempt, including the
                                 serialised Session so it survives a restart

Good enough for a single API process; not a durability guarantee.
"""

from __future__ import annotations

import json
import logging
import os
import re
import threading
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional


DATA_ROOT = Path(os.getenv("DATA_DIR", "data")).resolve()
REPORTS_DIR = DATA_ROOT / "reports"
REPORT_INDEX_PATH = DATA_ROOT / "reports_index.json"
ACTIVE_DIR = DATA_ROOT / "active"

_LOCK = threading.Lock()
_ID_RE = re.compile(r"^[A-Za-z0-9_.-]{1,128}$")

# heavy fields that stay out of listings
_ACTIVE_PRIVATE = ("session", "auditEvents")

log = logging.getLogger(__name__)


def _file_for(folder: Path, key: str) -> Optional[Path]:
    # ids come straight from URL paths
    if not _ID_RE.match(key) or key.startswith("."):
        return None
    return folder / f"{key}.json"


def _read_json(path: Optional[Path], default: Any) -> Any:
    if path is None or not path.exists():
        return default
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        log.warning("unreadable json file %s: %s", path, exc)
        return default


def _write_json(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
    tmp.replace(path)


def _index() -> Dict[str, Dict[str, Any]]:
    return _read_json(REPORT_INDEX_PATH, {})


# ---- Reports ----
def save_report(report_id: str, report: Dict[str, Any], metadata: Dict[str, Any]) -> None:
    """Write the report body first, then register it in the index."""

    path = _file_for(REPORTS_DIR, report_id)
    if path is None:
        raise ValueError(f"unusable report id: {report_id!r}")
    _write_json(path, report)
    with _LOCK:
        index = _index()
        index[report_id] = dict(metadata)
        _write_json(REPORT_INDEX_PATH, index)
    log.info("report saved id=%s test=%s", report_id, metadata.get("testId"))


def load_report(report_id: str) -> Optional[Dict[str, Any]]:
    return _read_json(_file_for(REPORTS_DIR, report_id), None)


def delete_report(report_id: str) -> bool:
    with _LOCK:
        index = _index()
        known = index.pop(report_id, None) is not None
        if known:
            _write_json(REPORT_INDEX_PATH, index)
    path = _file_for(REPORTS_DIR, report_id)
    if path is not None and path.exists():
        path.unlink()
    return known


def list_reports_for_user(user_id: str) -> List[Dict[str, Any]]:
    rows = [
        {**meta, "id": rid}
        for rid, meta in _index().items()
        if meta.get("userId") == user_id
    ]
    rows.sort(key=lambda r: r.get("createdAt") or "", reverse=True)
    return rows


def find_report_by_test(test_id: str) -> Optional[Dict[str, Any]]:
    """Report saved for attempt ``test_id``, if that attempt was closed."""

    for rid, meta in _index().items():
        if meta.get("testId") == test_id:
            return load_report(rid)
    return None


# ---- Active attempts ----
def _iter_active() -> Iterator[Dict[str, Any]]:
    if not ACTIVE_DIR.exists():
        return
    for path in sorted(ACTIVE_DIR.glob("*.json")):
        payload = _read_json(path, None)
        if isinstance(payload, dict):
            yield payload


def record_active_session(test_id: str, payload: Dict[str, Any]) -> None:
    if not payload.get("userId"):
        return
    path = _file_for(ACTIVE_DIR, test_id)
    if path is None:
        raise ValueError(f"unusable test id: {test_id!r}")
    with _LOCK:
        _write_json(path, payload)


def update_active_session(test_id: str, updates: Dict[str, Any]) -> None:
    path = _file_for(ACTIVE_DIR, test_id)
    with _LOCK:
        current = _read_json(path, None)
        if current is None:
            return
        current.update(updates)
        _write_json(path, current)


def clear_active_session(test_id: str) -> None:
    path = _file_for(ACTIVE_DIR, test_id)
    with _LOCK:
        if path is not None and path.exists():
            path.unlink()


def load_active_session(test_id: str) -> Optional[Dict[str, Any]]:
    return _read_json(_file_for(ACTIVE_DIR, test_id), None)


def active_sessions_for_user(user_id: str) -> List[Dict[str, Any]]:
    out = [
        {k: v for k, v in payload.items() if k not in _ACTIVE_PRIVATE}
        for payload in _iter_active()
        if payload.get("userId") == user_id
    ]
    out.sort(key=lambda r: r.get("startedAt") or "", reverse=True)
    return out
