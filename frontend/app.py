"""Streamlit dashboard for Category Cop.

Replaceable UI layer: all display logic lives here, all state lives in the
API. The dashboard polls while a batch runs so rows appear as they settle.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import pandas as pd
import requests
import streamlit as st

from frontend.api_client import DashboardAPIClient, DashboardAPIError, fetch_exports

_POLL_SECONDS = 1.0

# ── Page config (must be first Streamlit call) ─────────────────────────────
st.set_page_config(
    page_title="Category Cop",
    page_icon="🛡️",
    layout="wide",
    initial_sidebar_state="expanded",
)


@st.cache_resource(show_spinner=False)
def _load_client() -> DashboardAPIClient:
    return DashboardAPIClient()


# ── Session state defaults ─────────────────────────────────────────────────
_STATE_DEFAULTS: dict = {
    "last_notification_id": 0,
    "upload_key": 0,
    "generated_description": None,
}

for _key, _val in _STATE_DEFAULTS.items():
    if _key not in st.session_state:
        st.session_state[_key] = _val


def _safe(call: Callable[..., Any], *args: Any) -> Any:
    """Run one API call, reporting failures in the page instead of crashing."""
    try:
        return call(*args)
    except DashboardAPIError as exc:
        st.error(str(exc))
    except requests.RequestException as exc:
        st.error(f"API unreachable: {exc}")
    return None


def _records_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {
                "App Name": record["app"],
                "Original Category": record["original_category"],
                "Status": "✅ Valid" if record["is_valid_category"] else "❌ Invalid",
                "Description": record["description"],
                "Validation Reason": record["validation_reason"],
                "Checked At": record["checked_at_display"],
            }
            for record in records
        ]
    )


_TOAST_ICONS = {"error": "🚨", "warning": "⚠️", "info": "✅"}

client = _load_client()
status: dict = _safe(client.status) or {}
running = bool(status.get("running"))

for note in _safe(client.notifications, st.session_state.last_notification_id) or []:
    st.toast(f"**{note['title']}**: {note['message']}", icon=_TOAST_ICONS.get(note["level"], "ℹ️"))
    st.session_state.last_notification_id = note["id"]

failures: dict = _safe(client.failures) or {}
failed_rows: list = failures.get("failed_rows", [])
parse_failures: list = failures.get("parse_failures", [])


# ── Sidebar ────────────────────────────────────────────────────────────────
with st.sidebar:
    st.title("🛡️ Category Cop")
    st.caption("Upload a CSV (appName, description, category) to batch validate.")
    st.divider()

    uploaded_file = st.file_uploader(
        "Upload CSV",
        type=["csv"],
        key=f"csv-upload-{st.session_state.upload_key}",
    )
    if st.button(
        "Validate CSV",
        type="primary",
        disabled=running or uploaded_file is None,
        use_container_width=True,
    ):
        started = _safe(client.start_validation, uploaded_file.name, uploaded_file.getvalue())
        if started is not None:
            st.session_state.upload_key += 1
            st.rerun()

    if st.button("Stop", disabled=not running, use_container_width=True):
        _safe(client.cancel)
        st.rerun()

    if st.button(
        f"Retry failed ({len(failed_rows)})",
        disabled=running or not failed_rows,
        use_container_width=True,
    ):
        if _safe(client.retry_failed) is not None:
            st.rerun()

    st.divider()
    results_csv, failures_csv = _safe(fetch_exports, client, running) or (None, None)
    st.download_button(
        "Download Results",
        data=results_csv or b"",
        file_name="validation_results.csv",
        mime="text/csv",
        disabled=not results_csv,
        use_container_width=True,
    )
    st.download_button(
        "Download Failed Rows",
        data=failures_csv or b"",
        file_name="failed_app_validations.csv",
        mime="text/csv",
        disabled=not failures_csv,
        use_container_width=True,
    )

    st.divider()
    with st.expander("Generate a description"):
        app_name = st.text_input("App name")
        category = st.text_input("Category")
        if st.button("Generate", disabled=not (app_name.strip() and category.strip())):
            with st.spinner("Generating…"):
                st.session_state.generated_description = _safe(
                    client.generate_description, app_name.strip(), category.strip()
                )
        if st.session_state.generated_description:
            st.write(st.session_state.generated_description)


# ── Main content area ──────────────────────────────────────────────────────
st.header("Validation Dashboard")
st.caption("Overview of app category validations.")

if status.get("kind"):
    total = int(status.get("total") or 0)
    processed = int(status.get("processed") or 0)
    label = "Retry" if status["kind"] == "retry" else "Validation"
    if running:
        st.progress(processed / total if total else 0.0, text=f"{label}: {processed} / {total} rows")
    elif status.get("cancelled"):
        st.warning(f"{label} stopped after {processed} of {total} rows.")
    cols = st.columns(3)
    cols[0].metric("Succeeded", status.get("succeeded", 0))
    cols[1].metric("Failed", status.get("failed", 0))
    cols[2].metric("Skipped rows", status.get("parse_failures", 0))

records: list = _safe(client.records) or []
st.subheader("App Category Validation Records")
st.caption(f"Displaying the latest {len(records)} validation results.")
if records:
    st.dataframe(_records_frame(records), use_container_width=True, hide_index=True)
else:
    st.info("No validation records found.")

if failed_rows or parse_failures:
    with st.expander(f"Failed rows ({len(failed_rows) + len(parse_failures)})"):
        if parse_failures:
            st.markdown("**Skipped while parsing**")
            st.table(pd.DataFrame(parse_failures))
        if failed_rows:
            st.markdown("**Classification errors**")
            st.table(pd.DataFrame(failed_rows))

if running:
    time.sleep(_POLL_SECONDS)
    st.rerun()
