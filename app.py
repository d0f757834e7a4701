"""
Stock Matching Dashboard

A Streamlit front end for rack-by-rack stock-takes.
Run with: streamlit run app.py
"""

import sys
from datetime import date
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

import streamlit as st
import plotly.graph_objects as go

from stockmatch.clients.master_sheet import MasterSheetClient
from stockmatch.clients.scan_input import ScanCooldown
from stockmatch.config import configure_logging, get_settings
from stockmatch.core.analysis import (
    compute_report_metrics,
    rack_coverage,
    rack_totals_frame,
    report_frame,
)
from stockmatch.core.catalog import CatalogStore
from stockmatch.core.errors import StockMatchError
from stockmatch.core.export import (
    XLSX_MIME,
    build_full_workbook,
    discrepancy_csv_bytes,
    discrepancy_filename,
    full_workbook_filename,
    write_discrepancy_csv,
    write_full_workbook,
)
from stockmatch.core.persistence import StateRepository
from stockmatch.core.reconciliation import STORE_WIDE, Scope
from stockmatch.core.session import InventorySession

settings = get_settings()
configure_logging()

# Page config
st.set_page_config(
    page_title="Stock Matching",
    page_icon="📦",
    layout="wide",
)

st.title("📦 Stock Matching")

STATUS_COLORS = {
    "MATCHED": "#2ecc71",
    "MISMATCHED": "#f39c12",
    "MISSING": "#e74c3c",
    "EXTRA": "#3498db",
}


def get_repository() -> StateRepository:
    return StateRepository(settings.STATE_PATH)


def get_session() -> InventorySession:
    """One InventorySession per browser session, rehydrated from disk."""
    if "session" not in st.session_state:
        try:
            state = get_repository().load()
            session = InventorySession(
                CatalogStore(), state.to_store(), selected_scope=state.selected_scope
            )
        except StockMatchError as e:
            st.error(f"Could not restore saved scans: {e}")
            session = InventorySession()
        st.session_state["session"] = session
        st.session_state["cooldown"] = ScanCooldown(settings.SCAN_COOLDOWN_MS)
    return st.session_state["session"]


def persist(session: InventorySession) -> None:
    try:
        get_repository().save(session.racks, session.selected_scope)
    except StockMatchError as e:
        st.error(str(e))


def sync_catalog(session: InventorySession) -> None:
    with st.spinner("Syncing master list..."):
        try:
            result = MasterSheetClient(settings.MASTER_URL).sync(session.catalog)
        except StockMatchError as e:
            st.error(f"Sync Error: {e}")
            return
    st.success(f"Sync Successful! {result.item_count} items loaded into stock.")
    if result.quality.issues:
        st.session_state["last_quality"] = result.quality


session = get_session()

# Sync once per session, like opening the app
if not session.catalog.is_loaded and not st.session_state.get("auto_sync_attempted"):
    st.session_state["auto_sync_attempted"] = True
    sync_catalog(session)

# --- Sidebar: catalog sync ---
with st.sidebar:
    st.header("Master List")
    if st.button("🔄 Sync Master List", use_container_width=True):
        sync_catalog(session)

    catalog = session.catalog.snapshot()
    if catalog is None:
        st.warning("Master stock data not loaded.")
    else:
        st.metric("Items in master list", f"{len(catalog):,}")
        st.caption(f"Last synced {session.catalog.synced_at:%Y-%m-%d %H:%M} UTC")

    quality = st.session_state.get("last_quality")
    if quality is not None:
        with st.expander("📋 Sheet quality issues"):
            for issue in quality.issues:
                icon = "🔴" if issue.severity == "critical" else "🟡" if issue.severity == "warning" else "🔵"
                st.markdown(f"{icon} {issue.column}: {issue.description}")

tab_racks, tab_scan, tab_report = st.tabs(["Racks", "Scan", "Report"])

# --- Racks ---
with tab_racks:
    st.subheader("Existing Racks")
    racks_df = rack_totals_frame(session.racks)
    if racks_df.empty:
        st.info("No racks scanned yet. Enter a rack ID on the Scan tab to start.")
    else:
        display_df = racks_df.copy()
        display_df.columns = ["Rack", "Barcodes", "Units Scanned"]
        st.dataframe(display_df, use_container_width=True, hide_index=True)

        col1, col2 = st.columns(2)
        with col1:
            with st.form("rename_rack"):
                st.markdown("**Rename Rack**")
                old_id = st.selectbox("Rack", session.racks.rack_ids(), key="rename_old")
                new_id = st.text_input("New name")
                if st.form_submit_button("Save"):
                    try:
                        renamed = session.racks.rename_rack(old_id, new_id)
                    except StockMatchError as e:
                        st.error(str(e))
                    else:
                        if renamed:
                            persist(session)
                            st.rerun()
                        else:
                            st.error("New rack name is invalid or already exists.")
        with col2:
            with st.form("delete_rack"):
                st.markdown("**Delete Rack**")
                doomed = st.selectbox("Rack", session.racks.rack_ids(), key="delete_id")
                confirm = st.checkbox("I want to permanently delete this rack")
                if st.form_submit_button("Delete", type="primary") and confirm:
                    session.racks.delete_rack(doomed)
                    persist(session)
                    st.rerun()

    catalog = session.catalog.snapshot()
    if catalog is not None and len(catalog) > 0:
        st.subheader("Coverage by Rack Label")
        coverage = rack_coverage(catalog, session.racks)
        fig_cov = go.Figure(
            data=[
                go.Bar(
                    x=coverage["rack_label"],
                    y=coverage["expected_units"],
                    name="Expected",
                    marker_color="#bdc3c7",
                ),
                go.Bar(
                    x=coverage["rack_label"],
                    y=coverage["scanned_units"],
                    name="Scanned in rack",
                    marker_color="#2ecc71",
                ),
            ]
        )
        fig_cov.update_layout(
            barmode="overlay",
            height=300,
            margin=dict(t=20, b=20, l=20, r=20),
            legend=dict(orientation="h", yanchor="bottom", y=-0.3),
        )
        st.plotly_chart(fig_cov, use_container_width=True)

# --- Scan ---
with tab_scan:
    rack_input = st.text_input("Rack ID", placeholder="Enter New or Existing Rack ID")
    rack_id = rack_input.strip().upper()

    if rack_id:
        st.markdown(f"Scanning for Rack: **{rack_id}**")
        scanner_mode = st.toggle(
            "Barcode scanner input",
            help="Pauses briefly after each scan so one label isn't counted twice",
        )

        with st.form("scan_form", clear_on_submit=True):
            raw = st.text_input("Barcode", placeholder="Enter Barcode Manually")
            submitted = st.form_submit_button("Add")

        if submitted and raw.strip():
            cooldown: ScanCooldown = st.session_state["cooldown"]
            try:
                if scanner_mode and cooldown.is_paused:
                    st.warning("Scan ignored: scanner is paused. Try again.")
                else:
                    record = session.scan(rack_id, raw)
                    if scanner_mode:
                        cooldown.accept()
                    persist(session)
                    st.success(f"✓ {record.name} | Count: {record.quantity}")
            except StockMatchError as e:
                st.error(str(e))

        ledger = session.racks.ledger(rack_id)
        st.subheader(f"Scanned Items ({ledger.total_quantity} total)")
        for record in ledger.recent_first():
            c_name, c_minus, c_qty, c_plus, c_edit, c_del = st.columns([5, 1, 1, 1, 2, 1])
            c_name.markdown(f"**{record.name}**  \n`{record.barcode}`")
            minus = c_minus.button("−", key=f"minus-{rack_id}-{record.barcode}")
            c_qty.markdown(f"### {record.quantity}")
            plus = c_plus.button("+", key=f"plus-{rack_id}-{record.barcode}")
            new_qty = c_edit.number_input(
                "Qty",
                min_value=1,
                value=record.quantity,
                step=1,
                key=f"qty-{rack_id}-{record.barcode}-{record.quantity}",
                label_visibility="collapsed",
            )
            delete = c_del.button("Del", key=f"del-{rack_id}-{record.barcode}")

            if not (minus or plus or delete or new_qty != record.quantity):
                continue
            try:
                if delete:
                    session.racks.remove_item(rack_id, record.barcode)
                elif minus or plus:
                    session.racks.adjust_quantity(rack_id, record.barcode, 1 if plus else -1)
                else:
                    session.racks.set_quantity(rack_id, record.barcode, int(new_qty))
            except StockMatchError as e:
                # Another tab may have removed the item already
                st.error(str(e))
            else:
                persist(session)
                st.rerun()

# --- Report ---
with tab_report:
    options = [STORE_WIDE, *session.racks.rack_ids()]
    default = session.selected_scope if session.selected_scope in options else STORE_WIDE
    scope_label = st.selectbox("Report scope", options, index=options.index(default))
    if scope_label != session.selected_scope:
        session.selected_scope = scope_label
        persist(session)

    try:
        report = session.report(Scope.from_label(scope_label))
    except StockMatchError as e:
        st.error(f"Cannot Generate Report: {e}")
        report = None

    if report is not None:
        metrics = compute_report_metrics(report)
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Matched", metrics["matched"])
        col2.metric("Mismatched", metrics["mismatched"], delta_color="inverse")
        col3.metric("Missing", metrics["missing"], delta_color="inverse")
        col4.metric("Extra", metrics["extra"], delta_color="inverse")
        st.caption(
            f"Match rate {metrics['match_rate']:.1%} | "
            f"{metrics['found_units']:,} units found of {metrics['expected_units']:,} expected"
        )

        counts = report.counts()
        fig_buckets = go.Figure(
            data=[
                go.Bar(
                    x=[k.upper() for k in counts],
                    y=list(counts.values()),
                    marker_color=[STATUS_COLORS[k.upper()] for k in counts],
                    text=list(counts.values()),
                    textposition="outside",
                )
            ]
        )
        fig_buckets.update_layout(
            title=f"Report: {report.scope.label}",
            height=300,
            margin=dict(t=40, b=20, l=20, r=20),
        )
        st.plotly_chart(fig_buckets, use_container_width=True)

        lines_df = report_frame(report)
        for status, title in [
            ("MISMATCHED", "Mismatched"),
            ("MISSING", "Missing"),
            ("EXTRA", "Extra / Unlisted"),
            ("MATCHED", "Matched"),
        ]:
            subset = lines_df[lines_df["status"] == status]
            with st.expander(f"{title} ({len(subset)})", expanded=status != "MATCHED"):
                if subset.empty:
                    st.write("None")
                else:
                    st.dataframe(
                        subset[["barcode", "name", "rack", "expected_qty", "found_qty", "detail"]],
                        use_container_width=True,
                        hide_index=True,
                    )

        if report.is_perfect_match:
            st.info("No discrepancies. Everything is a perfect match!")
        else:
            col_dl, col_save = st.columns(2)
            col_dl.download_button(
                "⬇️ Export Discrepancies (CSV)",
                data=discrepancy_csv_bytes(report),
                file_name=discrepancy_filename(report),
                mime="text/csv",
            )
            if col_save.button("💾 Save CSV to exports folder"):
                try:
                    path = write_discrepancy_csv(report, settings.EXPORT_DIR)
                except StockMatchError as e:
                    st.error(str(e))
                else:
                    st.success(f"Saved {path}")

    catalog = session.catalog.snapshot()
    if catalog is not None:
        st.divider()
        col_dl, col_save = st.columns(2)
        col_dl.download_button(
            "⬇️ Full Excel Report",
            data=build_full_workbook(catalog, session.racks),
            file_name=full_workbook_filename(date.today()),
            mime=XLSX_MIME,
        )
        if col_save.button("💾 Save Excel to exports folder"):
            try:
                path = write_full_workbook(catalog, session.racks, settings.EXPORT_DIR)
            except StockMatchError as e:
                st.error(str(e))
            else:
                st.success(f"Saved {path}")

# --- Footer ---
st.divider()
st.caption(
    "Built with Streamlit | "
    f"{len(session.racks)} racks | "
    f"Master list: {settings.MASTER_URL if len(settings.MASTER_URL) < 60 else 'published sheet'}"
)
