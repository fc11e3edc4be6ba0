"""
Streamlit UI for the Quote Tool.

Features:
- Tabbed interface for Quote Builder, Rate Table and Policy
- Service rows with area, levels, distance, access, urgency, difficulty
- Goods rows priced as quantity × unit price
- Editable line grid (quantity, unit price or total)
- Final price override and CSV export
"""
import streamlit as st
import pandas as pd
import sys
from pathlib import Path
from datetime import datetime, date

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from quote_tool.engine import (
    QuoteEngine, QuoteRequest, ServiceSpec, GoodsItem, LineItemStore,
    FloorAccess, Urgency, Difficulty, generate_quote_number,
    InvalidParameterError, ConfigurationError,
)


st.set_page_config(
    page_title="Quote Builder",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_engine():
    """Get cached engine instance."""
    return QuoteEngine()


try:
    engine = get_engine()
except ConfigurationError as e:
    st.error(f"Pricing configuration error: {e}")
    st.stop()

currency = engine.policy.currency


def money(value: float) -> str:
    return f"{value:,.2f} {currency}"


# ============================================================================
# SESSION STATE
# ============================================================================
if 'store' not in st.session_state:
    st.session_state.store = LineItemStore()
if 'quote_number' not in st.session_state:
    st.session_state.quote_number = generate_quote_number("SERVICE", date.today())

store: LineItemStore = st.session_state.store


# ============================================================================
# SIDEBAR: Policy
# ============================================================================
with st.sidebar:
    st.header("📐 Quote Policy")
    with st.container(border=True):
        st.markdown(f"**Quote:** `{st.session_state.quote_number}`")
        st.caption(f"Tax rate: {engine.policy.tax_rate:.0%}")
        st.caption(f"Minimum charge: {money(engine.policy.minimum_charge)}")
        st.caption(f"Rounded to nearest {engine.policy.rounding_step:g} {currency}")

    st.divider()
    st.success(f"🔧 **{len(engine.rate_table.categories())} Service Categories**")

    if st.button("🗑️ New Quote", use_container_width=True):
        st.session_state.store = LineItemStore()
        st.session_state.quote_number = generate_quote_number("SERVICE", date.today())
        st.rerun()


# ============================================================================
# MAIN CONTENT: TABBED INTERFACE
# ============================================================================
st.title("Quote Builder")
st.caption(f"Quote Engine Active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3 = st.tabs(["⚡ Quote Builder", "📚 Rate Table", "📊 Coefficients"])


# ============================================================================
# TAB 1: QUOTE BUILDER
# ============================================================================
with tab1:
    col1, col2 = st.columns([1.8, 1.2], gap="large")

    with col1:
        st.subheader("Add Services")

        with st.container(border=True):
            category = st.selectbox("Service", options=engine.rate_table.categories(), key="svc_category")
            c1, c2, c3 = st.columns(3)
            area = c1.number_input("Area (m²)", min_value=0.0, value=50.0, step=5.0)
            levels = c2.number_input("Levels", min_value=1, value=1, step=1)
            distance = c3.number_input("Distance (km)", min_value=0.0, value=5.0, step=1.0)
            c4, c5, c6 = st.columns(3)
            access = c4.selectbox("Floor access", [a.value for a in FloorAccess])
            urgency = c5.selectbox("Urgency", [u.value for u in Urgency])
            difficulty = c6.selectbox("Difficulty", [d.value for d in Difficulty])

            if st.button("➕ Add Service", type="primary"):
                spec = ServiceSpec(
                    category=category,
                    area=area,
                    levels=int(levels),
                    travel_distance_km=distance,
                    floor_access=access,
                    urgency=urgency,
                    difficulty=difficulty,
                )
                try:
                    lines, warnings = engine.build_lines(QuoteRequest(services=[spec]))
                    store.extend(lines)
                    for warning in warnings:
                        st.warning(warning)
                    st.rerun()
                except InvalidParameterError as e:
                    st.error(str(e))

        with st.expander("📦 Add Goods"):
            g1, g2, g3 = st.columns([2, 1, 1])
            name = g1.text_input("Item name")
            qty = g2.number_input("Qty", min_value=0, value=1, step=1)
            unit_price = g3.number_input("Unit price", min_value=0.0, value=0.0, step=1.0)
            reference = st.text_input("Reference (optional)")
            if st.button("➕ Add Item"):
                item = GoodsItem(name=name, quantity=int(qty), unit_price=unit_price, reference=reference or None)
                lines, warnings = engine.build_lines(QuoteRequest(goods=[item]))
                if lines:
                    store.extend(lines)
                    st.rerun()
                else:
                    st.warning("Item needs a name, a quantity and a price")

        if st.button("✏️ Add Custom Line"):
            store.add_custom()
            st.rerun()

    with col2:
        st.subheader("Quote Summary")

        with st.container(border=True):
            if len(store):
                totals = engine.totals(store)

                m1, m2 = st.columns(2)
                m1.metric("Subtotal", money(totals.sub_total))
                m2.metric("Tax", money(totals.tax))
                st.metric("Final Price", money(totals.final_price))
                if totals.minimum_applied:
                    st.info(f"Minimum charge of {money(totals.minimum_charge)} applied")

                override_on = st.checkbox("Override final price")
                if override_on:
                    override = st.number_input("Final price", min_value=0.0, value=float(totals.final_price), step=10.0)
                    if override < totals.minimum_charge:
                        st.warning("Override is below the minimum charge")
                    st.markdown(f"**Payable:** {money(override)}")

                st.divider()

                export_df = pd.DataFrame([{
                    'Description': line.description,
                    'Detail': line.detail,
                    'Quantity': line.quantity,
                    'Unit Price': line.unit_price,
                    'Total': line.total_price,
                } for line in store])

                st.download_button(
                    "📥 CSV",
                    data=export_df.to_csv(index=False),
                    file_name=f"{st.session_state.quote_number}.csv",
                    mime="text/csv",
                    use_container_width=True
                )
            else:
                st.info("🧾 No line items yet")
                st.caption("Add services or goods to begin building a quote.")

    # Editable line grid (Full Width)
    if len(store):
        st.markdown("### 📝 Edit Line Items")

        grid = pd.DataFrame([{
            'ID': line.id,
            'Description': line.description,
            'Quantity': line.quantity,
            'Unit Price': line.unit_price,
            'Total': line.total_price,
            'Source': line.source,
        } for line in store])

        edited_df = st.data_editor(
            grid,
            use_container_width=True,
            column_config={
                "ID": st.column_config.TextColumn("ID", disabled=True),
                "Source": st.column_config.TextColumn("Source", disabled=True),
                "Quantity": st.column_config.NumberColumn("Quantity", min_value=1, step=1),
                "Unit Price": st.column_config.NumberColumn("Unit Price", min_value=0.0),
                "Total": st.column_config.NumberColumn("Total", min_value=0.0),
            },
            hide_index=True,
            key="line_editor"
        )

        if st.button("💾 Apply Edits"):
            # One derived field per edit: total wins over unit price, unit price over quantity
            for (_, before), (_, row) in zip(grid.iterrows(), edited_df.iterrows()):
                line_id = before["ID"]
                if row["Description"] != before["Description"]:
                    store.update_description(line_id, row['Description'])
                if row["Total"] != before["Total"]:
                    store.update_total(line_id, row['Total'])
                elif row["Unit Price"] != before["Unit Price"]:
                    store.update_unit_price(line_id, row['Unit Price'])
                elif row["Quantity"] != before["Quantity"]:
                    store.update_quantity(line_id, row['Quantity'])
            st.rerun()

        remove_id = st.selectbox("Remove line", options=[""] + [line.id for line in store])
        if remove_id and st.button("❌ Remove"):
            store.remove(remove_id)
            st.rerun()

        with st.expander("📊 View Detailed Pricing Breakdown"):
            for line in store:
                st.markdown(f"**{line.description}** · {line.detail}")
                if line.is_adjusted:
                    st.caption(f"Manually adjusted by {money(line.adjustment)}")
                st.code(line.get_trace_text() or "(no trace)")


# ============================================================================
# TAB 2: RATE TABLE
# ============================================================================
with tab2:
    st.subheader("📚 Rate Table")
    rows = []
    for cat in engine.rate_table.categories():
        for tier in engine.rate_table.tiers(cat):
            rows.append({'Category': cat, 'Up to (m²)': tier.max_area, f'Rate ({currency}/m²)': tier.rate})
    st.dataframe(pd.DataFrame(rows), use_container_width=True, hide_index=True)
    st.caption("Areas above the last threshold use the last rate.")


# ============================================================================
# TAB 3: COEFFICIENTS
# ============================================================================
with tab3:
    st.subheader("📊 Coefficients")
    coefficient_rows = []
    for factor, table in engine.resolver.tables.items():
        for option, multiplier in table.items():
            coefficient_rows.append({'Factor': factor, 'Option': option, 'Multiplier': multiplier})
    for band in engine.resolver.distance_bands:
        coefficient_rows.append({'Factor': 'distance', 'Option': f"> {band.above_km:g} km", 'Multiplier': band.multiplier})
    st.dataframe(pd.DataFrame(coefficient_rows), use_container_width=True, hide_index=True)
