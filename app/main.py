import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging

import streamlit as st
import pandas as pd
import plotly.express as px

from capium import config
from capium.detectors import max_safe_allocation, recommended_minimum, emergency_fund_duration
from capium.domain import BucketKind
from capium.functional import find_kind
from capium.presets import PresetTier, bucket_presets, emergency_fund_options, project_investments
from capium.rebalancer import validate_total
from capium.seeding import generate_plan
from capium.services import AllocationEditor
from capium.transforms import load_seed

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

st.set_page_config(page_title="Capium Allocation Planner", layout="wide")

seed_income, seed_records = load_seed(config.SEED_PATH)

st.sidebar.markdown("### 💵 Income")
income = st.sidebar.number_input(
    "Monthly income",
    min_value=0.0,
    value=float(st.session_state.get("income", seed_income)),
    step=100.0,
)

if "editor" not in st.session_state or st.session_state.get("income") != income:
    st.session_state.income = income
    st.session_state.editor = AllocationEditor(generate_plan(seed_records, income), income)

editor: AllocationEditor = st.session_state.editor
st.session_state.setdefault("slider_rev", 0)

if st.sidebar.button("↺ Regenerate plan from history"):
    st.session_state.editor = AllocationEditor(generate_plan(seed_records, income), income)
    st.rerun()

st.title("🎯 Allocation Planner")

k1, k2, k3 = st.columns(3)
with k1:
    st.metric("Monthly Income", f"${editor.monthly_income:,.2f}")
with k2:
    st.metric("Allocated", f"${editor.total_allocated:,.2f}")
with k3:
    st.metric("Of Income", f"{editor.allocation_percentage():.1f}%")

for notice in editor.notices:
    if notice.get("notice"):
        st.info(f"🔄 {notice['notice']}\n\n" + "\n".join(f"- {line}" for line in notice["lines"]))
    if notice.get("alert"):
        st.error(f"🚫 {notice['alert']}")
    if notice.get("saved"):
        st.success(f"✅ Plan saved: {notice['saved']} buckets, ${notice['total']:,.2f}")

for banner in editor.warnings():
    st.warning(f"**{banner['title']}**\n\n{banner['message']}")

validation = validate_total(editor.buckets, editor.monthly_income)
if not validation.is_valid:
    st.error(validation.message)

st.header("🪣 Buckets")
essential = find_kind(editor.buckets, BucketKind.ESSENTIAL_SPENDING).map(lambda b: b.allocated_amount).get_or_else(0.0)

for bucket in editor.buckets:
    cols = st.columns([3, 1, 1])
    with cols[0]:
        upper = max(editor.monthly_income, bucket.allocated_amount)
        new_amount = st.slider(
            bucket.display_name,
            min_value=0.0,
            max_value=float(upper) if upper > 0 else 1.0,
            value=float(bucket.allocated_amount),
            step=10.0,
            disabled=not bucket.is_modifiable,
            # new key per amount (and per rejected edit) so sliders show the stored value
            key=f"slider_{bucket.id}_{st.session_state.slider_rev}_{bucket.allocated_amount:.2f}",
            help=bucket.explanation or None,
        )
        change = editor.change_from_original(bucket.id)
        caption = (
            f"{bucket.percentage_of_income(editor.monthly_income):.1f}% of income · "
            f"min ${recommended_minimum(bucket, editor.monthly_income):,.0f} · "
            f"safe max ${max_safe_allocation(bucket, editor.buckets, editor.monthly_income):,.0f}"
        )
        if abs(change) > config.EPSILON:
            caption += f" · {'+' if change > 0 else '-'}${abs(change):,.0f} vs. original"
        if bucket.kind == BucketKind.EMERGENCY_FUND:
            caption += f" · target covers ~{emergency_fund_duration(bucket, essential)} months"
        st.caption(caption)
        if bucket.is_modifiable and abs(new_amount - bucket.allocated_amount) > config.EPSILON:
            outcome = editor.update_bucket(bucket.id, new_amount)
            if outcome.is_left():
                # drop the rejected value; the alert stays in editor.notices
                st.session_state.slider_rev += 1
            st.rerun()
        if bucket.kind == BucketKind.EMERGENCY_FUND:
            with st.expander("How long until the fund is full?"):
                contributions = bucket_presets(bucket, editor.buckets, editor.monthly_income)
                for option in emergency_fund_options(essential, 0.0, contributions):
                    label = f"**{option.months} months** (${option.target_amount:,.0f})"
                    if option.is_recommended:
                        label += " · recommended"
                    steps = []
                    for tier in PresetTier:
                        months = option.time_to_goal(tier)
                        steps.append(f"{tier.display_name}: {months if months is not None else '—'} mo")
                    st.markdown(label + "  \n" + " · ".join(steps))
        if bucket.kind == BucketKind.INVESTMENTS:
            with st.expander("Projected growth"):
                contributions = bucket_presets(bucket, editor.buckets, editor.monthly_income)
                projection = project_investments(0.0, contributions)
                st.dataframe(pd.DataFrame([
                    {
                        "Preset": tier.display_name,
                        "Monthly": f"${projection.timeline(tier).monthly_contribution:,.0f}",
                        "10 years": f"${projection.timeline(tier).year10:,.0f}",
                        "20 years": f"${projection.timeline(tier).year20:,.0f}",
                        "30 years": f"${projection.timeline(tier).year30:,.0f}",
                        "Gain (30y)": f"${projection.timeline(tier).total_gain(30):,.0f}",
                    }
                    for tier in PresetTier
                ]), hide_index=True)
    with cols[1]:
        if bucket.is_modifiable:
            locked = st.checkbox("🔒 Lock", value=bucket.is_locked, key=f"lock_{bucket.id}")
            if locked != bucket.is_locked:
                editor.set_locked(bucket.id, locked)
                st.rerun()
    with cols[2]:
        if bucket.is_modifiable and st.button("Reset", key=f"reset_{bucket.id}"):
            editor.reset_bucket(bucket.id)
            st.rerun()

st.header("📊 Plan")
df = pd.DataFrame([
    {
        "Bucket": b.display_name,
        "Amount": b.allocated_amount,
        "Percent": b.percentage_of_income(editor.monthly_income),
        "Locked": b.is_locked,
    }
    for b in editor.buckets
])

c1, c2 = st.columns([2, 3])
with c1:
    disp = df.assign(
        Amount=df["Amount"].map(lambda v: f"${v:,.2f}"),
        Percent=df["Percent"].map(lambda v: f"{v:.1f}%"),
    )
    st.table(disp)
with c2:
    if df["Amount"].sum() > 0:
        fig = px.pie(df, values="Amount", names="Bucket", title="Monthly Allocation", template="plotly_dark")
        fig.update_layout(height=320)
        st.plotly_chart(fig, use_container_width=True)

if st.button("✅ Confirm plan", disabled=not editor.is_valid()):
    editor.confirm_plan()
    st.rerun()
