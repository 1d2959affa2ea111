import streamlit as st

from opsdash.config import get_config
from opsdash.errors import ValidationError
from opsdash.forms import CUSTOM_GROWTH_STAGE, GROWTH_STAGES, business_description, business_info_step
from opsdash.onboarding import (
    STEP_BUSINESS_INFO,
    STEP_DESCRIPTION,
    STEP_PROCESSING,
    STEP_RESULTS,
    run_onboarding,
)
from opsdash.ui import flash, page_setup

client = page_setup("Onboarding", "🚀")
cfg = get_config()

st.title("🚀 Business Onboarding")

state = st.session_state.setdefault(
    "onboarding",
    {"step": STEP_BUSINESS_INFO, "info": {}, "description": "", "result": "", "chat_id": None},
)

labels = {STEP_BUSINESS_INFO: "1 · Business", STEP_DESCRIPTION: "2 · Description", STEP_RESULTS: "3 · Plan"}
st.caption("  →  ".join(f"**{v}**" if k == state["step"] else v for k, v in labels.items()))

if state["step"] == STEP_BUSINESS_INFO:
    info = state["info"]
    with st.form("business_info"):
        name = st.text_input("Business name *", value=info.get("businessName", ""))
        industry = st.text_input("Industry *", value=info.get("businessIndustry", ""))
        c1, c2 = st.columns(2)
        months = c1.number_input("Months in business", min_value=0, step=1, value=int(info.get("monthsInBusiness") or 0))
        revenue = c2.number_input("Annual revenue", min_value=0.0, step=1000.0, value=float(info.get("annualRevenue") or 0))
        stage_options = GROWTH_STAGES + [CUSTOM_GROWTH_STAGE]
        stage = st.selectbox(
            "Growth stage *",
            stage_options,
            format_func=lambda s: "Other…" if s == CUSTOM_GROWTH_STAGE else s,
        )
        custom_stage = st.text_input("Other growth stage", help="Used when 'Other…' is selected")
        nxt = st.form_submit_button("Next")
    if nxt:
        chosen = custom_stage.strip() if stage == CUSTOM_GROWTH_STAGE else stage
        form = {
            "businessName": name,
            "businessIndustry": industry,
            "monthsInBusiness": months,
            "annualRevenue": revenue,
            "growthStage": chosen or CUSTOM_GROWTH_STAGE,
        }
        try:
            business_info_step(form)
        except ValidationError as exc:
            st.toast(exc.problems[0], icon="⚠️")
        else:
            state["info"] = form
            state["step"] = STEP_DESCRIPTION
            st.rerun()

elif state["step"] == STEP_DESCRIPTION:
    description = st.text_area(
        "Describe your business, its mission and what you want to achieve",
        value=state["description"],
        height=220,
        max_chars=None,
    )
    st.caption(f"{len(description)}/{cfg.max_description_chars} characters")
    b1, b2 = st.columns(2)
    if b1.button("Back"):
        state["description"] = description
        state["step"] = STEP_BUSINESS_INFO
        st.rerun()
    if b2.button("Get my plan", type="primary"):
        try:
            state["description"] = business_description(description, max_chars=cfg.max_description_chars)
        except ValidationError as exc:
            st.toast(exc.problems[0], icon="⚠️")
        else:
            state["step"] = STEP_PROCESSING
            st.rerun()

elif state["step"] == STEP_PROCESSING:
    st.info("Analyzing your business…")
    placeholder = st.empty()
    with st.spinner("Thinking"):
        outcome = run_onboarding(
            client,
            state["info"],
            state["description"],
            timeout=cfg.onboarding_timeout,
            on_chunk=placeholder.markdown,
        )
    state["step"] = outcome.step
    if outcome.ok:
        state["result"] = outcome.text
        state["chat_id"] = outcome.chat_id
    else:
        flash(f"{outcome.title}: {outcome.message}", "⚠️")
    st.rerun()

elif state["step"] == STEP_RESULTS:
    st.subheader(f"Starter plan for {state['info'].get('businessName', 'your business')}")
    st.markdown(state["result"])
    if state.get("chat_id"):
        st.caption(f"Saved as conversation {state['chat_id']}")
    st.page_link("pages/4_QBOs.py", label="Turn these outcomes into QBOs", icon="🎯")
    if st.button("Start over"):
        st.session_state.pop("onboarding", None)
        st.rerun()
