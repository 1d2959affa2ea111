import pandas as pd
import streamlit as st

from opsdash.charts import qbo_progress_pct
from opsdash.client import unwrap_list
from opsdash.errors import ValidationError
from opsdash.filters import parse_date
from opsdash.forms import qbo_payload
from opsdash.ui import page_setup, toast_result

client = page_setup("QBOs", "🎯")

st.title("🎯 Quantified Business Objectives")

result = client.list_qbos()
if not result.success:
    st.error(f"Failed to load QBOs: {result.error}")
qbos = unwrap_list(result)


def _qbo_form(key, qbo=None):
    qbo = qbo or {}
    with st.form(key, clear_on_submit=qbo == {}):
        c1, c2 = st.columns([3, 1])
        name = c1.text_input("Name", value=qbo.get("name", ""))
        unit = c2.text_input("Unit", value=qbo.get("unit") or "")
        v1, v2, v3 = st.columns(3)
        beginning = v1.number_input("Beginning value", value=float(qbo.get("beginningValue") or 0))
        current = v2.number_input("Current value", value=float(qbo.get("currentValue") or 0))
        target = v3.number_input("Target value", value=qbo.get("targetValue"))
        d1, d2 = st.columns(2)
        deadline = d1.date_input("Deadline", value=parse_date(qbo.get("deadline")))
        points = d2.number_input("Points", min_value=0, max_value=100, step=1, value=qbo.get("points"))
        notes = st.text_area("Notes", value=qbo.get("notes") or "")
        submitted = st.form_submit_button("Save QBO")
    if not submitted:
        return None
    try:
        return qbo_payload(
            {
                "name": name,
                "unit": unit,
                "beginningValue": beginning,
                "currentValue": current,
                "targetValue": target,
                "deadline": deadline,
                "points": points,
                "notes": notes,
            }
        )
    except ValidationError as exc:
        st.error("; ".join(exc.problems))
        return None


with st.expander("➕ New QBO", expanded=not qbos):
    payload = _qbo_form("new_qbo")
    if payload is not None and toast_result(client.create_qbo(payload), "QBO created", "Failed to create QBO"):
        st.rerun()

if qbos:
    df = pd.DataFrame(
        [
            {
                "Name": q["name"],
                "Current": q.get("currentValue"),
                "Target": q.get("targetValue"),
                "Unit": q.get("unit") or "",
                "Deadline": q.get("deadline") or "",
                "Points": q.get("points"),
                "Progress %": round(qbo_progress_pct(q), 1),
            }
            for q in qbos
        ]
    )
    st.dataframe(df, use_container_width=True, hide_index=True)
    total = int(df["Points"].fillna(0).sum())
    if total != 100:
        st.caption(f"Points add up to {total}; 100 is the usual budget.")

for qbo in qbos:
    with st.expander(f"✏️ {qbo['name']}"):
        changes = _qbo_form(f"edit_qbo_{qbo['id']}", qbo)
        if changes is not None and toast_result(
            client.update_qbo(qbo["id"], changes), "QBO updated", "Failed to update QBO"
        ):
            st.rerun()
        if st.button("Delete", key=f"del_qbo_{qbo['id']}"):
            if toast_result(client.delete_qbo(qbo["id"]), "QBO deleted", "Failed to delete QBO"):
                st.rerun()
