import streamlit as st

from opsdash.charts import DEMO_QBOS, qbo_progress_figure, qbo_progress_pct
from opsdash.client import unwrap_list
from opsdash.ui import page_setup

client = page_setup("Dashboard", "📊")

st.title("📊 Dashboard")

qbos_result = client.list_qbos()
if not qbos_result.success:
    st.error(f"Failed to load QBOs: {qbos_result.error}")
qbos = unwrap_list(qbos_result)

showing_demo = not qbos
if showing_demo:
    st.info("You have no QBOs yet, showing two examples. Add your own on the QBOs page or via Onboarding.")
    qbos = DEMO_QBOS

total_points = sum(int(q.get("points") or 0) for q in qbos)
weighted = (
    sum(qbo_progress_pct(q) * int(q.get("points") or 0) for q in qbos) / total_points if total_points else 0.0
)

m1, m2, m3 = st.columns(3)
m1.metric("QBOs", len(qbos))
m2.metric("Points", total_points)
m3.metric("Weighted progress", f"{weighted:.0f}%")

st.subheader("QBO progress")
st.plotly_chart(qbo_progress_figure(qbos), use_container_width=True)

jobs_result = client.list_jobs()
jobs = unwrap_list(jobs_result)
if jobs_result.success and jobs:
    st.subheader("Jobs")
    progress = client.job_progress([j["id"] for j in jobs])
    pct_by_job = progress.data if progress.success and isinstance(progress.data, dict) else {}
    for job in jobs:
        pct = int(pct_by_job.get(job["id"], 0))
        st.markdown(f"**{job['title']}**  ·  due {job.get('dueDate') or 'n/a'}")
        st.progress(pct / 100.0, text=f"{pct}% complete")
elif not jobs_result.success:
    st.error(f"Failed to load jobs: {jobs_result.error}")
