import streamlit as st

from opsdash.cascade import clear_next_task_references
from opsdash.charts import job_progress_figure
from opsdash.client import unwrap_list
from opsdash.errors import ValidationError
from opsdash.feed import CASCADE_FAILED_MESSAGE, build_lookup, owner_names_by_task
from opsdash.filters import parse_date
from opsdash.forms import FOCUS_LEVELS, JOY_LEVELS, job_payload, task_payload
from opsdash.progress import job_progress
from opsdash.ui import flash, page_setup, toast_result

client = page_setup("Jobs", "🗂️")
# The next-task feed is rebuilt after a visit here.
st.session_state.pop("feed", None)

st.title("🗂️ Jobs")

jobs_result = client.list_jobs()
if not jobs_result.success:
    st.error(f"Failed to load jobs: {jobs_result.error}")
    st.stop()
jobs = unwrap_list(jobs_result)

tasks = unwrap_list(client.list_tasks())
owners = unwrap_list(client.list_owners())
business_functions = unwrap_list(client.list_business_functions())
owner_map = build_lookup(owners)
bf_map = build_lookup(business_functions)
next_owner_names = owner_names_by_task(tasks, owner_map)

owner_ids = [""] + list(owner_map)
bf_ids = [""] + list(bf_map)


def _owner_label(oid):
    return owner_map.get(oid, "Unassigned") if oid else "Unassigned"


def _bf_label(bid):
    return bf_map.get(bid, "None") if bid else "None"


def _after_task_removed(task_id):
    """Completed or deleted tasks stop being any job's next task."""
    cascade = clear_next_task_references(client, jobs, task_id)
    if not cascade.ok:
        flash(CASCADE_FAILED_MESSAGE, "⚠️")


def _toggle_done(task_id, key):
    done = st.session_state[key]
    result = client.update_task(task_id, {"completed": done})
    if not toast_result(result, "Task completed" if done else "Task reopened", "Failed to update task"):
        st.session_state[key] = not done
    elif done:
        _after_task_removed(task_id)


def _job_form(key, job=None):
    job = job or {}
    with st.form(key, clear_on_submit=job == {}):
        title = st.text_input("Title", value=job.get("title", ""))
        c1, c2, c3 = st.columns(3)
        with c1:
            owner = st.text_input("Owner", value=job.get("owner") or "")
        with c2:
            current_bf = job.get("businessFunctionId") or ""
            bf = st.selectbox(
                "Business function",
                bf_ids,
                index=bf_ids.index(current_bf) if current_bf in bf_ids else 0,
                format_func=_bf_label,
            )
        with c3:
            due = st.date_input("Due date", value=parse_date(job.get("dueDate")))
        submitted = st.form_submit_button("Save job")
    if not submitted:
        return None
    try:
        return job_payload({"title": title, "owner": owner, "businessFunctionId": bf, "dueDate": due})
    except ValidationError as exc:
        st.error("; ".join(exc.problems))
        return None


with st.expander("➕ New job"):
    payload = _job_form("new_job")
    if payload is not None:
        if toast_result(client.create_job(payload), "Job created", "Failed to create job"):
            st.rerun()

if not jobs:
    st.info("No jobs yet. Create one above.")

for job in jobs:
    job_id = job["id"]
    progress = job_progress(tasks, job_id)
    job_tasks = [t for t in tasks if t.get("jobId") == job_id]
    next_id = job.get("nextTaskId")
    next_task = next((t for t in job_tasks if t.get("id") == next_id), None)

    with st.container(border=True):
        c_ring, c_body = st.columns([1, 5])
        with c_ring:
            st.plotly_chart(job_progress_figure(progress.percentage), use_container_width=False, key=f"ring-{job_id}")
        with c_body:
            st.markdown(f"### {job['title']}")
            st.markdown(
                f"<span class='opsdash-muted'>Owner: {job.get('owner') or 'n/a'} · "
                f"Function: {_bf_label(job.get('businessFunctionId'))} · "
                f"Due: {job.get('dueDate') or 'n/a'} · "
                f"{progress.completed}/{progress.total} tasks</span>",
                unsafe_allow_html=True,
            )
            if next_task:
                who = next_owner_names.get(next_id, "Unassigned")
                st.markdown(f"**Next:** {next_task['title']} ({who})")
            else:
                st.caption("No next task set")

        with st.expander("Edit job"):
            changes = _job_form(f"edit_job_{job_id}", job)
            if changes is not None:
                if toast_result(client.update_job(job_id, changes), "Job updated", "Failed to update job"):
                    st.rerun()
            if st.button("Delete job", key=f"del_job_{job_id}", type="secondary"):
                if toast_result(client.delete_job(job_id), "Job deleted", "Failed to delete job"):
                    st.rerun()

        with st.expander(f"Tasks ({len(job_tasks)})"):
            for task in job_tasks:
                tid = task["id"]
                t1, t2, t3, t4 = st.columns([0.6, 5, 1.4, 1])
                with t1:
                    st.checkbox(
                        "done",
                        value=bool(task.get("completed")),
                        key=f"done_{tid}",
                        label_visibility="collapsed",
                        on_change=_toggle_done,
                        args=(tid, f"done_{tid}"),
                    )
                with t2:
                    marker = " ⭐" if tid == next_id else ""
                    meta = " · ".join(
                        x for x in [_owner_label(task.get("owner")), task.get("date") or "", ", ".join(task.get("tags") or [])] if x
                    )
                    st.markdown(f"{'~~' if task.get('completed') else ''}{task['title']}{'~~' if task.get('completed') else ''}{marker}")
                    st.caption(meta)
                with t3:
                    if tid != next_id and not task.get("completed"):
                        if st.button("Set next", key=f"next_{tid}"):
                            if toast_result(
                                client.update_job(job_id, {"nextTaskId": tid}), "Next task set", "Failed to set next task"
                            ):
                                st.rerun()
                with t4:
                    if st.button("🗑", key=f"del_task_{tid}"):
                        if toast_result(client.delete_task(tid), "Task deleted", "Failed to delete task"):
                            _after_task_removed(tid)
                            st.rerun()

            st.markdown("**Add task**")
            with st.form(f"add_task_{job_id}", clear_on_submit=True):
                title = st.text_input("Title")
                a1, a2, a3, a4 = st.columns(4)
                with a1:
                    owner = st.selectbox("Owner", owner_ids, format_func=_owner_label)
                with a2:
                    focus = st.selectbox("Focus", [""] + FOCUS_LEVELS)
                with a3:
                    joy = st.selectbox("Joy", [""] + JOY_LEVELS)
                with a4:
                    hours = st.number_input("Hours", min_value=0.0, step=0.5, value=None)
                b1, b2 = st.columns(2)
                with b1:
                    when = st.date_input("Date", value=None)
                with b2:
                    tags = st.text_input("Tags (comma separated)")
                notes = st.text_area("Notes")
                make_next = st.checkbox("Make this the next task")
                added = st.form_submit_button("Add task")
            if added:
                try:
                    payload = task_payload(
                        {
                            "title": title,
                            "jobId": job_id,
                            "owner": owner,
                            "focusLevel": focus,
                            "joyLevel": joy,
                            "requiredHours": hours,
                            "date": when,
                            "tags": tags,
                            "notes": notes,
                        }
                    )
                except ValidationError as exc:
                    st.error("; ".join(exc.problems))
                else:
                    created = client.create_task(payload)
                    if toast_result(created, "Task added", "Failed to add task"):
                        if make_next:
                            toast_result(
                                client.update_job(job_id, {"nextTaskId": created.data["id"]}),
                                "Next task set",
                                "Failed to set next task",
                            )
                        st.rerun()
