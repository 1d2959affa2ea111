import streamlit as st

from opsdash.errors import ValidationError
from opsdash.feed import load_feed
from opsdash.filters import parse_date
from opsdash.forms import FOCUS_LEVELS, JOY_LEVELS, task_payload
from opsdash.ui import page_setup, toast_outcome

client = page_setup("Next Tasks", "✅")

st.title("✅ Next Tasks")
st.caption("The next step of every job, in one place.")

if "feed" not in st.session_state or st.session_state.get("feed_user") != client.user_id:
    st.session_state.feed = load_feed(client)
    st.session_state.feed_user = client.user_id
feed = st.session_state.feed

for message in feed.errors:
    st.error(message)

owner_map = feed.owner_map
bf_map = feed.business_function_map

with st.sidebar:
    st.header("Filters")
    focus = st.selectbox("Focus level", ["any"] + FOCUS_LEVELS, key="f_focus")
    joy = st.selectbox("Joy level", ["any"] + JOY_LEVELS, key="f_joy")
    owner = st.selectbox(
        "Owner", ["any"] + list(owner_map), format_func=lambda o: "Any" if o == "any" else owner_map[o], key="f_owner"
    )
    bf = st.selectbox(
        "Business function", ["any"] + list(bf_map), format_func=lambda b: "Any" if b == "any" else bf_map[b], key="f_bf"
    )
    min_hours = st.number_input("Min hours", min_value=0.0, step=0.5, value=None, key="f_min")
    max_hours = st.number_input("Max hours", min_value=0.0, step=0.5, value=None, key="f_max")
    due = st.date_input("Due on or before", value=None, key="f_due")
    if st.button("↻ Refresh"):
        st.session_state.feed = load_feed(client, feed.filters)
        st.rerun()

feed.set_filters(
    {
        "focusLevel": focus,
        "joyLevel": joy,
        "owner": owner,
        "businessFunctionId": bf,
        "minHours": min_hours,
        "maxHours": max_hours,
        "dueDate": due.isoformat() if due else None,
    }
)

visible = feed.visible()
st.markdown(f"**{len(visible)}** of {len(feed.tasks)} next tasks shown")

if not visible:
    st.info("No next tasks match. Set a next task on the Jobs page or relax the filters.")

pending = st.session_state.get("confirm_complete")

for task in visible:
    tid = task["id"]
    job = feed.job_for(task) or {}
    with st.container(border=True):
        h1, h2 = st.columns([5, 2])
        with h1:
            st.markdown(f"#### {task['title']}")
            bits = [
                f"Job: {job.get('title', 'n/a')}",
                f"Owner: {owner_map.get(task.get('owner'), 'Unassigned')}",
                f"Function: {bf_map.get(job.get('businessFunctionId'), 'None')}",
            ]
            if task.get("date"):
                bits.append(f"Date: {task['date']}")
            if task.get("requiredHours") is not None:
                bits.append(f"{task['requiredHours']:g} h")
            if task.get("focusLevel"):
                bits.append(f"Focus: {task['focusLevel']}")
            if task.get("joyLevel"):
                bits.append(f"Joy: {task['joyLevel']}")
            st.caption(" · ".join(bits))
            if task.get("tags"):
                st.markdown(" ".join(f"`{t}`" for t in task["tags"]))
            if task.get("notes"):
                st.markdown(f"📝 {task['notes']}")
        with h2:
            if task.get("completed"):
                if st.button("Reopen", key=f"reopen_{tid}"):
                    toast_outcome(feed.reopen(client, tid))
                    st.rerun()
            elif pending == tid:
                st.warning("Mark as complete?")
                y, n = st.columns(2)
                if y.button("Yes", key=f"yes_{tid}"):
                    st.session_state.confirm_complete = None
                    toast_outcome(feed.complete(client, tid))
                    st.rerun()
                if n.button("No", key=f"no_{tid}"):
                    st.session_state.confirm_complete = None
                    st.rerun()
            elif st.button("Complete", key=f"complete_{tid}", type="primary"):
                st.session_state.confirm_complete = tid
                st.rerun()
            if st.button("Delete", key=f"delete_{tid}"):
                toast_outcome(feed.delete(client, tid))
                st.rerun()

        with st.expander("Edit"):
            with st.form(f"edit_{tid}"):
                title = st.text_input("Title", value=task.get("title", ""))
                e1, e2, e3 = st.columns(3)
                with e1:
                    opts = [""] + FOCUS_LEVELS
                    focus_v = st.selectbox("Focus", opts, index=opts.index(task.get("focusLevel") or ""))
                with e2:
                    opts = [""] + JOY_LEVELS
                    joy_v = st.selectbox("Joy", opts, index=opts.index(task.get("joyLevel") or ""))
                with e3:
                    hours_v = st.number_input("Hours", min_value=0.0, step=0.5, value=task.get("requiredHours"))
                owner_opts = [""] + list(owner_map)
                owner_v = st.selectbox(
                    "Owner",
                    owner_opts,
                    index=owner_opts.index(task.get("owner")) if task.get("owner") in owner_opts else 0,
                    format_func=lambda o: owner_map.get(o, "Unassigned"),
                )
                date_v = st.date_input("Date", value=parse_date(task.get("date")))
                tags_v = st.text_input("Tags", value=", ".join(task.get("tags") or []))
                notes_v = st.text_area("Notes", value=task.get("notes") or "")
                saved = st.form_submit_button("Save")
            if saved:
                try:
                    changes = task_payload(
                        {
                            "title": title,
                            "owner": owner_v,
                            "focusLevel": focus_v,
                            "joyLevel": joy_v,
                            "requiredHours": hours_v,
                            "date": date_v,
                            "tags": tags_v,
                            "notes": notes_v,
                        }
                    )
                except ValidationError as exc:
                    st.error("; ".join(exc.problems))
                else:
                    toast_outcome(feed.edit(client, tid, changes))
                    st.rerun()
