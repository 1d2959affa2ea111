import streamlit as st

from opsdash.errors import ValidationError
from opsdash.forms import search_query
from opsdash.ui import page_setup

client = page_setup("Search", "🔎")

st.title("🔎 Search")

with st.form("search_form"):
    text = st.text_input("Search jobs and tasks", placeholder="title, note or tag")
    submitted = st.form_submit_button("Search")

if submitted:
    try:
        query = search_query(text)
    except ValidationError as exc:
        st.toast(exc.problems[0], icon="⚠️")
    else:
        result = client.search(query)
        if not result.success:
            st.error(f"Search failed: {result.error}")
        elif not result.data:
            st.info(f"No results for “{query}”.")
        else:
            st.markdown(f"**{len(result.data)}** result(s)")
            for hit in result.data:
                icon = "🗂️" if hit.get("type") == "job" else ("☑️" if hit.get("completed") else "⬜")
                when = f" · {hit['dueDate']}" if hit.get("dueDate") else ""
                st.markdown(f"{icon} **{hit['title']}** ({hit.get('type')}){when}")
