import streamlit as st

from opsdash.ui import page_setup

client = page_setup("Calendar", "📅")

st.title("📅 Calendar")
st.write("Connect Google Calendar so task dates can be planned next to your meetings.")

if st.button("Connect Google Calendar"):
    result = client.calendar_auth_url()
    if result.success and isinstance(result.data, dict) and result.data.get("url"):
        st.link_button("Continue to Google", result.data["url"])
    else:
        st.error(f"Could not start the calendar connection: {result.error}")
