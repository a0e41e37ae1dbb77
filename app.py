"""
app.py
Streamlit Gym Membership Tracker (member lookup + admin panel over a spreadsheet directory).
Run: streamlit run app.py
"""

from __future__ import annotations

from datetime import date

import streamlit as st

import auth
import utils
from config import AppConfig, configure_logging
from directory import DirectoryClient
from errors import GymError
from models import PLAN_DAYS, STATUS_ACTIVE, NewMember

st.set_page_config(page_title="Gym Membership Tracker", layout="wide")

configure_logging()

PLAN_OPTIONS = list(PLAN_DAYS.keys())


def init_once() -> tuple[AppConfig, DirectoryClient]:
    # One client (and one HTTP connection pool) per browser session, reused across reruns
    if "directory_client" not in st.session_state:
        config = AppConfig.load(session=st.session_state)
        st.session_state.directory_client = DirectoryClient(config)
    client = st.session_state.directory_client
    return client.config, client


def show_error(err: GymError):
    st.error(err.message)


def flash(message: str):
    st.session_state.flash = message


def show_flash():
    message = st.session_state.pop("flash", None)
    if message:
        st.success(message)


# ---------- Public ----------

def member_card(member):
    st.subheader(f"{member.name} ({member.id})")
    c1, c2, c3 = st.columns(3)
    c1.metric("Status", member.status)
    c2.metric("Days remaining", member.days_remaining if member.status == STATUS_ACTIVE else "-")
    c3.metric("Plan", member.membership_type)
    st.write(f"Start: **{member.start_date.isoformat()}** | End: **{member.end_date.isoformat()}**")
    if member.status == STATUS_ACTIVE:
        st.success("Your membership is active.")
    else:
        st.warning("Your membership has expired. Please contact the front desk to renew.")


def lookup_page(config: AppConfig, client: DirectoryClient):
    st.header("🔎 Member Lookup")

    if not config.api_url:
        st.info("System not configured. Please contact the gym administrator.")
        return

    member_id = st.text_input("Member ID", placeholder="e.g. GYM001")
    if st.button("Check status", type="primary"):
        try:
            member = client.lookup(member_id)
        except GymError as e:
            show_error(e)
            return
        member_card(member)


# ---------- Admin ----------

def login_screen(config: AppConfig, client: DirectoryClient):
    st.subheader("🔐 Admin Login")

    password = st.text_input("Admin password", type="password")
    if st.button("Login", type="primary"):
        if not config.api_url:
            st.error("API URL not configured. Please set up first.")
            return
        try:
            ok = auth.login(client, password)
        except GymError as e:
            show_error(e)
            return
        if ok:
            st.rerun()
        else:
            st.error("Invalid password")


def add_member_form(client: DirectoryClient, members):
    st.subheader("➕ Add Member")

    col1, col2, col3 = st.columns(3)
    with col1:
        member_id = st.text_input("Member ID", value=utils.suggest_member_id(members), key="add_id")
        name = st.text_input("Name", key="add_name")
        phone = st.text_input("Phone", key="add_phone")
    with col2:
        age = st.number_input("Age", min_value=0, max_value=120, value=25, step=1, key="add_age")
        weight = st.number_input("Weight (kg)", min_value=0, max_value=400, value=70, step=1, key="add_weight")
    with col3:
        plan_type = st.selectbox("Membership type", PLAN_OPTIONS, key="add_plan")
        start_date = st.date_input("Start date", value=date.today(), key="add_start")
        st.caption(f"End date: {utils.compute_end_date(start_date, plan_type).isoformat()}")

    if st.button("Add member", type="primary"):
        errors = utils.validate_member_inputs(member_id, name, phone, age, weight, plan_type, start_date)
        if errors:
            for e in errors:
                st.error(e)
            return
        try:
            client.create(NewMember(member_id, name, phone, int(age), int(weight), plan_type, start_date))
        except GymError as e:
            show_error(e)
            return
        flash("Member added successfully!")
        st.rerun()


def edit_member_form(client: DirectoryClient, member):
    st.subheader(f"✏️ Edit Member (ID: {member.id})")

    col1, col2, col3 = st.columns(3)
    with col1:
        name = st.text_input("Name", value=member.name, key=f"edit_name_{member.id}")
        phone = st.text_input("Phone", value=member.phone, key=f"edit_phone_{member.id}")
    with col2:
        age = st.number_input("Age", min_value=0, max_value=120, value=min(member.age, 120), step=1, key=f"edit_age_{member.id}")
        weight = st.number_input(
            "Weight (kg)", min_value=0, max_value=400, value=min(member.weight, 400), step=1, key=f"edit_weight_{member.id}"
        )
    with col3:
        plan_type = st.selectbox(
            "Membership type",
            PLAN_OPTIONS,
            index=PLAN_OPTIONS.index(member.membership_type) if member.membership_type in PLAN_OPTIONS else 0,
            key=f"edit_plan_{member.id}",
        )
        start_date = st.date_input("Start date", value=member.start_date, key=f"edit_start_{member.id}")

    if st.button("Save changes", type="primary"):
        errors = utils.validate_member_inputs(member.id, name, phone, age, weight, plan_type, start_date)
        if errors:
            for e in errors:
                st.error(e)
            return
        try:
            client.update(
                member.id,
                name=name,
                phone=phone,
                age=int(age),
                weight=int(weight),
                membership_type=plan_type,
                start_date=start_date,
            )
        except GymError as e:
            show_error(e)
            return
        flash("Member updated successfully!")
        st.rerun()


def renew_member_form(client: DirectoryClient, member):
    st.subheader(f"🔁 Renew Membership (ID: {member.id})")
    st.write(
        f"Current plan: **{member.membership_type}** | End: **{member.end_date.isoformat()}** | Status: **{member.status}**"
    )

    col1, col2 = st.columns(2)
    with col1:
        plan_type = st.selectbox("New membership type", PLAN_OPTIONS, key=f"renew_plan_{member.id}")
    with col2:
        start_date = st.date_input("Start date", value=date.today(), key=f"renew_start_{member.id}")

    st.info(f"Auto-calculated end date: **{utils.compute_end_date(start_date, plan_type).isoformat()}**")

    if st.button("Renew", type="primary"):
        try:
            new_end = client.renew(member.id, plan_type, start_date)
        except GymError as e:
            show_error(e)
            return
        flash(f"Membership renewed! New end date: {new_end.isoformat()}")
        st.rerun()


def delete_member_form(client: DirectoryClient, member):
    st.subheader(f"🗑️ Delete Member (ID: {member.id})")
    st.warning(f"This permanently removes **{member.name}** from the sheet.")
    confirm = st.checkbox("Confirm delete", value=False, key=f"del_confirm_{member.id}")
    if st.button("Delete", type="secondary", disabled=not confirm):
        try:
            client.delete(member.id)
        except GymError as e:
            show_error(e)
            return
        flash("Member deleted successfully!")
        st.rerun()


def admin_page(config: AppConfig, client: DirectoryClient):
    st.header("🛠️ Admin Panel")

    if not auth.is_admin_logged_in(config):
        login_screen(config, client)
        return

    if st.sidebar.button("Logout"):
        auth.logout(config)
        st.rerun()

    show_flash()

    try:
        members = client.list_all()
    except GymError as e:
        show_error(e)
        if st.button("Retry"):
            st.rerun()
        return

    stats = utils.member_stats(members)
    c1, c2, c3 = st.columns(3)
    c1.metric("Total members", stats["total"])
    c2.metric("Active", stats["active"])
    c3.metric("Expired", stats["expired"])

    st.divider()

    status_filter = st.radio("Show", ["All", "Active", "Expired"], horizontal=True)
    shown = utils.filter_by_status(members, status_filter)
    st.dataframe(utils.members_to_dataframe(shown), use_container_width=True, hide_index=True)

    if members:
        st.download_button(
            "Download members.csv",
            data=utils.members_to_csv_bytes(members),
            file_name="members.csv",
            mime="text/csv",
        )

    soon = utils.expiring_soon(members, date.today())
    with st.expander(f"⏰ Expiring in the next 7 days ({len(soon)})"):
        if soon:
            st.dataframe(utils.members_to_dataframe(soon), use_container_width=True, hide_index=True)
        else:
            st.caption("No members expiring in the next 7 days.")

    st.divider()

    action = st.selectbox("Action", ["Add", "Edit", "Renew", "Delete"])
    if action == "Add":
        add_member_form(client, members)
        return

    if not members:
        st.info("No members yet. Add a member first.")
        return

    by_id = {m.id: m for m in members}
    selected_id = st.selectbox("Member", list(by_id.keys()), format_func=lambda i: f"{i} - {by_id[i].name}")
    member = by_id[selected_id]

    if action == "Edit":
        edit_member_form(client, member)
    elif action == "Renew":
        renew_member_form(client, member)
    elif action == "Delete":
        delete_member_form(client, member)


# ---------- Setup ----------

def setup_page(config: AppConfig):
    st.header("⚙️ Setup")

    st.caption("Paste the deployed web app URL of the membership sheet. It is saved on this machine.")
    current = config.api_url
    url = st.text_input("API URL", value=current)

    if st.button("Save", type="primary"):
        try:
            config.save_api_url(url)
        except GymError as e:
            show_error(e)
            return
        st.success("API URL saved.")

    if current:
        st.caption(f"Current: {current}")


def main_app(config: AppConfig, client: DirectoryClient):
    st.sidebar.title("🏋️ Gym Tracker")
    if auth.is_admin_logged_in(config):
        st.sidebar.caption("Admin session active")

    pages = ["Member Lookup", "Admin Panel", "Setup"]
    if "page" not in st.session_state:
        st.session_state.page = "Member Lookup" if config.api_url else "Setup"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.session_state.page == "Member Lookup":
        lookup_page(config, client)
    elif st.session_state.page == "Admin Panel":
        admin_page(config, client)
    elif st.session_state.page == "Setup":
        setup_page(config)


# --------- App entry ---------

def run():
    try:
        config, client = init_once()
    except GymError as e:
        show_error(e)
        return
    main_app(config, client)


if __name__ == "__main__":
    run()
