import streamlit as st
import pandas as pd
import altair as alt
from datetime import date
import sys
import os

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "src"))

from pnltracker.db import db
from pnltracker.errors import TrackerError
from pnltracker.models import Trade
from pnltracker.pnl import (
    calculate_trade_pnl,
    calculate_trade_return_pct,
    is_open,
    summarize_portfolio,
)
from pnltracker.analytics import cumulative_pnl_frame, pnl_by_ticker
from pnltracker.formatting import (
    format_currency,
    format_date,
    format_optional_currency,
    format_percentage,
)

# Configure page
st.set_page_config(
    page_title="Portfolio P&L Tracker",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown(
    """
<style>
    .main-header {
        background: linear-gradient(90deg, #667eea 0%, #764ba2 100%);
        padding: 1rem;
        border-radius: 10px;
        margin-bottom: 2rem;
        text-align: center;
        color: white;
        font-size: 2.5rem;
        font-weight: bold;
    }

    .metric-card {
        background: linear-gradient(135deg, #667eea 0%, #764ba2 100%);
        padding: 1.5rem;
        border-radius: 15px;
        color: white;
        text-align: center;
        margin: 0.5rem 0;
    }

    .metric-value {
        font-size: 1.8rem;
        font-weight: bold;
        margin: 0.5rem 0;
    }

    .metric-label {
        font-size: 0.9rem;
        opacity: 0.9;
    }

    .section-header {
        background: linear-gradient(90deg, #f093fb 0%, #f5576c 100%);
        padding: 0.75rem 1rem;
        border-radius: 8px;
        color: white;
        font-size: 1.5rem;
        font-weight: bold;
        margin: 1.5rem 0 1rem 0;
    }
</style>
""",
    unsafe_allow_html=True,
)


def notify(message: str):
    """Queue a toast to show after the rerun that follows a mutation."""
    st.session_state["flash"] = message


def show_pending_notification():
    message = st.session_state.pop("flash", None)
    if message:
        st.toast(message, icon="✅")


def metric_card(label: str, value: str, caption: str = ""):
    st.markdown(
        f"""
    <div class="metric-card">
        <div class="metric-label">{label}</div>
        <div class="metric-value">{value}</div>
        <div style="font-size: 0.8rem; opacity: 0.8;">{caption}</div>
    </div>
    """,
        unsafe_allow_html=True,
    )


def trade_form(key: str, portfolios, trade: Trade = None, default_portfolio_id: int = None):
    """Render a trade form; returns a Trade when submitted, else None."""
    portfolio_ids = [p.id for p in portfolios]
    names = {p.id: p.name for p in portfolios}
    selected = trade.portfolio_id if trade else default_portfolio_id
    index = portfolio_ids.index(selected) if selected in portfolio_ids else 0

    with st.form(key):
        col1, col2 = st.columns(2)
        with col1:
            ticker = st.text_input("Ticker", value=trade.ticker if trade else "", placeholder="AAPL")
            entry_price = st.number_input(
                "Entry Price",
                min_value=0.01,
                value=float(trade.entry_price) if trade else 100.0,
                step=0.01,
            )
            quantity = st.number_input(
                "Quantity", min_value=1, value=int(trade.quantity) if trade else 1
            )
        with col2:
            portfolio_id = st.selectbox(
                "Portfolio", portfolio_ids, index=index, format_func=lambda pid: names[pid]
            )
            trade_date = st.date_input("Date", value=trade.trade_date if trade else date.today())
            closed = st.checkbox(
                "Position closed", value=bool(trade and not is_open(trade))
            )
            exit_price = st.number_input(
                "Exit Price",
                min_value=0.0,
                value=float(trade.exit_price) if trade and trade.exit_price is not None else 0.0,
                step=0.01,
                help="Ignored while the position is open",
            )

        label = "💾 Save Trade" if trade else "➕ Add Trade"
        if not st.form_submit_button(label, use_container_width=True):
            return None

    if not ticker.strip():
        st.error("Please fill in all required fields")
        return None

    return Trade(
        ticker=ticker,
        entry_price=entry_price,
        exit_price=exit_price if closed else None,
        quantity=int(quantity),
        trade_date=trade_date,
        portfolio_id=portfolio_id,
    )


def show_sidebar(portfolios):
    with st.sidebar:
        st.markdown('<div class="section-header">📁 New Portfolio</div>', unsafe_allow_html=True)
        with st.form("create_portfolio_form", clear_on_submit=True):
            name = st.text_input("Name", placeholder="Growth Portfolio")
            initial_value = st.number_input(
                "Initial Value", min_value=0.01, value=10000.0, step=100.0
            )
            if st.form_submit_button("➕ Create Portfolio", use_container_width=True):
                try:
                    portfolio = db.create_portfolio(name, initial_value)
                    notify(f"Portfolio created: {portfolio.name}")
                    st.rerun()
                except TrackerError as e:
                    st.error(f"Error creating portfolio: {e}")

        st.markdown('<div class="section-header">📝 New Trade</div>', unsafe_allow_html=True)
        if not portfolios:
            st.info("Create a portfolio before adding trades.")
            return

        new_trade = trade_form("create_trade_form", portfolios)
        if new_trade is not None:
            try:
                inserted = db.create_trade(new_trade)
                notify(f"Trade added: {inserted.ticker} x{inserted.quantity}")
                st.rerun()
            except TrackerError as e:
                st.error(f"Error adding trade: {e}")


def show_portfolios_tab(portfolios):
    if not portfolios:
        st.info("No portfolios found. Create your first portfolio to get started!")
        return

    for portfolio in portfolios:
        summary = summarize_portfolio(portfolio)
        pnl_color = "🟢" if summary.total_pnl >= 0 else "🔴"

        st.markdown(f"### 💼 {portfolio.name}")
        st.caption(f"Created {format_date(portfolio.created_at)}")

        col1, col2, col3, col4 = st.columns(4)
        with col1:
            metric_card("💵 Initial Value", format_currency(portfolio.initial_value))
        with col2:
            metric_card("💰 Current Value", format_currency(summary.total_value))
        with col3:
            metric_card(
                "📈 Total P&L",
                f"{pnl_color} {format_currency(summary.total_pnl)}",
                format_percentage(summary.percentage_change),
            )
        with col4:
            metric_card(
                "📊 Trades",
                str(summary.total_trades),
                f"{summary.open_trades} open",
            )

        with st.expander("✏️ Edit or delete"):
            with st.form(f"edit_portfolio_{portfolio.id}"):
                name = st.text_input("Name", value=portfolio.name)
                initial_value = st.number_input(
                    "Initial Value",
                    min_value=0.01,
                    value=float(portfolio.initial_value),
                    step=100.0,
                )
                if st.form_submit_button("💾 Save"):
                    try:
                        db.update_portfolio(portfolio.id, name, initial_value)
                        notify("Portfolio updated")
                        st.rerun()
                    except TrackerError as e:
                        st.error(f"Error updating portfolio: {e}")

            if st.button("🗑️ Delete portfolio", key=f"delete_portfolio_{portfolio.id}"):
                try:
                    db.delete_portfolio(portfolio.id)
                    notify(f"Portfolio deleted: {portfolio.name}")
                    st.rerun()
                except TrackerError as e:
                    st.error(str(e))


def show_trades_tab(portfolios):
    trades = db.list_trades()
    if not trades:
        st.info("No trades recorded yet.")
        return

    names = {p.id: p.name for p in portfolios}
    for trade in trades:
        pnl = calculate_trade_pnl(trade)
        return_pct = calculate_trade_return_pct(trade)
        status = "🟡 OPEN" if is_open(trade) else ("🟢" if pnl >= 0 else "🔴")

        col1, col2, col3, col4 = st.columns([3, 2, 2, 2])
        with col1:
            st.markdown(f"**💼 {trade.ticker}** · {names.get(trade.portfolio_id, '-')}")
            st.caption(f"📅 {format_date(trade.trade_date)} · {trade.quantity:,} shares")
        with col2:
            st.markdown(f"Entry {format_currency(trade.entry_price)}")
            st.markdown(f"Exit {format_optional_currency(trade.exit_price)}")
        with col3:
            st.markdown(f"{status} {format_optional_currency(pnl, '')}")
            if return_pct is not None:
                st.caption(format_percentage(return_pct))
        with col4:
            if st.button("🗑️ Delete", key=f"delete_trade_{trade.id}"):
                try:
                    db.delete_trade(trade.id)
                    notify(f"Trade deleted: {trade.ticker}")
                    st.rerun()
                except TrackerError as e:
                    st.error(f"Error deleting trade: {e}")

        with st.expander("✏️ Edit trade"):
            edited = trade_form(f"edit_trade_{trade.id}", portfolios, trade=trade)
            if edited is not None:
                try:
                    db.update_trade(trade.id, edited)
                    notify(f"Trade updated: {edited.ticker.upper()}")
                    st.rerun()
                except TrackerError as e:
                    st.error(f"Error updating trade: {e}")


def show_dashboard_tab(portfolios):
    if not portfolios:
        st.info("No portfolios found. Create your first portfolio to get started!")
        return

    names = {p.id: p.name for p in portfolios}
    selected_id = st.selectbox(
        "Portfolio", list(names), format_func=lambda pid: names[pid], key="dashboard_portfolio"
    )
    portfolio = next(p for p in portfolios if p.id == selected_id)
    summary = summarize_portfolio(portfolio)

    col1, col2, col3 = st.columns(3)
    with col1:
        metric_card("💰 Current Value", format_currency(summary.total_value))
    with col2:
        metric_card("📈 Total P&L", format_currency(summary.total_pnl))
    with col3:
        metric_card("🎯 Return", format_percentage(summary.percentage_change))

    st.markdown(
        '<div class="section-header">📈 Portfolio Performance</div>', unsafe_allow_html=True
    )
    cumulative_df = cumulative_pnl_frame(portfolio.trades)
    if cumulative_df.empty:
        st.info("Close a trade to see cumulative P&L over time.")
    else:
        chart = (
            alt.Chart(cumulative_df)
            .mark_line(strokeWidth=3, stroke="#2563eb", point=True)
            .encode(
                x=alt.X("trade_date:T", title="Date"),
                y=alt.Y("cumulative_pnl:Q", title="Cumulative P&L ($)"),
                tooltip=[
                    alt.Tooltip("trade_date:T", title="Date", format="%Y-%m-%d"),
                    alt.Tooltip("ticker:N", title="Ticker"),
                    alt.Tooltip("trade_pnl:Q", title="Trade P&L", format="$,.2f"),
                    alt.Tooltip("cumulative_pnl:Q", title="Cumulative P&L", format="$,.2f"),
                ],
            )
            .properties(
                width="container",
                height=400,
                title="Cumulative P&L from Closed Trades",
            )
            .configure_axis(
                gridColor="#f0f0f0",
                domainColor="#666666",
                titleFontSize=14,
                labelFontSize=12,
            )
            .configure_title(fontSize=18, fontWeight="bold")
        )
        st.altair_chart(chart, use_container_width=True)

    by_ticker = pnl_by_ticker(portfolio.trades)
    if not by_ticker.empty:
        st.markdown("### 🏷️ P&L by Ticker")
        display_df = by_ticker.copy()
        display_df["realized_pnl"] = display_df["realized_pnl"].apply(format_currency)
        display_df.columns = ["Ticker", "Realized P&L", "Trades", "Open"]
        st.dataframe(display_df, use_container_width=True, hide_index=True)

    st.markdown("### 📊 Trades")
    if portfolio.trades:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "Ticker": t.ticker,
                        "Date": format_date(t.trade_date),
                        "Quantity": f"{t.quantity:,}",
                        "Entry": format_currency(t.entry_price),
                        "Exit": format_optional_currency(t.exit_price),
                        "P&L": format_optional_currency(calculate_trade_pnl(t)),
                        "Status": "Open" if is_open(t) else "Closed",
                    }
                    for t in portfolio.trades
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.info("No trades in this portfolio yet.")


def main():
    st.markdown('<div class="main-header">📊 Portfolio P&L Tracker</div>', unsafe_allow_html=True)
    show_pending_notification()

    # Always read fresh state; every mutation above ends in st.rerun()
    try:
        portfolios = db.list_portfolios()
    except Exception as e:
        st.error(f"Error loading portfolios: {e}")
        return

    show_sidebar(portfolios)

    tab1, tab2, tab3 = st.tabs(["💼 Portfolios", "📝 Trades", "📈 Dashboard"])
    with tab1:
        show_portfolios_tab(portfolios)
    with tab2:
        show_trades_tab(portfolios)
    with tab3:
        show_dashboard_tab(portfolios)


if __name__ == "__main__":
    main()
