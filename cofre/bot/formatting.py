"""
Message formatting helpers for Discord replies.
"""

from typing import Optional, Sequence

from cofre.config import DISCORD_MESSAGE_MAX_LENGTH
from cofre.db import Page
from cofre.models import (
    Action,
    BudgetSummary,
    Category,
    Transaction,
    TransactionKind,
    Vault,
)

KIND_EMOJI = {
    TransactionKind.INCOME: "📥",
    TransactionKind.EXPENSE: "📤",
}


def format_money(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}R$ {abs(amount):,.2f}"


def category_label(category: Optional[Category]) -> str:
    return category.name if category else "Uncategorized"


def format_transaction_line(
    transaction: Transaction, categories: dict[str, Category]
) -> str:
    """One-line summary: ``#a1b2 2026-01-05 📤 R$ 12.50 🛒 Shopping - bread``."""
    emoji = KIND_EMOJI.get(transaction.kind, "💰")
    pending = "" if transaction.is_committed else " ⏳"
    description = f" - {transaction.description}" if transaction.description else ""
    category = category_label(categories.get(transaction.category_id or ""))
    return (
        f"`#{transaction.code}` {transaction.date.strftime('%Y-%m-%d')} {emoji} "
        f"**{format_money(transaction.amount)}** {category}{description}{pending}"
    )


def format_transaction(transaction: Transaction, category: Optional[Category]) -> str:
    """Detailed block for a single transaction."""
    emoji = KIND_EMOJI.get(transaction.kind, "💰")
    lines = [
        f"{emoji} **{transaction.kind.value.upper()}** `#{transaction.code}`",
        "```",
        f"Amount:      {format_money(transaction.amount)}",
        f"Category:    {category_label(category)}",
        f"Description: {transaction.description or '-'}",
        f"Date:        {transaction.date.strftime('%Y-%m-%d')}",
        f"Committed:   {'yes' if transaction.is_committed else 'no'}",
        "```",
    ]
    return "\n".join(lines)


def format_action(action: Action, category: Optional[Category]) -> str:
    """Confirmation prompt for a pending action."""
    emoji = KIND_EMOJI.get(action.type.transaction_kind, "💰")
    lines = [
        f"{emoji} Record this **{action.type.value}**?",
        "```",
        f"Amount:      {format_money(action.payload.amount)}",
        f"Category:    {category_label(category)}",
        f"Description: {action.payload.description or '-'}",
        "```",
    ]
    return "\n".join(lines)


def format_budgets(summaries: Sequence[BudgetSummary]) -> str:
    if not summaries:
        return "No budgets set yet. Use `/setbudget` to create one."

    lines = ["```"]
    for summary in summaries:
        name = summary.category.name[:18]
        bar = _progress_bar(summary.percentage_used)
        lines.append(
            f"{name:<18} {bar} {summary.percentage_used:5.1f}% "
            f"{format_money(summary.spent)} / {format_money(summary.amount)}"
        )
    lines.append("```")
    return "\n".join(lines)


def format_vault_summary(vault: Vault, month: int, year: int) -> str:
    start, end = vault.get_budget_period(month, year)
    income = vault.total_income_in_period(month, year)
    spent = vault.total_spent_in_period(month, year)
    lines = [
        f"📊 **Summary {month:02d}/{year}** "
        f"({start.strftime('%d/%m')} - {end.strftime('%d/%m')})",
        "```",
        f"Income:    {format_money(income)}",
        f"Expenses:  {format_money(spent)}",
        f"Net:       {format_money(income - spent)}",
        f"Budgeted:  {format_money(vault.total_budgeted_amount())}",
        "```",
        f"💵 **Balance:** {format_money(vault.get_balance())}",
    ]
    return "\n".join(lines)


def format_transactions_page(
    page: Page[Transaction], categories: dict[str, Category]
) -> str:
    if not page.items:
        return "📭 No transactions found for this period."
    lines = [format_transaction_line(t, categories) for t in page.items]
    lines.append(f"\nPage {page.page}/{page.total_pages} ({page.total} transactions)")
    return "\n".join(lines)


def split_message(text: str, limit: int = DISCORD_MESSAGE_MAX_LENGTH) -> list[str]:
    """Split ``text`` on line boundaries into Discord-sized messages."""
    parts: list[str] = []
    current = ""
    for line in text.splitlines(keepends=True):
        while len(line) > limit:
            if current:
                parts.append(current)
                current = ""
            parts.append(line[:limit])
            line = line[limit:]
        if len(current) + len(line) > limit:
            parts.append(current)
            current = ""
        current += line
    if current:
        parts.append(current)
    return parts


def _progress_bar(percentage: float, width: int = 10) -> str:
    filled = min(width, int(round(percentage / 100 * width)))
    return "█" * filled + "░" * (width - filled)
