"""Main service entry point."""
import sys
import argparse
from typing import Optional

from financeai.config.manager import Config, ConfigManager
from financeai.config.settings import AppSettings, get_settings
from financeai.llm.aggregator import Aggregator, format_amount
from financeai.records.backends import create_backend
from financeai.records.store import RecordStore
from financeai.utils.logger import get_logger, set_user_context
from financeai.utils.exceptions import FinanceAIError

logger = get_logger()


def build_store(settings: AppSettings, config: Optional[Config] = None) -> RecordStore:
    """Create the record store on the configured backend."""
    kind = (config.storage_backend if config and config.storage_backend else None) or settings.storage_backend
    logger.debug(f"Using {kind} storage backend")
    return RecordStore(create_backend(kind, settings))


def list_command(store: RecordStore, user_id: str) -> None:
    """Print a user's transactions."""
    transactions = store.list(user_id)

    if not transactions:
        print(f"No transactions found for user: {user_id}")
        return

    print(f"\nTransactions for user: {user_id}")
    print(f"Total: {len(transactions)} transactions")
    print(f"{'Date':<12} {'Type':<8} {'Amount':>12} {'Category':<18} {'Description':<30} {'ID'}")
    print("-" * 110)

    for txn in transactions:
        sign = "+" if txn.type.value == "income" else "-"
        print(
            f"{txn.date.isoformat():<12} {txn.type.value:<8} "
            f"{sign + '$' + format_amount(txn.amount):>12} {txn.category.value:<18} "
            f"{txn.description[:30]:<30} {txn.id}"
        )


def summary_command(store: RecordStore, user_id: str, settings: AppSettings) -> None:
    """Print totals, category breakdown and this month's budget."""
    aggregator = Aggregator(
        recent_limit=settings.llm_recent_transactions,
        budget_limits=settings.budget_limits,
        top_categories=settings.budget_top_categories
    )
    transactions = store.list(user_id)
    summary = aggregator.summarize(transactions)

    print(f"\nSummary for user: {user_id}")
    print(f"  Total Balance:  ${format_amount(summary.net_balance)}")
    print(f"  Total Income:   ${format_amount(summary.total_income)}")
    print(f"  Total Expenses: ${format_amount(summary.total_expenses)}")
    print(f"  Transactions:   {summary.transaction_count}")

    if summary.category_totals:
        print("\nExpense Breakdown by Category:")
        for category, amount in summary.category_totals.items():
            print(f"  {category:<20} ${format_amount(amount)}")

    budget = aggregator.budget_overview(transactions)
    if budget:
        print("\nMonthly Budget Overview:")
        for line in budget:
            flag = " OVER" if line.over_budget else ""
            print(
                f"  {line.category:<20} ${format_amount(line.spent)} / ${format_amount(line.limit)} "
                f"({line.percentage:.0f}%){flag}"
            )


def clear_command(store: RecordStore, user_id: str) -> None:
    """Delete all transactions of a user."""
    deleted = store.clear(user_id)
    print(f"✓ Cleared {deleted} transactions for user: {user_id}")


def _load_and_validate_config() -> Config:
    """Load and validate configuration needed by the assistant."""
    config_manager = ConfigManager()
    config = config_manager.load_config()

    if not config:
        logger.critical(
            f"No configuration found. Set GEMINI_API_KEY or create {config_manager.config_file}"
        )
        sys.exit(1)

    is_valid, message = config_manager.validate_config(config)
    if not is_valid:
        logger.critical(f"Invalid configuration: {message}")
        sys.exit(1)

    logger.info("Configuration loaded successfully")
    return config


def serve_command(settings: AppSettings, host: Optional[str], port: Optional[int]) -> None:
    """Run the HTTP API."""
    import uvicorn

    from financeai.api.app import create_app
    from financeai.llm.assistant import FinanceAssistant

    config = _load_and_validate_config()
    store = build_store(settings, config)
    assistant = FinanceAssistant(api_key=config.gemini_api_key, model_name=config.model_name)
    app = create_app(store, assistant)

    logger.info(f"{settings.app_name} API starting on {host or settings.api_host}:{port or settings.api_port}")
    uvicorn.run(app, host=host or settings.api_host, port=port or settings.api_port)


def main():
    """Main entry point for FinanceAI."""
    parser = argparse.ArgumentParser(description="FinanceAI personal finance service")
    parser.add_argument(
        "command",
        nargs="?",
        choices=["serve", "list", "summary", "clear"],
        default="serve",
        help="Command to execute (default: serve)"
    )
    parser.add_argument(
        "--user",
        help="User ID (for list, summary and clear commands)"
    )
    parser.add_argument("--host", help="Bind address for serve")
    parser.add_argument("--port", type=int, help="Port for serve")

    args = parser.parse_args()
    settings = get_settings()

    if args.command != "serve" and not args.user:
        parser.error(f"--user is required for {args.command}")

    try:
        if args.command == "serve":
            serve_command(settings, args.host, args.port)
            return

        set_user_context(args.user)
        config = ConfigManager().load_config()
        store = build_store(settings, config)

        if args.command == "list":
            list_command(store, args.user)
        elif args.command == "summary":
            summary_command(store, args.user, settings)
        elif args.command == "clear":
            clear_command(store, args.user)
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    except FinanceAIError as e:
        logger.critical(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
