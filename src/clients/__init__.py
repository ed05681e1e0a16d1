"""HTTP clients for the brokerage balance source and the budgeting ledger."""

from clients.trading212_client import Trading212APIError, Trading212Client
from clients.ynab_client import YnabAPIError, YnabClient

__all__ = ["Trading212APIError", "Trading212Client", "YnabAPIError", "YnabClient"]
