"""Utility functions for payrollkit."""

from payrollkit.utils.date_parser import parse_date, parse_period
from payrollkit.utils.amount_parser import format_amount, parse_amount

__all__ = ["parse_date", "parse_period", "parse_amount", "format_amount"]
