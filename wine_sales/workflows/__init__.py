"""Workflows module."""
from .history import TransactionHistoryWorkflow

__all__ = ['TransactionHistoryWorkflow']
