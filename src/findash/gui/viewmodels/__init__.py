from .signal import Signal, ObservableProperty
from .base import BaseViewModel
from .transaction_list_viewmodel import TransactionListViewModel

__all__ = [
    "BaseViewModel",
    "ObservableProperty",
    "Signal",
    "TransactionListViewModel",
]
