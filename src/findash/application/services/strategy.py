"""Dataset size analyzer.

Maps a server-reported ``total`` to a loading strategy and page size.  Small
datasets are fetched in one request and never pay for pagination (spinners,
scroll fetches); large ones are paged with a steady-state size well below the
server cap that the probe request uses.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from findash.domain.models.pagination import LoadingStrategy
from findash.settings.schema import LoaderSettings

_DEFAULT_SETTINGS = LoaderSettings()


@dataclass(frozen=True)
class StrategyDecision:
    strategy: LoadingStrategy
    page_size: int

    @property
    def is_incremental(self) -> bool:
        return self.strategy is LoadingStrategy.INCREMENTAL


def choose_strategy(total: int, settings: Optional[LoaderSettings] = None) -> StrategyDecision:
    """Return the loading strategy and page size for a dataset of *total* rows."""
    if total < 0:
        raise ValueError(f"total must be non-negative, got {total}")
    settings = settings or _DEFAULT_SETTINGS

    if total == 0:
        return StrategyDecision(LoadingStrategy.FULL_LOAD, settings.min_page_size)
    if total <= settings.full_load_threshold:
        # Round up to the server cap so one request always covers the dataset.
        return StrategyDecision(LoadingStrategy.FULL_LOAD, settings.server_max_page_size)
    return StrategyDecision(LoadingStrategy.INCREMENTAL, settings.incremental_page_size)


def has_drifted(expected_total: int, reported_total: int) -> bool:
    """Return ``True`` when the server total no longer matches the mirror.

    The mirror accounts for every reconciled create/delete, so any other
    difference means the collection changed remotely and the caller should
    re-probe rather than page past a wrong ``total_pages``.
    """
    return expected_total != reported_total
