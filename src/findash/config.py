"""Default configuration values for findash."""

from __future__ import annotations

from typing import Final

# The server rejects ``limit`` values above this cap.  The probe request for a
# new filter always asks for a full capped page so the reported ``total`` is
# accurate and small datasets arrive in a single response.
SERVER_MAX_PAGE_SIZE: Final[int] = 500

# Datasets up to this size are pulled in one request and never paginate.
FULL_LOAD_THRESHOLD: Final[int] = 500

# Steady-state page size for large datasets.  Deliberately smaller than the
# server cap: a 500 row page is fine once but too slow to repeat on scroll.
INCREMENTAL_PAGE_SIZE: Final[int] = 100

# Floor used for empty datasets so we never issue a zero-sized request.
MIN_PAGE_SIZE: Final[int] = 10

# A scroll-triggered load fires once the rendered range ends within this many
# rows of the last resident record.
SCROLL_LOOKAHEAD: Final[int] = 10

# Autocomplete shows at most this many suggestions and only after the user
# typed this many characters.
SUGGESTION_LIMIT: Final[int] = 10
SUGGESTION_MIN_CHARS: Final[int] = 2

REQUEST_TIMEOUT_SEC: Final[float] = 30.0

DEFAULT_SORT_BY: Final[str] = "date"
DEFAULT_SORT_ORDER: Final[str] = "desc"

TRANSACTIONS_ENDPOINT: Final[str] = "transactions"
