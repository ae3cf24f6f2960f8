from __future__ import annotations

import logging
import tempfile
from typing import Iterable, Optional, Union

import pandas as pd

from .catalog import award_search_url
from .models import RouteEvaluation

logger = logging.getLogger(__name__)

COLUMNS = [
    "route_id",
    "origin",
    "destination",
    "date",
    "cash_price",
    "price_source",
    "program_id",
    "program",
    "miles",
    "fees",
    "provenance",
    "cpp",
    "net_cpp",
    "tier",
    "threshold",
    "beats",
    "bookings",
    "best",
    "award_url",
]


def value_table(
    evaluations: Iterable[RouteEvaluation], *, output: Optional[str] = None
) -> Union[pd.DataFrame, str, None]:
    """Flatten route evaluations into one row per route and program.

    Parameters
    ----------
    evaluations:
        Results of :func:`award_sniper.tracker.evaluate_route`.
    output:
        ``None``     – return ``None`` (only log the summary).
        ``"df"``     – return ``pandas.DataFrame`` with results.
        ``"csv"``    – write DataFrame to a temporary CSV and return its path.
    """
    rows = []
    for ev in evaluations:
        best = ev.best
        for val in sorted(ev.values, key=lambda v: v.cpp, reverse=True):
            rows.append(
                {
                    "route_id": ev.route.id,
                    "origin": ev.route.origin,
                    "destination": ev.route.destination,
                    "date": ev.route.date,
                    "cash_price": ev.price.price,
                    "price_source": ev.price.source,
                    "program_id": val.program.id,
                    "program": val.program.name,
                    "miles": val.quote.miles,
                    "fees": val.quote.fees,
                    "provenance": val.quote.provenance.value,
                    "cpp": val.cpp,
                    "net_cpp": val.net_cpp,
                    "tier": val.tier.tier,
                    "threshold": val.program.threshold,
                    "beats": val.beats,
                    "bookings": val.bookings,
                    "best": best is not None and best.program.id == val.program.id,
                    "award_url": award_search_url(
                        val.program,
                        ev.route.origin,
                        ev.route.destination,
                        ev.route.date,
                    ),
                }
            )

    result_df = pd.DataFrame(rows, columns=COLUMNS)

    logger.info(
        "Value table: %d rows, %d beating threshold",
        len(result_df),
        int(result_df["beats"].sum()) if not result_df.empty else 0,
    )

    if output == "df":
        return result_df
    if output == "csv":
        tmp = tempfile.NamedTemporaryFile(delete=False, suffix=".csv")
        tmp.close()
        result_df.to_csv(tmp.name, index=False)
        return tmp.name
    return None


__all__ = ["value_table", "COLUMNS"]
