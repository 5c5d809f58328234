"""History export writers."""

from pathlib import Path

import pandas as pd

from tradelens.services.analyzer.history import HistorySnapshot

HISTORY_COLUMNS = ["timestamp", "close", "asset", "cash"]


def history_frame(snapshot: HistorySnapshot) -> pd.DataFrame:
    """
    One row per market observation with the aligned portfolio values.

    Several portfolio observations can share a market timestamp; the last
    one wins. Rows with no portfolio observation yet have NaN asset/cash.
    """
    market = pd.DataFrame(list(snapshot.market), columns=["timestamp", "close"])
    asset = pd.DataFrame(list(snapshot.asset), columns=["timestamp", "asset"]).drop_duplicates("timestamp", keep="last")
    cash = pd.DataFrame(list(snapshot.cash), columns=["timestamp", "cash"]).drop_duplicates("timestamp", keep="last")

    frame = market.merge(asset, on="timestamp", how="left").merge(cash, on="timestamp", how="left")
    return frame[HISTORY_COLUMNS]


def write_history_csv(snapshot: HistorySnapshot, path: str | Path) -> Path:
    """
    Write the aligned histories to CSV.

    Args:
        snapshot: Copied histories
        path: Destination file (parent directories are created)

    Returns:
        Path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    history_frame(snapshot).to_csv(path, index=False, columns=HISTORY_COLUMNS)
    return path
