from typing import Iterable, Protocol, Sequence, runtime_checkable

import pandas as pd

OHLCV_COLUMNS = ("open", "high", "low", "close", "volume")


@runtime_checkable
class Indicator(Protocol):
    name: str
    lookback: int

    @property
    def columns(self) -> Sequence[str]:
        """Names of the columns ``compute`` produces."""
        ...

    def compute(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        """
        Computes the indicator values.

        Args:
            ohlcv: A DataFrame containing OHLCV data.

        Returns:
            A DataFrame with the computed indicator values. The index must match the input index.
            Rows inside the warm-up window hold NaN.
        """
        ...


def validate_ohlcv(df: pd.DataFrame, required: Iterable[str] = OHLCV_COLUMNS) -> None:
    """
    Validates that the input DataFrame contains the required OHLCV columns.

    Args:
        df: Input DataFrame.
        required: Column names that must be present.

    Raises:
        ValueError: If required columns are missing.
    """
    required_columns = set(required)
    if not required_columns.issubset(df.columns):
        missing = required_columns - set(df.columns)
        raise ValueError(f"Input DataFrame missing required columns: {sorted(missing)}")
