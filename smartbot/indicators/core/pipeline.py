import logging
from dataclasses import dataclass
from typing import List, Optional

import pandas as pd

from .interfaces import Indicator, validate_ohlcv

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeatureSpec:
    base: Indicator
    alias: Optional[str] = None

    @property
    def name(self) -> str:
        if self.alias:
            return self.alias
        return self.base.name


@dataclass(frozen=True)
class FeaturePipeline:
    specs: List[FeatureSpec]

    def transform(self, ohlcv: pd.DataFrame) -> pd.DataFrame:
        """
        Computes features based on the pipeline specifications.

        Specs sharing a name are computed once; strategies that read the
        same indicator therefore share one column.

        Args:
            ohlcv: Input DataFrame with OHLCV data.

        Returns:
            DataFrame with all computed features, sorted alphabetically by column name.
        """
        validate_ohlcv(ohlcv)

        features = []
        seen = set()
        for spec in self.specs:
            if spec.name in seen:
                continue
            seen.add(spec.name)

            df_feature = spec.base.compute(ohlcv)

            # Single-column indicators take the spec name (alias aware)
            if len(df_feature.columns) == 1:
                df_feature.columns = [spec.name]

            features.append(df_feature)

        if not features:
            return pd.DataFrame(index=ohlcv.index)

        X = pd.concat(features, axis=1)
        X = X.loc[:, ~X.columns.duplicated()]
        X = X.reindex(sorted(X.columns), axis=1)
        log.debug("Computed %d feature columns from %d specs", X.shape[1], len(seen))
        return X

    @property
    def max_lookback(self) -> int:
        return max((spec.base.lookback for spec in self.specs), default=0)
