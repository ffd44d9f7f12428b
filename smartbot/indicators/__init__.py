from .core.interfaces import Indicator, validate_ohlcv
from .core.pipeline import FeaturePipeline, FeatureSpec
from .core.smoothing import SmoothingMode, smooth
from .impl.ma import SMA, sma
from .impl.ema import EMA, ema
from .impl.rsi import RSI, rsi
from .impl.macd import MACD, macd
from .impl.atr import ATR, atr, true_range
from .impl.adx import ADX, adx
from .impl.bands import BollingerBands, DonchianChannel, KeltnerChannel, bollinger, donchian, keltner
from .impl.oscillators import CCI, MFI, StochRSI, cci, mfi, stoch_rsi
from .impl.pivots import PivotPoints, pivot_points
from .impl.volume import OBV, VWAP, VolumeRatio, obv, volume_ratio, vwap
from .impl.trend import Ichimoku, ParabolicSAR, ichimoku, parabolic_sar
from .impl.candles import CandleFlags, CandlePattern, candle_flags, recognize_patterns
from .analysis.regime import MarketRegime, RegimeAnalysis, detect_regime
from .analysis.timeframes import TimeframeAlignment, TrendDirection, analyze_timeframes
from .analysis.levels import PriceLevel, find_levels, nearest_resistance, nearest_support
from .analysis.volume import VolumeAnalysis, analyze_volume

__all__ = [
    "Indicator",
    "validate_ohlcv",
    "FeaturePipeline",
    "FeatureSpec",
    "SmoothingMode",
    "smooth",
    "SMA",
    "sma",
    "EMA",
    "ema",
    "RSI",
    "rsi",
    "MACD",
    "macd",
    "ATR",
    "atr",
    "true_range",
    "ADX",
    "adx",
    "BollingerBands",
    "DonchianChannel",
    "KeltnerChannel",
    "bollinger",
    "donchian",
    "keltner",
    "CCI",
    "MFI",
    "StochRSI",
    "cci",
    "mfi",
    "stoch_rsi",
    "PivotPoints",
    "pivot_points",
    "OBV",
    "VWAP",
    "VolumeRatio",
    "obv",
    "volume_ratio",
    "vwap",
    "Ichimoku",
    "ParabolicSAR",
    "ichimoku",
    "parabolic_sar",
    "CandleFlags",
    "CandlePattern",
    "candle_flags",
    "recognize_patterns",
    "MarketRegime",
    "RegimeAnalysis",
    "detect_regime",
    "TimeframeAlignment",
    "TrendDirection",
    "analyze_timeframes",
    "PriceLevel",
    "find_levels",
    "nearest_resistance",
    "nearest_support",
    "VolumeAnalysis",
    "analyze_volume",
]
