"""
Demand forecasting package.

Public API:
- predict_zone_demand / predict_multi_zone_demand
- detect_anomaly
- DemandForecastService (periodic recomputation against a store)
- DemandSample, ForecastResult, Trend, ForecastPolicy
"""

from .models import DemandSample, ForecastResult, Trend
from .policy import ForecastPolicy, default_forecast_policy, forecast_policy_from_settings
from .anomaly import detect_anomaly
from .predictor import predict_zone_demand, predict_multi_zone_demand
from .history import demand_samples_from_rides, load_samples_csv, save_samples_csv
from .synthetic import generate_realistic_data
from .service import DemandForecastService

__all__ = [
    "DemandSample",
    "ForecastResult",
    "Trend",
    "ForecastPolicy",
    "default_forecast_policy",
    "forecast_policy_from_settings",
    "detect_anomaly",
    "predict_zone_demand",
    "predict_multi_zone_demand",
    "demand_samples_from_rides",
    "load_samples_csv",
    "save_samples_csv",
    "generate_realistic_data",
    "DemandForecastService",
]
