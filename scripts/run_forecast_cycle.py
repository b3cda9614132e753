import sys
from datetime import datetime

import pandas as pd

from common.settings import configure_logging
from forecasting.history import load_samples_csv
from forecasting.policy import default_forecast_policy
from forecasting.predictor import predict_multi_zone_demand


def run_forecast(history_file="demand_history.csv", hours_ahead=1):
    configure_logging()
    samples = load_samples_csv(history_file)
    print(f"Loaded {len(samples)} demand samples from '{history_file}'.")

    results = predict_multi_zone_demand(
        samples,
        hours_ahead=hours_ahead,
        now=datetime.now(),
        policy=default_forecast_policy(),
    )

    table = pd.DataFrame(
        [
            {
                "zone": result.zone,
                "current": result.current_demand,
                "predicted": result.predicted_demand,
                "trend": result.trend.value,
                "confidence": result.confidence,
                "anomaly": result.anomaly,
                "baseline": result.insufficient_data,
            }
            for result in results
        ]
    )
    print(f"\n--- Forecast {hours_ahead}h ahead ---")
    print(table.to_string(index=False))

    anomalies = [result.zone for result in results if result.anomaly]
    if anomalies:
        print(f"\n⚠️  Unusual demand right now in: {', '.join(anomalies)}")


if __name__ == "__main__":
    path = sys.argv[1] if len(sys.argv) > 1 else "demand_history.csv"
    run_forecast(path)
