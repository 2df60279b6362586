# src/bmi_prostate/utils/env.py
from dotenv import load_dotenv
from pathlib import Path
import os

def load_env():
    """
    Load environment variables from .env (when present) and return
    the settings the workflow reads.
    """
    dotenv_path = Path(".") / ".env"
    if dotenv_path.exists():
        load_dotenv(dotenv_path)
        print("[INFO] Loaded .env file.")
    else:
        print("[WARN] No .env found, using system environment variables.")

    return {
        "ENV": os.getenv("ENV", "local"),
        "EXPERIMENT_NAME": os.getenv("EXPERIMENT_NAME", "bmi-prostate"),
        "MLFLOW_TRACKING_URI": os.getenv("MLFLOW_TRACKING_URI"),
        "SEED": os.getenv("SEED"),
        "REPORTS_DIR": os.getenv("REPORTS_DIR", "reports"),
    }
