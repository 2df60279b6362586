"""BMI, smoking and prostate-cancer mortality analysis workflow."""

__version__ = "0.1.0"
