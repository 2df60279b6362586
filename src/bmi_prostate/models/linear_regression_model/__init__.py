from .model_trainer import LinearModelReport, ModelTrainer

__all__ = ["LinearModelReport", "ModelTrainer"]
