from .model_trainer import MLPipelineResult, ModelTrainer, STAGES

__all__ = ["MLPipelineResult", "ModelTrainer", "STAGES"]
