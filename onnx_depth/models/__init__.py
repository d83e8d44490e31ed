from .variants import ModelConfig, ModelType, find_model_path

__all__ = ['ModelConfig', 'ModelType', 'find_model_path']
