"""Provider routing for LLM inference calls."""

from inference.adapters import InferenceRequest, InferenceResult, run_inference
from inference.models import AIModels

__all__ = ["InferenceRequest", "InferenceResult", "run_inference", "AIModels"]
