# ABOUTME: AI integration module for a local Ollama model service.
# ABOUTME: Provides the Ollama client and the analysis generation service.

from legis_track.ai.ollama import OllamaClient
from legis_track.ai.service import AiAnalysisService

__all__ = ["AiAnalysisService", "OllamaClient"]
