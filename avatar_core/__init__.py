"""
Emotion and speech-text core for the talking avatar.
"""

from .emotion import EmotionAnalysis, EmotionAnalyzer, EmotionCategory, FacialBlendSet, analyze_voice_audio
from .reading import JsonReadingStore, ReadingNormalizer, get_normalizer

__all__ = [
    "EmotionAnalysis", "EmotionAnalyzer", "EmotionCategory", "FacialBlendSet", "analyze_voice_audio",
    "JsonReadingStore", "ReadingNormalizer", "get_normalizer",
]
