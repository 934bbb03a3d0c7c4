# ==============================
# File: avatar_core/emotion.py
# ==============================
from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence
import logging

import numpy as np

from .utils import clamp

log = logging.getLogger(__name__)


class EmotionCategory(Enum):
    # Declaration order doubles as the tie-break order when scores are equal
    NEUTRAL = 'neutral'
    HAPPY = 'happy'
    SAD = 'sad'
    ANGRY = 'angry'
    SURPRISED = 'surprised'
    THINKING = 'thinking'
    CONFUSED = 'confused'
    EXCITED = 'excited'


E = EmotionCategory

EMOTION_KEYWORDS: Dict[EmotionCategory, List[str]] = {
    E.HAPPY: [
        '嬉しい', '楽しい', '素晴らしい', '最高', 'ありがとう', '良い', 'いい',
        '面白い', '笑', 'www', '😊', '🎉', '素敵', '感謝', '幸せ', 'やったー',
        '成功', '達成', 'おめでとう', 'グッド', 'ナイス', 'すごい',
    ],
    E.SAD: [
        '悲しい', '辛い', '残念', 'がっかり', '落ち込む', '泣', '😢',
        '失敗', '困った', 'ダメ', '最悪', 'ショック', '涙', 'つらい',
        '寂しい', '孤独', '絶望', '心配', 'やばい',
    ],
    E.ANGRY: [
        '怒', '腹立つ', 'むかつく', 'イライラ', '許せない', '最悪', 'バカ',
        '😠', '💢', 'ふざけるな', '頭にくる', 'ストレス', 'うざい',
        '理不尽', '不満', '抗議', 'クレーム',
    ],
    E.SURPRISED: [
        '驚', 'びっくり', 'えっ', '本当', 'マジ', '信じられない', '😮',
        'すごい', 'うわー', 'おお', '予想外', '想像以上', '衝撃',
        'まさか', 'え〜', 'へー', 'わあ',
    ],
    E.THINKING: [
        '考え', '思う', 'う〜ん', 'そうですね', 'どうしよう', '悩', '🤔',
        'もしかして', 'なぜ', 'なんで', '理由', '検討', '判断', 'わからない',
        '迷う', '複雑', '難しい', 'やや', 'ちょっと',
    ],
    E.CONFUSED: [
        'わからない', '混乱', '理解できない', '意味不明', '？', '❓',
        'はて', '不明', 'さっぱり', '謎', '疑問', '困惑', 'どういうこと',
        'なんだろう', 'よくわからん',
    ],
    E.EXCITED: [
        '興奮', 'わくわく', 'ドキドキ', '期待', '楽しみ', '🎊', '✨',
        'すげー', 'やばい', 'テンション', '盛り上がる', 'ハイ',
        'エネルギッシュ', '活気', 'パワー',
    ],
    E.NEUTRAL: ['そうですね', 'はい', 'なるほど', 'そう', 'ふむ'],
}

QUESTION_MARKS = ('？', '?')
EXCLAMATION_MARKS = ('！', '!')
UNCERTAINTY_MARKERS = ('かも', 'かな', 'でしょう', 'と思う', '気がする')
EMPHASIS_MARKERS = ('とても', 'すごく', 'めちゃくちゃ', '本当に', 'かなり')

LONG_TEXT_CHARS = 100
SECONDARY_RATIO = 0.6
# Empirical normalisation divisors for the raw top score
CONFIDENCE_DIVISOR = 3.0
INTENSITY_DIVISOR = 2.0

# (eyeBlinkLeft, eyeBlinkRight, mouthOpen, mouthSmile, eyebrowUp, cheekPuff) at full intensity
FACIAL_BLEND_TABLE: Dict[EmotionCategory, tuple] = {
    E.HAPPY: (0.3, 0.3, 0.0, 0.8, 0.0, 0.0),
    E.SAD: (0.4, 0.4, 0.0, -0.5, 0.0, 0.0),
    E.SURPRISED: (0.0, 0.0, 0.6, 0.0, 0.9, 0.0),
    E.ANGRY: (0.0, 0.0, 0.0, -0.3, -0.4, 0.0),
    E.THINKING: (0.0, 0.0, 0.0, 0.2, 0.3, 0.0),
    E.EXCITED: (0.0, 0.0, 0.5, 0.6, 0.4, 0.0),
    E.CONFUSED: (0.0, 0.0, 0.0, -0.2, 0.5, 0.0),
    E.NEUTRAL: (0.0, 0.0, 0.0, 0.0, 0.0, 0.0),
}


@dataclass
class FacialBlendSet:
    eye_blink_left: float = 0.0
    eye_blink_right: float = 0.0
    mouth_open: float = 0.0
    mouth_smile: float = 0.0
    eyebrow_up: float = 0.0
    cheek_puff: float = 0.0

    @classmethod
    def for_emotion(cls, emotion: EmotionCategory, raw_score: float) -> 'FacialBlendSet':
        factor = clamp(raw_score / INTENSITY_DIVISOR, 0.0, 1.0)
        return cls(*(w * factor for w in FACIAL_BLEND_TABLE[emotion]))

    def to_dict(self) -> Dict[str, float]:
        return {
            'eyeBlinkLeft': self.eye_blink_left,
            'eyeBlinkRight': self.eye_blink_right,
            'mouthOpen': self.mouth_open,
            'mouthSmile': self.mouth_smile,
            'eyebrowUp': self.eyebrow_up,
            'cheekPuff': self.cheek_puff,
        }


@dataclass
class EmotionAnalysis:
    primary: EmotionCategory
    confidence: float
    intensity: float
    secondary: Optional[EmotionCategory] = None
    facial_expressions: FacialBlendSet = field(default_factory=FacialBlendSet)

    def to_dict(self) -> Dict[str, object]:
        """JSON-ready form using the field names the avatar front end reads."""
        return {
            'primary': self.primary.value,
            'confidence': self.confidence,
            'secondary': self.secondary.value if self.secondary else None,
            'intensity': self.intensity,
            'facialExpressions': self.facial_expressions.to_dict(),
        }


def _contains_any(text: str, markers: Iterable[str]) -> bool:
    return any(m in text for m in markers)


class EmotionAnalyzer:
    """Keyword and sentence-shape emotion classifier for avatar expressions.

    Scores text against per-emotion keyword lists, adjusts the scores with a few
    structural heuristics (trailing ?/!, hedging, intensifiers, length) and maps
    the winning emotion to facial blend weights. Stateless between calls.
    """

    def __init__(self, keywords: Dict[EmotionCategory, List[str]] | None = None):
        table = EMOTION_KEYWORDS if keywords is None else keywords
        # Empty keywords would count every gap between characters
        self.keywords: Dict[EmotionCategory, tuple] = {
            emo: tuple(k for k in table.get(emo, ()) if k) for emo in EmotionCategory
        }

    def score(self, text: str) -> Dict[EmotionCategory, float]:
        """Raw per-emotion scores after every heuristic, in declaration order."""
        scores: Dict[EmotionCategory, float] = {emo: 0.0 for emo in EmotionCategory}

        for emo, words in self.keywords.items():
            for word in words:
                scores[emo] += text.count(word)

        if text.endswith(QUESTION_MARKS):
            scores[E.CONFUSED] += 0.5
            scores[E.THINKING] += 0.3

        if text.endswith(EXCLAMATION_MARKS):
            scores[E.EXCITED] += 0.5
            scores[E.SURPRISED] += 0.3

        if _contains_any(text, UNCERTAINTY_MARKERS):
            scores[E.THINKING] += 0.4

        # Amplifies whatever has scored so far, once
        if _contains_any(text, EMPHASIS_MARKERS):
            for emo in scores:
                if emo is not E.NEUTRAL and scores[emo] > 0:
                    scores[emo] *= 1.5

        if len(text) > LONG_TEXT_CHARS:
            scores[E.EXCITED] += 0.3

        return scores

    def analyze_text(self, text: str) -> EmotionAnalysis:
        text = text or ''
        if not text.strip():
            return EmotionAnalysis(E.NEUTRAL, 0.0, 0.0)

        scores = self.score(text)
        # sorted() is stable, so equal scores keep declaration order
        ranked = sorted(scores.items(), key=lambda kv: kv[1], reverse=True)
        top, max_score = ranked[0]
        if max_score <= 0:
            return EmotionAnalysis(E.NEUTRAL, 0.0, 0.0)

        runner_up, second_score = ranked[1]
        secondary = None
        if second_score > 0 and second_score > max_score * SECONDARY_RATIO:
            secondary = runner_up

        result = EmotionAnalysis(
            primary=top,
            confidence=clamp(max_score / CONFIDENCE_DIVISOR),
            intensity=clamp(max_score / INTENSITY_DIVISOR),
            secondary=secondary,
            facial_expressions=FacialBlendSet.for_emotion(top, max_score),
        )
        log.debug('Emotion %s (secondary=%s, score=%.2f) for %d chars',
                  top.value, secondary.value if secondary else None, max_score, len(text))
        return result

    def analyze_voice_audio(self, samples: Sequence[float] | np.ndarray) -> EmotionCategory:
        return analyze_voice_audio(samples)


def analyze_voice_audio(samples: Sequence[float] | np.ndarray) -> EmotionCategory:
    """Coarse emotion guess from a block of audio samples.

    Uses the peak amplitude and an amplitude-weighted sample-index average
    ("avg_freq"). The index average is only a rough brightness proxy, there is
    no spectral analysis. int16 PCM is scaled to [-1, 1] first.
    """
    arr = np.asarray(samples)
    if arr.dtype == np.int16:
        arr = arr.astype(np.float32) / 32768.0
    amp = np.abs(arr.astype(np.float64).ravel())
    if amp.size == 0:
        peak, avg_freq = 0.0, 0.0
    else:
        peak = float(amp.max())
        avg_freq = float(np.dot(amp, np.arange(amp.size)) / amp.size)

    if peak > 0.8:
        return E.EXCITED if avg_freq > 1000 else E.ANGRY
    if peak < 0.2:
        return E.SAD
    if avg_freq > 800:
        return E.HAPPY
    return E.NEUTRAL
