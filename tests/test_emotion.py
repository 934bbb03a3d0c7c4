"""Tests for avatar_core/emotion.py — keyword scoring, heuristics, facial blends, voice heuristic."""
import json
import math
import unittest

import numpy as np

from avatar_core.emotion import (
    EmotionAnalyzer,
    EmotionCategory as E,
    FacialBlendSet,
    analyze_voice_audio,
)


class TestAnalyzeTextEmpty(unittest.TestCase):
    def setUp(self):
        self.analyzer = EmotionAnalyzer()

    def assert_zero_neutral(self, result):
        self.assertEqual(result.primary, E.NEUTRAL)
        self.assertIsNone(result.secondary)
        self.assertEqual(result.confidence, 0)
        self.assertEqual(result.intensity, 0)
        self.assertTrue(all(v == 0 for v in result.facial_expressions.to_dict().values()))

    def test_empty_string(self):
        self.assert_zero_neutral(self.analyzer.analyze_text(""))

    def test_whitespace_only(self):
        self.assert_zero_neutral(self.analyzer.analyze_text("  \n\t　"))

    def test_no_matches(self):
        self.assert_zero_neutral(self.analyzer.analyze_text("りんごを買った"))


class TestAnalyzeText(unittest.TestCase):
    def setUp(self):
        self.analyzer = EmotionAnalyzer()

    def test_thanks_with_exclamation(self):
        result = self.analyzer.analyze_text("ありがとう！")
        self.assertEqual(result.primary, E.HAPPY)
        # excited gets 0.5 from the trailing ！, below 60% of 1.0
        self.assertIsNone(result.secondary)
        self.assertAlmostEqual(result.confidence, 1 / 3)
        self.assertAlmostEqual(result.intensity, 0.5)
        face = result.facial_expressions
        self.assertAlmostEqual(face.mouth_smile, 0.4)
        self.assertAlmostEqual(face.eye_blink_left, 0.15)
        self.assertAlmostEqual(face.eye_blink_right, 0.15)
        self.assertEqual(face.mouth_open, 0)

    def test_question_pushes_confused_and_thinking(self):
        result = self.analyzer.analyze_text("どうしよう？")
        self.assertIn(result.primary, {E.CONFUSED, E.THINKING})
        self.assertEqual(result.primary, E.CONFUSED)
        self.assertEqual(result.secondary, E.THINKING)
        self.assertAlmostEqual(result.confidence, 0.5)
        self.assertAlmostEqual(result.intensity, 0.75)
        self.assertAlmostEqual(result.facial_expressions.eyebrow_up, 0.375)
        self.assertAlmostEqual(result.facial_expressions.mouth_smile, -0.15)

    def test_half_width_question_mark(self):
        scores = self.analyzer.score("なに?")
        self.assertAlmostEqual(scores[E.CONFUSED], 0.5)
        self.assertAlmostEqual(scores[E.THINKING], 0.3)

    def test_question_mark_only_counts_at_end(self):
        scores = self.analyzer.score("なに?ほげ")
        self.assertEqual(scores[E.THINKING], 0)

    def test_half_width_exclamation(self):
        scores = self.analyzer.score("よし!")
        self.assertAlmostEqual(scores[E.EXCITED], 0.5)
        self.assertAlmostEqual(scores[E.SURPRISED], 0.3)

    def test_uncertainty_marker(self):
        scores = self.analyzer.score("雨が降るでしょう")
        self.assertAlmostEqual(scores[E.THINKING], 0.4)

    def test_emphasis_amplifies_once(self):
        # two intensifiers, one multiplication
        scores = self.analyzer.score("とてもすごく嬉しい")
        self.assertAlmostEqual(scores[E.HAPPY], 1.5)
        self.assertEqual(scores[E.SAD], 0)

    def test_emphasis_skips_neutral(self):
        scores = self.analyzer.score("とてもなるほど")
        self.assertEqual(scores[E.NEUTRAL], 1)

    def test_emphasis_runs_after_question_and_uncertainty(self):
        # '？' keyword + question bonus, then ×1.5; 'かなり' is also an uncertainty hit via 'かな'
        scores = self.analyzer.score("かなり？")
        self.assertAlmostEqual(scores[E.CONFUSED], 2.25)
        self.assertAlmostEqual(scores[E.THINKING], (0.3 + 0.4) * 1.5)

    def test_long_text_bonus(self):
        result = self.analyzer.analyze_text("あ" * 101)
        self.assertEqual(result.primary, E.EXCITED)
        self.assertAlmostEqual(result.confidence, 0.1)
        self.assertAlmostEqual(result.intensity, 0.15)

    def test_exactly_100_chars_has_no_bonus(self):
        self.assertEqual(self.analyzer.analyze_text("あ" * 100).primary, E.NEUTRAL)

    def test_substring_inside_word_counts(self):
        scores = self.analyzer.score("笑顔")
        self.assertEqual(scores[E.HAPPY], 1)

    def test_non_overlapping_counts(self):
        result = self.analyzer.analyze_text("wwwwww")
        self.assertEqual(result.primary, E.HAPPY)
        self.assertAlmostEqual(result.confidence, 2 / 3)
        self.assertEqual(result.intensity, 1.0)
        self.assertAlmostEqual(result.facial_expressions.mouth_smile, 0.8)

    def test_scores_capped_at_one(self):
        result = self.analyzer.analyze_text("嬉しい嬉しい嬉しい嬉しい嬉しい")
        self.assertEqual(result.confidence, 1.0)
        self.assertEqual(result.intensity, 1.0)

    def test_neutral_keyword_gives_zero_face(self):
        result = self.analyzer.analyze_text("はい")
        self.assertEqual(result.primary, E.NEUTRAL)
        self.assertAlmostEqual(result.confidence, 1 / 3)
        self.assertTrue(all(v == 0 for v in result.facial_expressions.to_dict().values()))

    def test_results_are_bounded_and_finite(self):
        texts = [
            "", "？", "！", "とても最悪！むかつく！", "わからない？どういうこと？",
            "やばい" * 50, "🎉✨🎊" * 10, "本当にすごい！！", "x" * 500,
        ]
        for text in texts:
            result = self.analyzer.analyze_text(text)
            self.assertGreaterEqual(result.confidence, 0)
            self.assertLessEqual(result.confidence, 1)
            self.assertGreaterEqual(result.intensity, 0)
            self.assertLessEqual(result.intensity, 1)
            face = result.facial_expressions.to_dict()
            self.assertEqual(len(face), 6)
            self.assertTrue(all(math.isfinite(v) for v in face.values()))

    def test_deterministic(self):
        text = "今日はとても楽しいけど、ちょっと疲れたかも？"
        self.assertEqual(self.analyzer.analyze_text(text), self.analyzer.analyze_text(text))

    def test_to_dict_is_json_ready(self):
        data = self.analyzer.analyze_text("どうしよう？").to_dict()
        self.assertEqual(data["primary"], "confused")
        self.assertEqual(data["secondary"], "thinking")
        self.assertEqual(
            set(data["facialExpressions"]),
            {"eyeBlinkLeft", "eyeBlinkRight", "mouthOpen", "mouthSmile", "eyebrowUp", "cheekPuff"},
        )
        json.dumps(data, ensure_ascii=False)

    def test_to_dict_without_secondary(self):
        self.assertIsNone(self.analyzer.analyze_text("").to_dict()["secondary"])


class TestCustomKeywords(unittest.TestCase):
    def test_keywords_are_literal(self):
        analyzer = EmotionAnalyzer(keywords={E.HAPPY: ["a.c", "(x"]})
        self.assertEqual(analyzer.analyze_text("abc").primary, E.NEUTRAL)
        self.assertEqual(analyzer.analyze_text("a.c").primary, E.HAPPY)
        self.assertEqual(analyzer.analyze_text("(x").primary, E.HAPPY)

    def test_case_sensitive(self):
        analyzer = EmotionAnalyzer(keywords={E.HAPPY: ["Good"]})
        self.assertEqual(analyzer.analyze_text("good").primary, E.NEUTRAL)

    def test_ties_follow_declaration_order(self):
        analyzer = EmotionAnalyzer(keywords={E.SAD: ["x"], E.HAPPY: ["x"]})
        result = analyzer.analyze_text("x")
        self.assertEqual(result.primary, E.HAPPY)
        self.assertEqual(result.secondary, E.SAD)

    def test_empty_keyword_ignored(self):
        analyzer = EmotionAnalyzer(keywords={E.HAPPY: [""]})
        self.assertEqual(analyzer.analyze_text("abc").primary, E.NEUTRAL)


class TestFacialBlendSet(unittest.TestCase):
    def test_surprised_full_intensity(self):
        face = FacialBlendSet.for_emotion(E.SURPRISED, 4.0)
        self.assertAlmostEqual(face.eyebrow_up, 0.9)
        self.assertAlmostEqual(face.mouth_open, 0.6)
        self.assertEqual(face.cheek_puff, 0)

    def test_angry_is_negative(self):
        face = FacialBlendSet.for_emotion(E.ANGRY, 2.0)
        self.assertAlmostEqual(face.eyebrow_up, -0.4)
        self.assertAlmostEqual(face.mouth_smile, -0.3)

    def test_excited_half_intensity(self):
        face = FacialBlendSet.for_emotion(E.EXCITED, 1.0)
        self.assertAlmostEqual(face.mouth_open, 0.25)
        self.assertAlmostEqual(face.mouth_smile, 0.3)
        self.assertAlmostEqual(face.eyebrow_up, 0.2)


class TestAnalyzeVoiceAudio(unittest.TestCase):
    def test_loud_and_late_is_excited(self):
        self.assertEqual(analyze_voice_audio(np.full(3000, 0.9)), E.EXCITED)

    def test_loud_and_early_is_angry(self):
        self.assertEqual(analyze_voice_audio([0.9, 0.0]), E.ANGRY)

    def test_quiet_is_sad(self):
        self.assertEqual(analyze_voice_audio(np.full(100, 0.1)), E.SAD)

    def test_empty_is_sad(self):
        self.assertEqual(analyze_voice_audio([]), E.SAD)

    def test_mid_level_bright_is_happy(self):
        self.assertEqual(analyze_voice_audio(np.full(4000, 0.5)), E.HAPPY)

    def test_mid_level_is_neutral(self):
        self.assertEqual(analyze_voice_audio([0.5, -0.5]), E.NEUTRAL)

    def test_int16_pcm_is_scaled(self):
        pcm = np.full(100, 29491, dtype=np.int16)  # ~0.9
        self.assertEqual(analyze_voice_audio(pcm), E.ANGRY)

    def test_int_list_is_plain_amplitude(self):
        self.assertEqual(analyze_voice_audio([1, 0]), E.ANGRY)

    def test_int32_array_not_rescaled(self):
        self.assertEqual(analyze_voice_audio(np.array([0, 0], dtype=np.int32)), E.SAD)
        self.assertEqual(analyze_voice_audio(np.array([1, 0], dtype=np.int32)), E.ANGRY)

    def test_analyzer_delegates(self):
        self.assertEqual(EmotionAnalyzer().analyze_voice_audio([0.1]), E.SAD)


if __name__ == "__main__":
    unittest.main()
