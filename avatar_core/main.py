# ==============================
# File: avatar_core/main.py
# ==============================
import argparse
import json
import logging
import sys
import wave
from typing import List, Optional

import numpy as np

from .utils import setup_logging
from .emotion import EmotionAnalyzer
from .reading import SAMPLE_SENTENCES, ReadingNormalizer, get_normalizer

log = logging.getLogger(__name__)


def read_wav_mono(path: str) -> np.ndarray:
    """Load a 16-bit WAV file as int16 samples; multi-channel audio keeps the first channel."""
    with wave.open(path, 'rb') as wf:
        if wf.getsampwidth() != 2:
            raise wave.Error(f"expected 16-bit PCM, got {wf.getsampwidth() * 8}-bit")
        channels = wf.getnchannels()
        pcm = np.frombuffer(wf.readframes(wf.getnframes()), dtype=np.int16)
    if channels > 1:
        pcm = pcm[::channels]
    return pcm


def _dump(obj) -> str:
    return json.dumps(obj, ensure_ascii=False, indent=2)


class App:
    def __init__(self, analyzer: Optional[EmotionAnalyzer] = None,
                 normalizer: Optional[ReadingNormalizer] = None, out=None):
        self.analyzer = EmotionAnalyzer() if analyzer is None else analyzer
        self.normalizer = get_normalizer() if normalizer is None else normalizer
        self.out = sys.stdout if out is None else out

    def _print(self, text: str):
        print(text, file=self.out)

    # ── Commands ─────────────────────────────────────────────────────────────
    def analyze(self, text: str) -> int:
        self._print(_dump(self.analyzer.analyze_text(text).to_dict()))
        return 0

    def voice(self, path: str) -> int:
        try:
            samples = read_wav_mono(path)
        except (wave.Error, OSError, EOFError) as e:
            log.warning("Could not read WAV %s: %s", path, e)
            print(f"Could not read {path}: {e}", file=sys.stderr)
            return 1
        self._print(self.analyzer.analyze_voice_audio(samples).value)
        return 0

    def read(self, text: str) -> int:
        self._print(self.normalizer.convert_kanji_to_reading(text))
        return 0

    def tts(self, text: str, natural: bool = False) -> int:
        self._print(self.normalizer.prepare(text, 'natural' if natural else None))
        return 0

    def add(self, fragment: str, reading: str) -> int:
        self.normalizer.add_reading(fragment, reading)
        self._print(f"{fragment} -> {reading}")
        return 0

    def dictionary(self) -> int:
        self._print(_dump(self.normalizer.get_dictionary_snapshot()))
        return 0

    def demo(self) -> int:
        for i, text in enumerate(SAMPLE_SENTENCES, 1):
            emo = self.analyzer.analyze_text(text)
            self._print(f"{i}. {text}")
            self._print(f"   TTS: {self.normalizer.optimize_for_tts(text)}")
            self._print(f"   emotion: {emo.primary.value} ({emo.confidence:.2f})")
        return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog='avatar-core', description='Avatar emotion and TTS text tools')
    p.add_argument('--log-level', default=None, help='overrides LOG_LEVEL')
    sub = p.add_subparsers(dest='command', required=True)

    s = sub.add_parser('analyze', help='emotion analysis of a text as JSON')
    s.add_argument('text')
    s = sub.add_parser('voice', help='coarse emotion of a 16-bit WAV file')
    s.add_argument('path')
    s = sub.add_parser('read', help='replace kanji with readings')
    s.add_argument('text')
    s = sub.add_parser('tts', help='text prepared for speech synthesis')
    s.add_argument('text')
    s.add_argument('--natural', action='store_true', help='collapse whitespace instead of removing it')
    s = sub.add_parser('add', help='add a dictionary reading')
    s.add_argument('fragment')
    s.add_argument('reading')
    sub.add_parser('dict', help='print the reading dictionary')
    sub.add_parser('demo', help='run the sample sentences')
    return p


def main(argv: Optional[List[str]] = None, app: Optional[App] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)
    app = app or App()
    log.debug("Running command %s", args.command)
    if args.command == 'analyze':
        return app.analyze(args.text)
    if args.command == 'voice':
        return app.voice(args.path)
    if args.command == 'read':
        return app.read(args.text)
    if args.command == 'tts':
        return app.tts(args.text, natural=args.natural)
    if args.command == 'add':
        return app.add(args.fragment, args.reading)
    if args.command == 'dict':
        return app.dictionary()
    return app.demo()


if __name__ == "__main__":
    sys.exit(main())
