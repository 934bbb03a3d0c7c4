# ==============================
# File: avatar_core/reading.py
# ==============================
from __future__ import annotations
import json
import logging
import re
import threading
from pathlib import Path
from typing import Callable, Dict, Mapping, NamedTuple, Optional, Tuple

from .config import CFG

log = logging.getLogger(__name__)

SEED_READINGS: Dict[str, str] = {
    # Place names
    '桑名': 'くわな',
    '名古屋': 'なごや',
    '大阪': 'おおさか',
    '東京': 'とうきょう',
    '京都': 'きょうと',
    '広島': 'ひろしま',
    '福岡': 'ふくおか',
    '仙台': 'せんだい',
    '札幌': 'さっぽろ',

    # Common surnames
    '田中': 'たなか',
    '佐藤': 'さとう',
    '高橋': 'たかはし',
    '小林': 'こばやし',
    '加藤': 'かとう',
    '山田': 'やまだ',
    '松本': 'まつもと',
    '井上': 'いのうえ',

    # Everyday words
    '今日': 'きょう',
    '明日': 'あした',
    '昨日': 'きのう',
    '今年': 'ことし',
    '来年': 'らいねん',
    '先生': 'せんせい',
    '学生': 'がくせい',
    '会社': 'かいしゃ',
    '仕事': 'しごと',
    '時間': 'じかん',
    '場所': 'ばしょ',
    '電話': 'でんわ',
    '写真': 'しゃしん',
    '音楽': 'おんがく',
    '映画': 'えいが',
    '料理': 'りょうり',
    '天気': 'てんき',
    '気持': 'きもち',
    '気分': 'きぶん',
    '元気': 'げんき',
    '健康': 'けんこう',
    '安全': 'あんぜん',
    '大切': 'たいせつ',
    '重要': 'じゅうよう',
    '必要': 'ひつよう',
    '便利': 'べんり',
    '簡単': 'かんたん',
    '困難': 'こんなん',
    '問題': 'もんだい',
    '解決': 'かいけつ',
    '成功': 'せいこう',
    '失敗': 'しっぱい',
    '経験': 'けいけん',
    '練習': 'れんしゅう',
    '勉強': 'べんきょう',
    '教育': 'きょういく',
    '技術': 'ぎじゅつ',
    '科学': 'かがく',
    '医学': 'いがく',
    '法律': 'ほうりつ',
    '政治': 'せいじ',
    '経済': 'けいざい',
    '社会': 'しゃかい',
    '文化': 'ぶんか',
    '歴史': 'れきし',
    '将来': 'しょうらい',
    '過去': 'かこ',
    '現在': 'げんざい',
    '最近': 'さいきん',
    '普通': 'ふつう',
    '特別': 'とくべつ',
    '一般': 'いっぱん',
    '全部': 'ぜんぶ',
    '部分': 'ぶぶん',
    '最初': 'さいしょ',
    '最後': 'さいご',
    '途中': 'とちゅう',

    # Numerals
    '一': 'いち',
    '二': 'に',
    '三': 'さん',
    '四': 'よん',
    '五': 'ご',
    '六': 'ろく',
    '七': 'なな',
    '八': 'はち',
    '九': 'きゅう',
    '十': 'じゅう',
    '百': 'ひゃく',
    '千': 'せん',
    '万': 'まん',

    # Single kanji the synthesizer tends to misread; readings are context dependent
    '生': 'せい',
    '人': 'じん',
    '上': 'じょう',
    '下': 'か',
    '中': 'ちゅう',
    '外': 'がい',
    '前': 'まえ',
    '後': 'あと',
    '左': 'ひだり',
    '右': 'みぎ',
    '東': 'ひがし',
    '西': 'にし',
    '南': 'みなみ',
    '北': 'きた',
}

SAMPLE_SENTENCES = [
    '桑名は素晴らしい場所です。',
    '今日の天気はとても良いですね。',
    '先生と学生が勉強しています。',
    '東京から大阪まで新幹線で行きました。',
    '田中さんは会社で仕事をしています。',
    '明日は友達と映画を見に行く予定です。',
]

# \s plus U+FEFF (BOM)
_WHITESPACE = re.compile(r'[\s\ufeff]+')

OnAdd = Callable[[str, str, Dict[str, str]], None]


class _Snapshot(NamedTuple):
    readings: Dict[str, str]
    keys: Tuple[str, ...]


def _snapshot(readings: Dict[str, str]) -> _Snapshot:
    # Longest first so a compound is replaced before any kanji it contains
    return _Snapshot(readings, tuple(sorted(readings, key=len, reverse=True)))


class JsonReadingStore:
    """Keeps runtime dictionary additions in a JSON file ({fragment: reading})."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            log.warning('Reading dictionary %s unreadable (%s). Starting without additions.', self.path, e)
            return {}
        if not isinstance(data, dict):
            log.warning('Reading dictionary %s is not a JSON object; ignoring it', self.path)
            return {}
        entries = {k: v for k, v in data.items() if isinstance(k, str) and k and isinstance(v, str)}
        log.info('Loaded %d reading(s) from %s', len(entries), self.path)
        return entries

    def save(self, entries: Mapping[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(dict(entries), f, indent=2, ensure_ascii=False)
        except OSError as e:
            log.error('Could not save reading dictionary to %s: %s', self.path, e)

    def on_add(self, fragment: str, reading: str, additions: Dict[str, str]) -> None:
        self.save(additions)


class ReadingNormalizer:
    """Kanji → kana substitution for speech synthesis.

    Owns the reading dictionary plus its length-sorted key list. The pair is
    published as one immutable snapshot, so conversions never lock and never see
    a half-updated dictionary; additions swap in a new snapshot under a lock.
    """

    def __init__(self, seed: Mapping[str, str] | None = None,
                 extra: Mapping[str, str] | None = None,
                 on_add: Optional[OnAdd] = None):
        readings = {k: v for k, v in (SEED_READINGS if seed is None else seed).items() if k}
        self._additions: Dict[str, str] = {k: v for k, v in (extra or {}).items() if k}
        readings.update(self._additions)
        self._lock = threading.RLock()
        self._state = _snapshot(readings)
        self.on_add = on_add

    @classmethod
    def from_store(cls, store: JsonReadingStore, seed: Mapping[str, str] | None = None) -> 'ReadingNormalizer':
        return cls(seed=seed, extra=store.load(), on_add=store.on_add)

    def __len__(self) -> int:
        return len(self._state.readings)

    def __contains__(self, fragment: object) -> bool:
        return fragment in self._state.readings

    def convert_kanji_to_reading(self, text: str) -> str:
        state = self._state
        result = text
        for key in state.keys:
            if key in result:
                result = result.replace(key, state.readings[key])
        return result

    def add_reading(self, fragment: str, reading: str) -> None:
        if not fragment:
            log.warning('Ignoring reading %r for an empty fragment', reading)
            return
        with self._lock:
            readings = dict(self._state.readings)
            readings[fragment] = reading
            self._additions[fragment] = reading
            self._state = _snapshot(readings)
            log.info('Added reading %s -> %s', fragment, reading)
            # Saved under the lock so an older additions dict never lands last
            if self.on_add:
                self.on_add(fragment, reading, dict(self._additions))

    def get_dictionary_snapshot(self) -> Dict[str, str]:
        return dict(self._state.readings)

    def optimize_for_tts(self, text: str) -> str:
        """Readings applied, every whitespace character removed.

        The synthesizer pauses audibly on spaces and line breaks, so they are
        dropped rather than normalised.
        """
        return _WHITESPACE.sub('', self.convert_kanji_to_reading(text)).strip()

    def optimize_for_tts_natural(self, text: str) -> str:
        """Readings applied, whitespace runs collapsed to one space."""
        return _WHITESPACE.sub(' ', self.convert_kanji_to_reading(text)).strip()

    def prepare(self, text: str, policy: str | None = None) -> str:
        policy = (policy or CFG.tts_policy).lower()
        if policy == 'natural':
            out = self.optimize_for_tts_natural(text)
        else:
            if policy != 'strip':
                log.warning('Unknown TTS policy %r, using strip', policy)
            out = self.optimize_for_tts(text)
        log.debug('TTS text: %r -> %r', text, out)
        return out


_default: Optional[ReadingNormalizer] = None
_default_lock = threading.Lock()


def get_normalizer() -> ReadingNormalizer:
    """Process-wide normalizer, persisted to CFG.reading_dict_path when set."""
    global _default
    with _default_lock:
        if _default is None:
            if CFG.reading_dict_path:
                _default = ReadingNormalizer.from_store(JsonReadingStore(CFG.reading_dict_path))
            else:
                _default = ReadingNormalizer()
        return _default
