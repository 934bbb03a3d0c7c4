# ==============================
# File: avatar_core/config.py
# ==============================
import os
from dataclasses import dataclass

@dataclass
class Config:
    # Reading dictionary persistence: JSON file holding runtime additions.
    # Empty means additions live in memory only and vanish on restart.
    reading_dict_path: str = os.getenv("READING_DICT_PATH", "")

    # Whitespace policy for TTS text: 'strip' (remove all) or 'natural' (collapse to one space)
    tts_policy: str = os.getenv("TTS_POLICY", "strip")

    # Misc
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

CFG = Config()
