"""
Text preparation for client-side speech synthesis.

Browsers do the actual speaking; this module turns a markdown reply into plain
text, guesses a BCP-47 language tag from the script it is written in, and splits
it into chunks short enough for speech engines that cut off long utterances.
"""
import re
from typing import List

DEFAULT_LANG = "en-US"
DEFAULT_CHUNK_LENGTH = 200

CODE_BLOCK = re.compile(r"```[\s\S]*?```")
INLINE_CODE = re.compile(r"`([^`]+)`")
IMAGE = re.compile(r"!\[.*?\]\(.*?\)")
LINK = re.compile(r"\[([^\]]+)\]\(([^)]+)\)")
HEADING = re.compile(r"(^|\n)#+\s*")
EMPHASIS = re.compile(r"(\*|_){1,3}([^*_]+)\1{1,3}")
BULLET = re.compile(r"^\s*[-*+]\s+", re.MULTILINE)
NUMBERED = re.compile(r"^\s*\d+\.\s+", re.MULTILINE)
HTML_ENTITY = re.compile(r"&[#A-Za-z0-9]+;")

EMOJI = re.compile("[\U0001F300-\U0001F6FF\U0001F900-\U0001F9FF\u2600-\u26FF\u2700-\u27BF]")
CONTROL = re.compile(r"[\x00-\x1f\x7f-\x9f]")
WHITESPACE = re.compile(r"\s+")
SENTENCE_END = re.compile(r"(?<=[.!?])\s+")

KANA = re.compile("[\u3040-\u30ff]")
HAN = re.compile("[\u4e00-\u9fff]")
# Checked in order; first match wins
SCRIPT_LANGS = [
    (re.compile("[\u0900-\u097f]"), "hi-IN"),
    (re.compile("[\u0600-\u06ff]"), "ar-SA"),
    (re.compile("[\u0400-\u04ff]"), "ru-RU"),
    (re.compile("[\u3131-\u318e\uac00-\ud7a3]"), "ko-KR"),
]


def remove_emojis_and_control(text: str) -> str:
    text = EMOJI.sub("", text)
    text = CONTROL.sub(" ", text)
    return WHITESPACE.sub(" ", text).strip()


def strip_markdown(markdown: str) -> str:
    if not markdown:
        return ""
    text = CODE_BLOCK.sub("", markdown)
    text = INLINE_CODE.sub(r"\1", text)
    text = IMAGE.sub("", text)
    text = LINK.sub(r"\1 (\2)", text)
    text = HEADING.sub(r"\1", text)
    text = EMPHASIS.sub(r"\2", text)
    text = BULLET.sub("", text)
    text = NUMBERED.sub("", text)
    text = HTML_ENTITY.sub(" ", text)
    return remove_emojis_and_control(text)


def detect_lang_code(text: str, default: str = DEFAULT_LANG) -> str:
    if not text or not text.strip():
        return default
    if KANA.search(text):
        return "ja-JP"
    if HAN.search(text):
        return "zh-CN"
    for pattern, lang in SCRIPT_LANGS:
        if pattern.search(text):
            return lang
    return default


def split_text_to_chunks(text: str, max_chunk_length: int = DEFAULT_CHUNK_LENGTH) -> List[str]:
    """
    Group whole sentences into chunks of at most `max_chunk_length` characters.
    A sentence longer than the limit is cut into fixed-size slices.
    """
    if not text:
        return []
    sentences = [s.strip() for s in SENTENCE_END.split(text.replace("\n", " ")) if s.strip()]
    chunks = []
    current = ""
    for sentence in sentences:
        candidate = f"{current} {sentence}".strip()
        if len(candidate) <= max_chunk_length:
            current = candidate
            continue
        if current:
            chunks.append(current)
        if len(sentence) <= max_chunk_length:
            current = sentence
        else:
            chunks.extend(sentence[i:i + max_chunk_length] for i in range(0, len(sentence), max_chunk_length))
            current = ""
    if current:
        chunks.append(current)
    return chunks


def prepare_speech(text: str, max_chunk_length: int = DEFAULT_CHUNK_LENGTH, default_lang: str = DEFAULT_LANG):
    """Return `(lang, plain_text, chunks)` for a reply about to be read aloud."""
    plain = strip_markdown(text)
    return detect_lang_code(plain, default_lang), plain, split_text_to_chunks(plain, max_chunk_length)
