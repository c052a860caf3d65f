import pytest

from app.services.speech import detect_lang_code, split_text_to_chunks, strip_markdown


def test_strip_markdown_keeps_readable_text():
    md = (
        "# Title\n"
        "Some **bold** and _italic_ text with `code`.\n"
        "```python\nprint('hidden')\n```\n"
        "- item one\n"
        "2. item two\n"
        "See [docs](https://example.com) ![img](https://example.com/x.png) &amp; more 🚀"
    )
    assert strip_markdown(md) == (
        "Title Some bold and italic text with code. item one item two "
        "See docs (https://example.com) more"
    )


def test_strip_markdown_empty():
    assert strip_markdown("") == ""
    assert strip_markdown(None) == ""


@pytest.mark.parametrize("text, expected", [
    ("こんにちは世界", "ja-JP"),
    ("你好，世界", "zh-CN"),
    ("नमस्ते दुनिया", "hi-IN"),
    ("مرحبا بالعالم", "ar-SA"),
    ("Привет, мир", "ru-RU"),
    ("안녕하세요", "ko-KR"),
    ("Hello world", "en-US"),
    ("", "en-US"),
])
def test_detect_lang_code(text, expected):
    assert detect_lang_code(text) == expected


def test_detect_lang_code_uses_given_default():
    assert detect_lang_code("Bonjour", default="fr-FR") == "fr-FR"


def test_split_groups_sentences_under_limit():
    text = "One. Two two. Three three three!"
    assert split_text_to_chunks(text, 20) == ["One. Two two.", "Three three three!"]


def test_split_slices_overlong_sentence():
    text = "Short. " + "x" * 25
    assert split_text_to_chunks(text, 10) == ["Short.", "x" * 10, "x" * 10, "x" * 5]


def test_split_empty():
    assert split_text_to_chunks("") == []
