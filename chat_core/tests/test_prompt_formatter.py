from chat_core.domain.models import Message, MessageRole
from chat_core.prompts import format_prompt, role_token


def _history():
    return [
        Message(id="m1", role=MessageRole.USER, content="hi"),
        Message(id="m2", role=MessageRole.ASSISTANT, content="hello"),
    ]


def test_format_prompt_literal_scenario():
    expected = (
        "<|im_start|>user\nhi<|im_end|>\n"
        "<|im_start|>assistant\nhello<|im_end|>\n"
        "<|im_start|>user\nhow are you<|im_end|>\n"
        "<|im_start|>assistant\n"
    )
    assert format_prompt(_history(), "how are you") == expected


def test_format_prompt_without_history():
    assert format_prompt([], "hi") == "<|im_start|>user\nhi<|im_end|>\n<|im_start|>assistant\n"


def test_format_prompt_is_deterministic():
    history = _history()
    first = format_prompt(history, "again")
    second = format_prompt(history, "again")
    assert first == second
    assert [m.content for m in history] == ["hi", "hello"]


def test_format_prompt_keeps_content_verbatim():
    long_text = "line1\nline2 " * 500
    history = [Message(id="m1", role=MessageRole.ASSISTANT, content=long_text)]
    prompt = format_prompt(history, "")
    assert long_text in prompt
    assert prompt.endswith("<|im_start|>user\n<|im_end|>\n<|im_start|>assistant\n")


def test_role_token():
    assert role_token(MessageRole.USER) == "user"
    assert role_token(MessageRole.ASSISTANT) == "assistant"
    assert role_token("assistant") == "assistant"
