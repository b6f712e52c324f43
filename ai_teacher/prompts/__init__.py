"""提示词加载工具。

按语言(locale) 从 prompts/<locale> 目录读取固定文本：
- system_prompt.md: 儿童安全系统提示词，包含 {age} 占位符。
- homework_prompt.md: 拍照作业时替代用户问题的固定提示。
- welcome.md: 重置会话后朗读的欢迎语。
"""

from pathlib import Path


PROMPTS_DIR = Path(__file__).resolve().parent


def _read(name: str, locale: str) -> str:
    return (PROMPTS_DIR / locale / name).read_text(encoding="utf-8").strip()


def build_system_prompt(age: str, locale: str = "en") -> str:
    """生成带年龄的系统提示词。年龄为空时原样保留空字符串。"""

    return _read("system_prompt.md", locale).replace("{age}", (age or "").strip())


def load_homework_prompt(locale: str = "en") -> str:
    return _read("homework_prompt.md", locale)


def load_welcome_message(locale: str = "en") -> str:
    return _read("welcome.md", locale)
