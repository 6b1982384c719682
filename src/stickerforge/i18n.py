from __future__ import annotations

from typing import Any


_MESSAGES = {
    "en": {
        "error.no_foreground": "No design found: the image is fully transparent or white.",
        "error.unusable_outline": "Could not detect a usable outline. Try an image with a transparent background.",
        "error.invalid_config": "Invalid configuration: {message}",
        "error.invalid_input": "Invalid input: {message}",
        "error.file_not_found": "File not found: {path}",
        "warn.opaque_border": "The image does not have a transparent or white background; the cutline may follow the image edge.",
        "nest.unplaced": "{count} design(s) did not fit on the sheet: {ids}",
        "price.summary": "{quantity} x {width} x {height} {unit}: {total}",
    },
    "zh-CN": {
        "error.no_foreground": "未找到设计内容：图像完全透明或为白色。",
        "error.unusable_outline": "无法检测到可用的轮廓，请尝试使用透明背景的图像。",
        "error.invalid_config": "配置无效: {message}",
        "error.invalid_input": "输入无效: {message}",
        "error.file_not_found": "文件不存在: {path}",
        "warn.opaque_border": "图像背景不是透明或白色，切割线可能沿图像边缘生成。",
        "nest.unplaced": "{count} 个设计无法放入版面: {ids}",
        "price.summary": "{quantity} x {width} x {height} {unit}: {total}",
    },
}


def normalize_locale(locale: str | None) -> str:
    if not locale:
        return "en"
    lowered = locale.lower()
    if lowered.startswith("zh"):
        return "zh-CN"
    return "en"


def text(locale: str | None, key: str, **kwargs: Any) -> str:
    normalized = normalize_locale(locale)
    table = _MESSAGES.get(normalized, _MESSAGES["en"])
    fallback = _MESSAGES["en"]
    message = table.get(key) or fallback.get(key) or key
    if kwargs:
        return message.format(**kwargs)
    return message
