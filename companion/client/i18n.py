"""User-facing strings for the supported interface languages."""

from typing import Any

from companion.schemas.settings_schema import Language

TEXT: dict[Language, dict[str, Any]] = {
    "zh": {
        "chooseLanguage": "请选择语言",
        "userNickname": "你希望我怎么称呼你？",
        "aiNickname": "你希望我叫什么名字？",
        "role": "你希望我以什么身份陪伴你？",
        "background": "如果你愿意，告诉我一点你的故事",
        "reminder": "你希望我提醒你什么？",
        "next": "下一步",
        "prev": "上一步",
        "skip": "跳过",
        "finish": "完成",
        "roles": [
            "理解你的朋友",
            "推你成长的教练",
            "冷静客观的分析者",
            "温柔地安慰你的人",
        ],
    },
    "en": {
        "chooseLanguage": "Please select a language",
        "userNickname": "How should I call you?",
        "aiNickname": "What would you like to call me?",
        "role": "What role do you want me to play?",
        "background": "If you like, tell me a bit about your story",
        "reminder": "What would you like me to remind you?",
        "next": "Next",
        "prev": "Previous",
        "skip": "Skip",
        "finish": "Finish",
        "roles": [
            "Understanding friend",
            "Growth coach",
            "Calm analyst",
            "Gentle comforter",
        ],
    },
}
