"""Grapheme-to-phoneme rule tables and the English whole-word lexicon."""

from __future__ import annotations

from typing import Dict, Mapping

_EN_VOWELS = {
    "a": "æ",
    "e": "ɛ",
    "i": "ɪ",
    "o": "ɒ",
    "u": "ʌ",
    "y": "aɪ",
    "ai": "eɪ",
    "ay": "eɪ",
    "ee": "iː",
    "ea": "iː",
    "ie": "iː",
    "oo": "uː",
    "ou": "aʊ",
    "ow": "aʊ",
    "oa": "oʊ",
    "oe": "oʊ",
    "au": "ɔː",
    "aw": "ɔː",
    "oy": "ɔɪ",
    "oi": "ɔɪ",
    "ar": "ɑːɹ",
    "or": "ɔːɹ",
    "er": "ɚ",
    "ir": "ɚ",
    "ur": "ɚ",
    "ear": "ɪəɹ",
    "air": "eəɹ",
}

_EN_CONSONANTS = {
    "b": "b",
    "c": "k",
    "d": "d",
    "f": "f",
    "g": "g",
    "h": "h",
    "j": "dʒ",
    "k": "k",
    "l": "l",
    "m": "m",
    "n": "n",
    "p": "p",
    "q": "kw",
    "r": "ɹ",
    "s": "s",
    "t": "t",
    "v": "v",
    "w": "w",
    "x": "ks",
    "z": "z",
    "ch": "tʃ",
    "sh": "ʃ",
    "th": "θ",
    "wh": "w",
    "ph": "f",
    "gh": "g",
    "ck": "k",
    "ng": "ŋ",
    "nk": "ŋk",
}

EN_US_RULES: Dict[str, str] = {**_EN_VOWELS, **_EN_CONSONANTS}

EN_GB_RULES: Dict[str, str] = {
    **EN_US_RULES,
    "a": "ɑ",
    "o": "ɔ",
    "au": "ɔː",
    "aw": "ɔː",
}

ES_RULES: Dict[str, str] = {
    "a": "a",
    "e": "e",
    "i": "i",
    "o": "o",
    "u": "u",
    "c": "k",
    "h": "",
    "j": "x",
    "v": "b",
    "y": "ʝ",
    "z": "θ",
    "ch": "tʃ",
    "ll": "ʎ",
    "ñ": "ɲ",
    "rr": "rr",
    "x": "ks",
}

FR_RULES: Dict[str, str] = {
    "e": "ə",
    "u": "y",
    "é": "e",
    "è": "ɛ",
    "ê": "ɛ",
    "ô": "o",
    "ù": "y",
    "û": "y",
    "à": "a",
    "ç": "s",
    "î": "i",
    "h": "",
    "j": "ʒ",
    "r": "ʁ",
    "y": "i",
    "ch": "ʃ",
    "gn": "ɲ",
    "qu": "k",
    "th": "t",
}

DE_RULES: Dict[str, str] = {
    "i": "ɪ",
    "u": "ʊ",
    "ä": "ɛ",
    "ö": "ø",
    "ü": "y",
    "j": "j",
    "r": "ʁ",
    "v": "f",
    "w": "v",
    "z": "ts",
    "ch": "x",
    "sch": "ʃ",
    "th": "t",
    "ph": "f",
    "qu": "kv",
    "ß": "s",
}

LANGUAGE_RULES: Mapping[str, Mapping[str, str]] = {
    "en-us": EN_US_RULES,
    "en": EN_US_RULES,
    "en-gb": EN_GB_RULES,
    "es": ES_RULES,
    "fr": FR_RULES,
    "de": DE_RULES,
}

DEFAULT_LANGUAGE = "en-us"

ENGLISH_LEXICON: Dict[str, str] = {
    "hello": "hɛˈloʊ",
    "world": "wˈɝld",
    "this": "ðˈɪs",
    "is": "ˈɪz",
    "a": "ə",
    "test": "tˈɛst",
    "of": "ʌv",
    "the": "ðə",
    "kokoro": "kˈoʊkəɹoʊ",
    "text": "tˈɛkst",
    "to": "tˈuː",
    "speech": "spˈiːtʃ",
    "system": "sˈɪstəm",
    "running": "ɹˈʌnɪŋ",
    "on": "ˈɑːn",
    "with": "wˈɪð",
    "and": "ænd",
}


def lexicon_for(language: str) -> Dict[str, str]:
    if language.startswith("en"):
        return dict(ENGLISH_LEXICON)
    return {}
