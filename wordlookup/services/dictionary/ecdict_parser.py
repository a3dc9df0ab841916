"""Parsers for ECDICT row fields (exchange, tag, translation, definition)."""

import re

from wordlookup.services.dictionary.base import Definition, Frequency, Translation, WordForms

# ECDICT exchange codes -> WordForms attribute
EXCHANGE_TYPES = {
    "p": "past",
    "d": "past_participle",
    "i": "present_participle",
    "3": "third_person",
    "s": "plural",
    "r": "comparative",
    "t": "superlative",
    "0": "lemma",
}

POS_NAMES = {
    "n": "noun",
    "v": "verb",
    "vt": "verb",
    "vi": "verb",
    "a": "adjective",
    "adj": "adjective",
    "adv": "adverb",
    "prep": "preposition",
    "conj": "conjunction",
    "pron": "pronoun",
    "interj": "interjection",
    "num": "numeral",
}

_TRANSLATION_POS = re.compile(r"^([a-z]+\.)\s*", re.IGNORECASE)
_TRANSLATION_DOMAIN = re.compile(r"^\[([^\]]+)\]\s*")
_DEFINITION_POS = re.compile(r"^([a-z]+\.?)\s+", re.IGNORECASE)
_MEANING_SEPARATORS = re.compile(r"[,;，；]")


def parse_exchange(exchange: str | None) -> WordForms:
    """
    Parse the exchange field into word forms.

    Input looks like "d:perceived/p:perceived/3:perceives/i:perceiving".
    Unknown codes are ignored.
    """
    forms = WordForms()
    if not exchange or not exchange.strip():
        return forms

    for part in exchange.split("/"):
        code, sep, value = part.partition(":")
        if not sep or not code:
            continue
        attr = EXCHANGE_TYPES.get(code)
        if attr:
            setattr(forms, attr, value)

    return forms


def parse_tag(tag: str | None) -> list[str]:
    """Parse "zk gk cet4 cet6" into a list of exam tags."""
    if not tag or not tag.strip():
        return []
    return tag.split()


def _split_meanings(text: str) -> list[str]:
    return [m.strip() for m in _MEANING_SEPARATORS.split(text) if m.strip()]


def parse_translation(translation: str | None) -> list[Translation]:
    """
    Parse Chinese translation text grouped by part of speech.

    Input looks like "n. 包裹, 套装软件\\nvt. 包装, 打包". Lines with a domain
    prefix such as "[计]" keep it as their group; lines without any prefix are
    collected into a single ungrouped ("") entry.
    """
    if not translation or not translation.strip():
        return []

    result: list[Translation] = []
    general: Translation | None = None

    for line in translation.split("\n"):
        line = line.strip()
        if not line:
            continue

        match = _TRANSLATION_POS.match(line)
        if match:
            pos = match.group(1)
        else:
            match = _TRANSLATION_DOMAIN.match(line)
            pos = f"[{match.group(1)}]" if match else ""

        meanings = _split_meanings(line[match.end() :] if match else line)
        if not meanings:
            continue

        if pos:
            result.append(Translation(pos=pos, meanings=meanings))
        else:
            if general is None:
                general = Translation(pos="", meanings=[])
                result.append(general)
            general.meanings.extend(meanings)

    return result


def parse_definition(definition: str | None) -> list[Definition]:
    """Parse English definition lines ("n. something packed") into Definitions."""
    if not definition or not definition.strip():
        return []

    result = []
    for line in definition.split("\n"):
        line = line.strip()
        if not line:
            continue

        match = _DEFINITION_POS.match(line)
        if match:
            abbr = match.group(1).replace(".", "").lower()
            result.append(
                Definition(
                    part_of_speech=POS_NAMES.get(abbr, abbr),
                    definition=line[match.end() :],
                )
            )
        else:
            result.append(Definition(definition=line))

    return result


def build_frequency(
    collins: int | None,
    oxford: int | None,
    bnc: int | None,
    frq: int | None,
    tag: str | None,
) -> Frequency:
    """Build frequency info from nullable record columns."""
    return Frequency(
        collins=collins or 0,
        oxford=oxford or 0,
        bnc=bnc or 0,
        frq=frq or 0,
        tag=parse_tag(tag),
    )
