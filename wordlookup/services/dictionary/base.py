"""Base classes and dataclasses for dictionary providers."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any
from urllib.parse import quote


class DataSource(str, Enum):
    """Tag identifying which provider produced a response."""

    ECDICT = "ecdict"
    ECDICT_OXFORD = "ecdict+oxford"  # ECDICT base with Oxford definitions merged in
    OXFORD_EN_MAC = "oxford_en_mac"
    KOEN_MAC = "koen_mac"
    JAEN_MAC = "jaen_mac"
    DEEN_MAC = "deen_mac"
    RUEN_MAC = "ruen_mac"
    FALLBACK = "google"  # kept for client compatibility, backed by dictionaryapi.dev
    CACHE = "cache"
    UNKNOWN = "unknown"


@dataclass
class Phonetics:
    uk: str = ""
    us: str = ""


@dataclass
class AudioUrls:
    uk: str = ""
    us: str = ""


@dataclass
class Translation:
    """Target-language glosses grouped by part of speech ("" = ungrouped)."""

    pos: str = ""
    meanings: list[str] = field(default_factory=list)


@dataclass
class Definition:
    part_of_speech: str = ""
    definition: str = ""
    example: str = ""
    synonyms: list[str] = field(default_factory=list)
    antonyms: list[str] = field(default_factory=list)


@dataclass
class WordForms:
    past: str = ""
    past_participle: str = ""
    present_participle: str = ""
    third_person: str = ""
    plural: str = ""
    comparative: str = ""
    superlative: str = ""
    lemma: str = ""


@dataclass
class Frequency:
    collins: int = 0
    oxford: int = 0
    bnc: int = 0
    frq: int = 0
    tag: list[str] = field(default_factory=list)


@dataclass
class DictionaryResponse:
    """Unified dictionary lookup result.

    Every field is always present; an empty result is the zero value.
    """

    word: str
    phonetics: Phonetics = field(default_factory=Phonetics)
    audio: AudioUrls = field(default_factory=AudioUrls)
    translations: list[Translation] = field(default_factory=list)
    definitions: list[Definition] = field(default_factory=list)
    exchange: WordForms = field(default_factory=WordForms)
    frequency: Frequency = field(default_factory=Frequency)
    source: str = DataSource.UNKNOWN.value
    cached: bool = False
    detail_url: str = ""


@dataclass
class QueryResult:
    """Outcome of a single provider query."""

    found: bool
    response: DictionaryResponse | None = None
    error: str | None = None


def create_empty_response(word: str) -> DictionaryResponse:
    """Create an empty response with all fields initialized."""
    return DictionaryResponse(
        word=word,
        detail_url=f"https://dict.eudic.net/dicts/en/{quote(word, safe='')}",
    )


def response_to_dict(response: DictionaryResponse) -> dict[str, Any]:
    """Serialize a response to its camelCase wire format."""
    return {
        "word": response.word,
        "phonetics": {"uk": response.phonetics.uk, "us": response.phonetics.us},
        "audio": {"uk": response.audio.uk, "us": response.audio.us},
        "translations": [
            {"pos": t.pos, "meanings": list(t.meanings)} for t in response.translations
        ],
        "definitions": [
            {
                "partOfSpeech": d.part_of_speech,
                "definition": d.definition,
                "example": d.example,
                "synonyms": list(d.synonyms),
                "antonyms": list(d.antonyms),
            }
            for d in response.definitions
        ],
        "exchange": {
            "past": response.exchange.past,
            "pastParticiple": response.exchange.past_participle,
            "presentParticiple": response.exchange.present_participle,
            "thirdPerson": response.exchange.third_person,
            "plural": response.exchange.plural,
            "comparative": response.exchange.comparative,
            "superlative": response.exchange.superlative,
            "lemma": response.exchange.lemma,
        },
        "frequency": {
            "collins": response.frequency.collins,
            "oxford": response.frequency.oxford,
            "bnc": response.frequency.bnc,
            "frq": response.frequency.frq,
            "tag": list(response.frequency.tag),
        },
        "source": response.source,
        "cached": response.cached,
        "detailUrl": response.detail_url,
    }


def response_from_dict(obj: dict[str, Any]) -> DictionaryResponse:
    """Deserialize the wire format, filling zero values for missing keys."""
    phonetics = obj.get("phonetics") or {}
    audio = obj.get("audio") or {}
    exchange = obj.get("exchange") or {}
    frequency = obj.get("frequency") or {}
    return DictionaryResponse(
        word=obj.get("word", ""),
        phonetics=Phonetics(uk=phonetics.get("uk", ""), us=phonetics.get("us", "")),
        audio=AudioUrls(uk=audio.get("uk", ""), us=audio.get("us", "")),
        translations=[
            Translation(pos=t.get("pos", ""), meanings=list(t.get("meanings", [])))
            for t in obj.get("translations", [])
        ],
        definitions=[
            Definition(
                part_of_speech=d.get("partOfSpeech", ""),
                definition=d.get("definition", ""),
                example=d.get("example", ""),
                synonyms=list(d.get("synonyms", [])),
                antonyms=list(d.get("antonyms", [])),
            )
            for d in obj.get("definitions", [])
        ],
        exchange=WordForms(
            past=exchange.get("past", ""),
            past_participle=exchange.get("pastParticiple", ""),
            present_participle=exchange.get("presentParticiple", ""),
            third_person=exchange.get("thirdPerson", ""),
            plural=exchange.get("plural", ""),
            comparative=exchange.get("comparative", ""),
            superlative=exchange.get("superlative", ""),
            lemma=exchange.get("lemma", ""),
        ),
        frequency=Frequency(
            collins=frequency.get("collins", 0),
            oxford=frequency.get("oxford", 0),
            bnc=frequency.get("bnc", 0),
            frq=frequency.get("frq", 0),
            tag=list(frequency.get("tag", [])),
        ),
        source=obj.get("source", DataSource.UNKNOWN.value),
        cached=obj.get("cached", False),
        detail_url=obj.get("detailUrl", ""),
    )


class DictionaryProvider(ABC):
    """Abstract base class for dictionary providers."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique provider name, also used as its source tag."""
        ...  # pragma: no cover

    @property
    @abstractmethod
    def display_name(self) -> str:
        ...  # pragma: no cover

    @property
    @abstractmethod
    def supported_languages(self) -> tuple[str, ...]:
        ...  # pragma: no cover

    def supports(self, language: str) -> bool:
        return language in self.supported_languages

    @abstractmethod
    def is_available(self) -> bool:
        """Return True if the underlying resource initialized correctly.

        Must be cheap and side-effect free; it is checked on every request.
        """
        ...  # pragma: no cover

    @abstractmethod
    async def query(self, word: str, language: str) -> QueryResult:
        """
        Look up a word.

        Args:
            word: The word to look up
            language: Short language code (en, ko, ja, ...)

        Returns:
            QueryResult with found=False for unknown words. Infrastructure
            failures either raise ProviderQueryError or come back as
            found=False with an error message.
        """
        ...  # pragma: no cover

    @abstractmethod
    def is_valid_result(self, response: DictionaryResponse | None) -> bool:
        """Return True if the response has meaningful content for this source."""
        ...  # pragma: no cover

    @abstractmethod
    async def close(self) -> None:
        """Release underlying resources. Safe to call more than once."""
        ...  # pragma: no cover
