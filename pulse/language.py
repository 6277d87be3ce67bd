"""
Language detection and per-language keyword polarity scoring.

Detection counts language-specific stop words and only switches away from
English when one language clearly wins. Polarity uses independently curated
positive/negative lexicons per language; a keyword counts once no matter how
often it appears. Single-word keywords also match simple inflections
("attacks", "sanctioned") but not words that merely contain one ("software").

    score = sign(pos - neg) × (0.3 + 0.1 × max(pos, neg)),  clamped to [-1, 1]

Languages without a lexicon fall back to a punctuation/emoticon heuristic.
"""

import string
from dataclasses import dataclass

from pulse.config import LANGUAGE_MIN_MARGIN, LANGUAGE_MIN_MATCHES

DEFAULT_LANGUAGE = "en"

# Scripts written without spaces between words are matched by substring.
UNSEGMENTED_LANGUAGES = frozenset({"zh", "ja"})

STOP_WORDS: dict[str, frozenset[str]] = {
    "es": frozenset("el la los las un una de del que en con por para".split()),
    "fr": frozenset("le la les un une de du que dans avec pour".split()),
    "ar": frozenset("في من على إلى عن مع هذا هذه التي".split()),
    "zh": frozenset("的 在 是 了 我 你 他 她 们".split()),
    "ru": frozenset("в на с по от до из за что это".split()),
    "pt": frozenset("o a os as um uma de do que em com por para".split()),
    "de": frozenset("der die das ein eine und mit für von zu".split()),
    "ja": frozenset("の を に は が で と から まで".split()),
    "hi": frozenset("के का की में से और को भी यह वह".split()),
}


@dataclass(frozen=True)
class Lexicon:
    positive: frozenset[str]
    negative: frozenset[str]
    # Match keywords as raw substrings instead of whole tokens.
    substring: bool = False


def _lex(positive: str, negative: str, substring: bool = False) -> Lexicon:
    return Lexicon(frozenset(positive.split()), frozenset(negative.split()), substring)


LEXICONS: dict[str, Lexicon] = {
    "en": _lex(
        "peace agreement cooperation stability progress success improvement recovery "
        "breakthrough resolution unity growth democracy freedom rights election vote "
        "transparency prosperity development investment innovation",
        "war conflict violence crisis attack terrorism death destruction collapse failure "
        "decline chaos disaster protest riot unrest tension dispute corruption recession "
        "unemployment poverty inflation sanctions",
    ),
    "es": _lex(
        "paz acuerdo cooperación estabilidad progreso éxito mejora recuperación avance "
        "resolución unidad crecimiento democracia libertad derechos elección voto "
        "transparencia prosperidad desarrollo inversión innovación",
        "guerra conflicto violencia crisis ataque terrorismo muerte destrucción colapso "
        "fracaso declive caos desastre protesta disturbio tensión disputa corrupción "
        "recesión desempleo pobreza inflación sanciones",
    ),
    "fr": _lex(
        "paix accord coopération stabilité progrès succès amélioration récupération "
        "percée résolution unité croissance démocratie liberté droits élection vote "
        "transparence",
        "guerre conflit violence crise attaque terrorisme mort destruction effondrement "
        "échec déclin chaos désastre protestation émeute tension dispute corruption",
    ),
    "de": _lex(
        "frieden vereinbarung zusammenarbeit stabilität fortschritt erfolg verbesserung "
        "erholung durchbruch lösung einheit wachstum demokratie freiheit rechte wahl "
        "abstimmung transparenz",
        "krieg konflikt gewalt krise angriff terrorismus tod zerstörung zusammenbruch "
        "versagen rückgang chaos katastrophe protest aufruhr spannung streit korruption",
    ),
    # Romanized terms: feeds in this corpus are mostly transliterated.
    "ar": _lex(
        "salam ittifaq ta'awun istiqrar taqaddum najah tahsin isti'ada hall wahda numuw",
        "harb sira' unf azma hujum irhab mawt tadmir inhiyar fashal tadahur fawda",
    ),
    "zh": _lex(
        "heping xieyi hezuo wending jinbu chenggong gaijin huifu tupo jiejue tuanjie fazhan",
        "zhanzheng chongtu baoli weiji gongji kongbu siwang pohuai bengkui shibai "
        "shuailuo hunluan",
    ),
    "ru": _lex(
        "mir soglashenie sotrudnichestvo stabilnost progress uspekh uluchshenie "
        "vosstanovlenie reshenie edinstvo rost",
        "voyna konflikt nasilie krizis napadenie terrorizm smert razrushenie krakh proval "
        "upadok khaos",
    ),
}

UNIVERSAL_LEXICON = _lex(
    "! :) ✓ ✅ + good great best win success",
    "!! :( ✗ ❌ - bad worst lose fail crisis",
    substring=True,
)

_PUNCTUATION = string.punctuation + "«»“”„‘’¿¡。、，！？：；"


def tokenize(text: str) -> set[str]:
    """Lower-cased whitespace tokens with surrounding punctuation stripped."""
    tokens = (tok.strip(_PUNCTUATION) for tok in text.lower().split())
    return {tok for tok in tokens if tok}


def _count_matches(words: frozenset[str], text_lower: str, tokens: set[str],
                   substring: bool) -> int:
    if substring:
        return sum(1 for w in words if w in text_lower)
    return sum(1 for w in words if (w in text_lower if " " in w else w in tokens))


_INFLECTIONS = ("ing", "es", "ed", "s", "d")


def word_forms(word: str) -> set[str]:
    """``word`` plus each stem left by stripping one common inflection suffix."""
    forms = {word}
    for suffix in _INFLECTIONS:
        if word.endswith(suffix) and len(word) - len(suffix) >= 3:
            forms.add(word[: -len(suffix)])
    return forms


def _count_keywords(words: frozenset[str], text_lower: str, forms: set[str],
                    substring: bool) -> int:
    if substring:
        return sum(1 for w in words if w in text_lower)
    count = 0
    for w in words:
        if " " in w:
            count += w in text_lower
        else:
            count += not forms.isdisjoint(word_forms(w))
    return count


def language_scores(text: str) -> dict[str, int]:
    """Number of distinct stop words of each language present in ``text``."""
    text_lower = text.lower()
    tokens = tokenize(text_lower)
    return {
        lang: _count_matches(words, text_lower, tokens, lang in UNSEGMENTED_LANGUAGES)
        for lang, words in STOP_WORDS.items()
    }


def detect_language(text: str,
                    min_matches: int = LANGUAGE_MIN_MATCHES,
                    min_margin: int = LANGUAGE_MIN_MARGIN) -> str:
    """Guess the language of ``text``; English unless another clearly wins."""
    ranked = sorted(language_scores(text).items(), key=lambda kv: kv[1], reverse=True)
    if not ranked:
        return DEFAULT_LANGUAGE
    lang, best = ranked[0]
    runner_up = ranked[1][1] if len(ranked) > 1 else 0
    if best >= min_matches and best > runner_up + min_margin:
        return lang
    return DEFAULT_LANGUAGE


def keyword_polarity(text: str, lexicon: Lexicon) -> float:
    """Score ``text`` against a positive/negative lexicon in [-1, 1]."""
    text_lower = text.lower()
    forms = set().union(*(word_forms(tok) for tok in tokenize(text_lower)))
    pos = _count_keywords(lexicon.positive, text_lower, forms, lexicon.substring)
    neg = _count_keywords(lexicon.negative, text_lower, forms, lexicon.substring)

    if pos == neg:
        return 0.0
    magnitude = 0.3 + 0.1 * max(pos, neg)
    score = magnitude if pos > neg else -magnitude
    return max(-1.0, min(1.0, score))


def score_polarity(text: str, language: str) -> float:
    """Polarity of ``text`` using the lexicon for ``language``."""
    return keyword_polarity(text, LEXICONS.get(language, UNIVERSAL_LEXICON))


def supported_languages() -> list[str]:
    return sorted(LEXICONS)
