# checadoc/rules/institution/matcher.py

import re
import math
import logging
import unicodedata
from typing import List, Mapping, Optional, Sequence

from checadoc.models.results import InstitutionMatch, MatchMethod
from checadoc.rules.institution.aliases import INSTITUTION_ALIASES

logger = logging.getLogger(__name__)

MIN_DOCUMENT_TEXT_LENGTH = 10
MIN_CONTAINMENT_LENGTH = 4
MIN_SIGNIFICANT_TOKENS = 2
WORD_OVERLAP_THRESHOLD = 0.6
MAX_CANDIDATE_LINE_LENGTH = 120

CONNECTOR_WORDS = frozenset({"de", "da", "do", "das", "dos", "e", "em", "para", "pela", "pelo", "com"})
INSTITUTION_KEYWORDS = ("universidade", "faculdade", "instituto", "centro universitario", "escola superior")


def normalize_text(text: Optional[str]) -> str:
    """Caixa baixa, sem acentos e sem espaços nas pontas."""
    if not text:
        return ""
    decomposed = unicodedata.normalize("NFD", text.lower())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch)).strip()


def significant_tokens(normalized_name: str) -> List[str]:
    """Palavras do nome com mais de 3 letras e que não são conectivos."""
    tokens = re.split(r"[^\w]+", normalized_name)
    return [t for t in tokens if len(t) > 3 and t not in CONNECTOR_WORDS]


class InstitutionMatcher:
    """
    Compara a instituição declarada no formulário com o texto extraído do documento.
    Regras em ordem, a primeira que acerta decide:
    1. Contenção direta do nome declarado no texto.
    2. Dicionário de siglas/variações.
    3. Sobreposição de palavras significativas (tolerante a ruído do OCR).
    4. Linha do documento com palavra-chave de instituição (só diagnóstico, match=False).
    Função pura: a mesma entrada sempre produz a mesma saída.
    """

    def __init__(self, aliases: Optional[Mapping[str, Sequence[str]]] = None):
        source = INSTITUTION_ALIASES if aliases is None else aliases
        # Nomes do dicionário já normalizados, na ordem de declaração
        self._alias_sets = tuple(
            (canonical, tuple(normalize_text(n) for n in (canonical, *names)))
            for canonical, names in source.items()
        )
        logger.info(f"InstitutionMatcher inicializado com {len(self._alias_sets)} instituições no dicionário.")

    def match(self, document_text: Optional[str], declared: Optional[str]) -> InstitutionMatch:
        text = normalize_text(document_text)
        declared_norm = normalize_text(declared)

        if len(text) < MIN_DOCUMENT_TEXT_LENGTH or not declared_norm:
            return InstitutionMatch()

        if len(declared_norm) >= MIN_CONTAINMENT_LENGTH and declared_norm in text:
            return InstitutionMatch(found=declared, match=True, method=MatchMethod.CONTAINMENT)

        alias_result = self._match_alias(text, declared_norm)
        if alias_result is not None:
            return alias_result

        if self._words_overlap(text, declared_norm):
            return InstitutionMatch(found=declared, match=True, method=MatchMethod.WORD_OVERLAP)

        candidate = self._keyword_line(document_text)
        if candidate:
            return InstitutionMatch(found=candidate, match=False, method=MatchMethod.KEYWORD_LINE)

        return InstitutionMatch()

    def _match_alias(self, text: str, declared_norm: str) -> Optional[InstitutionMatch]:
        for canonical, names in self._alias_sets:
            if not any(name in text for name in names):
                continue
            if any(name in declared_norm or declared_norm in name for name in names):
                return InstitutionMatch(found=canonical, match=True, method=MatchMethod.ALIAS)
            # Instituição reconhecida no documento, mas não é a declarada
            return InstitutionMatch(found=canonical, match=False, method=MatchMethod.ALIAS)
        return None

    @staticmethod
    def _words_overlap(text: str, declared_norm: str) -> bool:
        tokens = significant_tokens(declared_norm)
        if len(tokens) < MIN_SIGNIFICANT_TOKENS:
            return False
        required = math.ceil(len(tokens) * WORD_OVERLAP_THRESHOLD)
        hits = sum(1 for token in tokens if token in text)
        return hits >= required

    @staticmethod
    def _keyword_line(document_text: str) -> Optional[str]:
        lines = [line for line in document_text.splitlines() if line.strip()]
        normalized_lines = [normalize_text(line) for line in lines]
        for keyword in INSTITUTION_KEYWORDS:
            for original, normalized in zip(lines, normalized_lines):
                if keyword in normalized:
                    return original.strip()[:MAX_CANDIDATE_LINE_LENGTH]
        return None
