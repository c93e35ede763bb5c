# checadoc/rules/document/cpf/checksum.py
"""
Validação algorítmica de CPF (dígitos verificadores) e derivação da região fiscal.
Funções puras, sem I/O.
"""
import re

REGIAO_DESCONHECIDA = "Desconhecida"

# 9º dígito do CPF -> estados da região fiscal de emissão
REGIOES_FISCAIS = {
    0: "RS",
    1: "DF, GO, MS, MT, TO",
    2: "AC, AM, AP, PA, RO, RR",
    3: "CE, MA, PI",
    4: "AL, PB, PE, RN",
    5: "BA, SE",
    6: "MG",
    7: "ES, RJ",
    8: "SP",
    9: "PR, SC",
}


def normalize_cpf(cpf: str) -> str:
    """
    Remove caracteres não numéricos do CPF.
    Exemplo: '123.456.789-09' -> '12345678909'
    """
    if not cpf:
        return ""
    return re.sub(r'\D', '', str(cpf))


def format_cpf(cpf: str) -> str:
    digits = normalize_cpf(cpf)
    if len(digits) != 11:
        return digits
    return f"{digits[:3]}.{digits[3:6]}.{digits[6:9]}-{digits[9:]}"


def mask_cpf(cpf: str) -> str:
    """Forma segura para logs: só os 3 primeiros dígitos."""
    return f"{normalize_cpf(cpf)[:3]}***"


def _check_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * (weight_start - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder == 10 else remainder


def is_valid_cpf(cpf: str) -> bool:
    """
    Valida o CPF pelo algoritmo dos dígitos verificadores (mod 11 em duas passagens).
    Caracteres não numéricos são ignorados. Sequências de um único dígito repetido
    são sempre inválidas.
    """
    digits = normalize_cpf(cpf)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False

    if _check_digit(digits[:9], 10) != int(digits[9]):
        return False
    if _check_digit(digits[:10], 11) != int(digits[10]):
        return False
    return True


def get_cpf_region(cpf: str) -> str:
    """Região fiscal pelo 9º dígito. Metadado informativo, não indica validade."""
    digits = normalize_cpf(cpf)
    if len(digits) < 10:
        return REGIAO_DESCONHECIDA
    return REGIOES_FISCAIS.get(int(digits[8]), REGIAO_DESCONHECIDA)
