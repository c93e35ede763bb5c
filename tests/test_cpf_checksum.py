# tests/test_cpf_checksum.py

import pytest

from checadoc.rules.document.cpf.checksum import (
    REGIAO_DESCONHECIDA,
    format_cpf,
    get_cpf_region,
    is_valid_cpf,
    mask_cpf,
    normalize_cpf,
)


@pytest.mark.parametrize("cpf", ["529.982.247-25", "52998224725", "123.456.789-09", " 529 982 247 25 "])
def test_valid_cpfs(cpf):
    assert is_valid_cpf(cpf) is True


def test_single_digit_change_invalidates():
    assert is_valid_cpf("52998224725") is True
    assert is_valid_cpf("62998224725") is False
    assert is_valid_cpf("52998224726") is False


@pytest.mark.parametrize("digit", "0123456789")
def test_repeated_digit_sequences_are_invalid(digit):
    assert is_valid_cpf(digit * 11) is False


@pytest.mark.parametrize("cpf", ["", "123", "5299822472", "529982247250", "abc.def.ghi-jk"])
def test_wrong_length_is_invalid(cpf):
    assert is_valid_cpf(cpf) is False


def test_check_digit_remainder_ten_becomes_zero():
    # 123.456.789-09: o primeiro dígito verificador vem de um resto 10
    assert is_valid_cpf("12345678909") is True
    assert is_valid_cpf("12345678919") is False


def test_region_from_ninth_digit():
    assert get_cpf_region("529.982.247-25") == "ES, RJ"
    assert get_cpf_region("123.456.789-09") == "PR, SC"
    assert get_cpf_region("000000000") == REGIAO_DESCONHECIDA
    assert get_cpf_region("") == REGIAO_DESCONHECIDA


def test_region_does_not_depend_on_validity():
    # Dígitos verificadores errados, mas a região é derivada do mesmo jeito
    assert get_cpf_region("11111111800") == "SP"


def test_normalize_format_and_mask():
    assert normalize_cpf("529.982.247-25") == "52998224725"
    assert format_cpf("52998224725") == "529.982.247-25"
    assert format_cpf("5299") == "5299"
    assert mask_cpf("529.982.247-25") == "529***"


def test_checksum_is_deterministic():
    assert [is_valid_cpf("52998224725") for _ in range(3)] == [True, True, True]
