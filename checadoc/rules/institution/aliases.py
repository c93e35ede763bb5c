# checadoc/rules/institution/aliases.py

from types import MappingProxyType

# Nome canônico completo -> siglas e variações comuns.
# Somente leitura: compartilhado entre requisições concorrentes.
INSTITUTION_ALIASES = MappingProxyType({
    "universidade de são paulo": ("usp", "universidade de sao paulo"),
    "universidade federal do rio de janeiro": ("ufrj",),
    "universidade estadual de campinas": ("unicamp",),
    "universidade federal de minas gerais": ("ufmg",),
    "universidade federal do paraná": ("ufpr",),
    "universidade tecnológica federal do paraná": ("utfpr",),
    "pontifícia universidade católica": ("puc", "puc-rio", "puc-sp", "puc-mg", "puc-pr"),
    "universidade federal de santa catarina": ("ufsc",),
    "universidade federal do rio grande do sul": ("ufrgs",),
    "universidade de brasília": ("unb",),
    "universidade federal da bahia": ("ufba",),
    "universidade federal de pernambuco": ("ufpe",),
    "universidade federal do ceará": ("ufc",),
    "universidade federal fluminense": ("uff",),
    "universidade federal de goiás": ("ufg",),
})
