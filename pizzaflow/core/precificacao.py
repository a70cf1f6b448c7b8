# pizzaflow/core/precificacao.py
"""
Motor de Precificação e Validador de Cupons.

Funções puras: não acessam banco nem relógio. Toda a aritmética é feita com
Decimal, sem arredondamentos intermediários; `quantizar` só é aplicado quando
um valor é congelado no banco ou exibido.
"""
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from datetime import datetime
from typing import Iterable, Optional

from pizzaflow.core.entities import (
    Cupom, Desconto, Totais, TipoDesconto, MotivoCupomInvalido
)
from pizzaflow.core.exceptions import DadosInvalidosError

CENTAVOS = Decimal("0.01")
ZERO = Decimal("0")
CEM = Decimal("100")


def para_decimal(valor) -> Decimal:
    """Converte int/str/Decimal para Decimal. Floats passam por str para não herdar ruído binário."""
    if isinstance(valor, Decimal):
        return valor
    try:
        return Decimal(str(valor))
    except (InvalidOperation, ValueError, TypeError):
        raise DadosInvalidosError(f"Valor monetário inválido: {valor!r}.")


def quantizar(valor: Decimal) -> Decimal:
    return para_decimal(valor).quantize(CENTAVOS, rounding=ROUND_HALF_UP)


def quantidade_inteira(quantidade, nome_item: str) -> int:
    """Quantidade inteira >= 1. Valores fracionários são rejeitados, nunca truncados."""
    if quantidade is None or isinstance(quantidade, bool):
        raise DadosInvalidosError(f"Quantidade inválida para o item '{nome_item}': {quantidade}.")
    try:
        valor = Decimal(str(quantidade))
    except (InvalidOperation, ValueError):
        raise DadosInvalidosError(f"Quantidade inválida para o item '{nome_item}': {quantidade}.")
    if not valor.is_finite() or valor != valor.to_integral_value() or valor < 1:
        raise DadosInvalidosError(f"Quantidade inválida para o item '{nome_item}': {quantidade}.")
    return int(valor)


def calcular_subtotal(itens: Iterable) -> Decimal:
    """
    Soma preco × quantidade dos itens (qualquer objeto com `preco` e `quantidade`).
    A soma é comutativa: a ordem dos itens não altera o resultado.
    """
    subtotal = ZERO
    for item in itens:
        preco = para_decimal(item.preco)
        quantidade = quantidade_inteira(item.quantidade, item.nome)
        if preco < ZERO:
            raise DadosInvalidosError(f"Preço negativo para o item '{item.nome}'.")
        subtotal += preco * quantidade
    return subtotal


def calcular_valor_desconto(subtotal: Decimal, desconto: Optional[Desconto]) -> Decimal:
    """Valor do desconto limitado ao subtotal (o total nunca fica negativo)."""
    if desconto is None:
        return ZERO

    valor = para_decimal(desconto.valor)
    if desconto.tipo == TipoDesconto.PERCENTUAL:
        bruto = subtotal * valor / CEM
    elif desconto.tipo == TipoDesconto.VALOR_FIXO:
        bruto = valor
    else:
        raise DadosInvalidosError(f"Tipo de desconto desconhecido: {desconto.tipo}.")

    if bruto < ZERO:
        return ZERO
    return min(bruto, subtotal)


def calcular_totais(itens: Iterable, desconto: Optional[Desconto] = None) -> Totais:
    subtotal = calcular_subtotal(itens)
    valor_desconto = calcular_valor_desconto(subtotal, desconto)
    return Totais(
        subtotal=subtotal,
        valor_desconto=valor_desconto,
        total=subtotal - valor_desconto,
    )


def congelar_totais(totais: Totais) -> Totais:
    """
    Versão arredondada para persistência. O total é derivado dos valores
    já arredondados, então total == subtotal - desconto vale exatamente em centavos.
    """
    subtotal = quantizar(totais.subtotal)
    valor_desconto = quantizar(totais.valor_desconto)
    return Totais(subtotal=subtotal, valor_desconto=valor_desconto, total=subtotal - valor_desconto)


# ====================================================================
# VALIDADOR DE CUPOM
# ====================================================================

def motivo_invalidade(cupom: Optional[Cupom], subtotal: Decimal, agora: datetime) -> Optional[str]:
    """
    Retorna None se o cupom pode ser aplicado ao subtotal no instante `agora`,
    ou o código do primeiro critério que falhou.
    """
    if cupom is None:
        return MotivoCupomInvalido.NAO_ENCONTRADO
    if not cupom.ativo:
        return MotivoCupomInvalido.INATIVO
    # expira_em é inclusivo: o cupom ainda vale no exato instante de expiração.
    if cupom.expira_em is not None and cupom.expira_em < agora:
        return MotivoCupomInvalido.EXPIRADO
    if cupom.limite_uso is not None and cupom.vezes_usado >= cupom.limite_uso:
        return MotivoCupomInvalido.ESGOTADO
    if cupom.valor_minimo_pedido is not None and subtotal < para_decimal(cupom.valor_minimo_pedido):
        return MotivoCupomInvalido.ABAIXO_DO_MINIMO
    return None
