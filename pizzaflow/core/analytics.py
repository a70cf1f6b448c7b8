# pizzaflow/core/analytics.py
"""
Agregações do Dashboard (somente leitura).

Pedidos cancelados ficam fora de todas as métricas. Os dias são calendários
locais (fuso do restaurante), não dias UTC.
"""
from collections import Counter
from datetime import date, datetime, timedelta, tzinfo
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional, Sequence

from pizzaflow.core.entities import (
    Pedido, StatusPedido, StatusPagamento, AnaliseDashboard,
    ContagemStatus, ReceitaDiaria, UsoCupons,
)
from pizzaflow.core.precificacao import quantizar, ZERO

DIAS_PADRAO = 7


def dias_do_periodo(inicio: date, fim: date) -> List[date]:
    return [inicio + timedelta(days=i) for i in range((fim - inicio).days + 1)]


def ultimos_dias(hoje: date, quantidade: int = DIAS_PADRAO) -> List[date]:
    return dias_do_periodo(hoje - timedelta(days=quantidade - 1), hoje)


def data_local(momento: datetime, fuso: tzinfo) -> date:
    return momento.astimezone(fuso).date()


def _tempo_medio_entrega(pedidos: Sequence[Pedido]) -> Optional[int]:
    duracoes = [
        Decimal(str((p.entregue_em - p.criado_em).total_seconds())) / 60
        for p in pedidos
        if p.status == StatusPedido.ENTREGUE and p.entregue_em is not None
    ]
    if not duracoes:
        return None
    media = sum(duracoes, ZERO) / len(duracoes)
    return int(media.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def calcular_analise(pedidos: Sequence[Pedido], dias: Sequence[date], fuso: tzinfo) -> AnaliseDashboard:
    """
    `pedidos` já vem filtrado pelo período das métricas totais; `dias` define
    os buckets de receita diária, cada um começando em zero.
    """
    validos = [p for p in pedidos if p.status != StatusPedido.CANCELADO]
    pagos = [p for p in validos if p.status_pagamento == StatusPagamento.PAGO]

    total_pedidos = len(validos)
    receita_total = sum((p.valor_total for p in pagos), ZERO)
    ticket_medio = quantizar(receita_total / total_pedidos) if total_pedidos else ZERO

    contagem = Counter(p.status for p in validos)
    pedidos_por_status = [
        ContagemStatus(status=status, quantidade=contagem[status])
        for status in StatusPedido.TODOS
        if contagem[status] > 0
    ]

    receita_por_dia = {dia: ZERO for dia in dias}
    for pedido in pagos:
        dia = data_local(pedido.criado_em, fuso)
        if dia in receita_por_dia:
            receita_por_dia[dia] += pedido.valor_total
    receita_diaria = [
        ReceitaDiaria(data=dia, rotulo=dia.strftime("%d/%m"), receita=valor)
        for dia, valor in receita_por_dia.items()
    ]

    com_desconto = [p for p in validos if p.desconto_cupom_aplicado and p.desconto_cupom_aplicado > 0]
    uso_cupons = UsoCupons(
        total_cupons_usados=len(com_desconto),
        total_desconto=sum((p.desconto_cupom_aplicado for p in com_desconto), ZERO),
    )

    return AnaliseDashboard(
        total_pedidos=total_pedidos,
        receita_total=receita_total,
        ticket_medio=ticket_medio,
        pedidos_por_status=pedidos_por_status,
        receita_diaria=receita_diaria,
        tempo_medio_entrega_minutos=_tempo_medio_entrega(validos),
        uso_cupons=uso_cupons,
    )
