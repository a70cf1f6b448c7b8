# pizzaflow/core/exportacao.py
"""Exportação de pedidos para CSV (texto, separado por vírgula, todos os campos entre aspas)."""
import csv
import io
from datetime import tzinfo
from typing import Iterable

from pizzaflow.core.entities import Pedido, ItemPedido
from pizzaflow.core.precificacao import quantizar

CABECALHO_CSV = [
    "ID Pedido", "Código", "Cliente", "Endereço", "CEP", "Referência", "Data", "Status",
    "Tipo Pag.", "Status Pag.", "Total", "Cupom", "Desconto Cupom", "Entregador",
    "Link NFe", "Observações Gerais", "Itens",
]

SEPARADOR_ITENS = " ; "


def _formatar_item(item: ItemPedido) -> str:
    return "|".join([
        item.nome,
        str(item.quantidade),
        str(quantizar(item.preco)),
        item.observacoes_item or "",
    ])


def _linha(pedido: Pedido, fuso: tzinfo) -> list:
    desconto = pedido.desconto_cupom_aplicado
    return [
        pedido.id,
        pedido.id_exibicao or "",
        pedido.nome_cliente,
        pedido.endereco_cliente,
        pedido.cep_cliente or "",
        pedido.ponto_referencia or "",
        pedido.criado_em.astimezone(fuso).strftime("%d/%m/%Y %H:%M"),
        pedido.status,
        pedido.tipo_pagamento or "",
        pedido.status_pagamento,
        str(quantizar(pedido.valor_total)),
        pedido.codigo_cupom_aplicado or "",
        str(quantizar(desconto)) if desconto is not None else "0.00",
        pedido.entregador or "",
        pedido.link_nfe or "",
        pedido.observacoes or "",
        SEPARADOR_ITENS.join(_formatar_item(item) for item in pedido.itens),
    ]


def exportar_pedidos_csv(pedidos: Iterable[Pedido], fuso: tzinfo) -> str:
    """Uma linha por pedido. Sem pedidos, retorna apenas o cabeçalho."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, delimiter=",", quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CABECALHO_CSV)
    for pedido in pedidos:
        writer.writerow(_linha(pedido, fuso))
    return buffer.getvalue()
