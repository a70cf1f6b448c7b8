# pizzaflow/core/ciclo_vida.py
"""
Máquina de estados do ciclo de vida do pedido.

    Pendente --aceitar--> EmPreparo --marcar_pronto--> AguardandoRetirada
    AguardandoRetirada --despachar--> SaiuParaEntrega --marcar_entregue--> Entregue
    (qualquer estado não terminal) --cancelar--> Cancelado
"""
from dataclasses import replace
from datetime import datetime
from typing import Optional

from pizzaflow.core.entities import Pedido, StatusPedido
from pizzaflow.core.exceptions import TransicaoInvalidaError, StatusInvalidoError, DadosInvalidosError


class EventoPedido:
    ACEITAR = "aceitar"
    MARCAR_PRONTO = "marcar_pronto"
    DESPACHAR = "despachar"
    MARCAR_ENTREGUE = "marcar_entregue"
    CANCELAR = "cancelar"

    TODOS = (ACEITAR, MARCAR_PRONTO, DESPACHAR, MARCAR_ENTREGUE, CANCELAR)


TRANSICOES = {
    (StatusPedido.PENDENTE, EventoPedido.ACEITAR): StatusPedido.EM_PREPARO,
    (StatusPedido.EM_PREPARO, EventoPedido.MARCAR_PRONTO): StatusPedido.AGUARDANDO_RETIRADA,
    (StatusPedido.AGUARDANDO_RETIRADA, EventoPedido.DESPACHAR): StatusPedido.SAIU_PARA_ENTREGA,
    (StatusPedido.SAIU_PARA_ENTREGA, EventoPedido.MARCAR_ENTREGUE): StatusPedido.ENTREGUE,
}
for _status in StatusPedido.TODOS:
    if _status not in StatusPedido.TERMINAIS:
        TRANSICOES[(_status, EventoPedido.CANCELAR)] = StatusPedido.CANCELADO


def proximo_status(status_atual: str, evento: str) -> str:
    try:
        return TRANSICOES[(status_atual, evento)]
    except KeyError:
        raise TransicaoInvalidaError(status_atual, evento)


def evento_para(status_atual: str, status_destino: str) -> str:
    """Resolve o único evento que leva de `status_atual` a `status_destino`."""
    if status_destino not in StatusPedido.TODOS:
        raise StatusInvalidoError(f"O status '{status_destino}' não é um status de pedido válido.")
    for (origem, evento), destino in TRANSICOES.items():
        if origem == status_atual and destino == status_destino:
            return evento
    raise TransicaoInvalidaError(
        status_atual, status_destino,
        f"Não é possível mudar o pedido de '{status_atual}' para '{status_destino}'."
    )


def aplicar_transicao(
    pedido: Pedido,
    evento: str,
    agora: datetime,
    rota: Optional[str] = None,
    nome_entregador: Optional[str] = None,
    entregador_id: Optional[str] = None,
) -> Pedido:
    """
    Retorna uma cópia do pedido com a transição aplicada. O pedido original
    não é alterado, inclusive quando a transição é rejeitada.
    """
    novo_status = proximo_status(pedido.status, evento)
    alteracoes = {"status": novo_status, "atualizado_em": agora}

    if evento == EventoPedido.DESPACHAR:
        if not nome_entregador:
            raise DadosInvalidosError("É necessário informar o entregador para despachar o pedido.")
        alteracoes.update(rota_otimizada=rota, entregador=nome_entregador, entregador_id=entregador_id)

    elif evento == EventoPedido.MARCAR_ENTREGUE and pedido.entregue_em is None:
        alteracoes["entregue_em"] = agora

    return replace(pedido, **alteracoes)
